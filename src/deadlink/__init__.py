# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
deadlink package entrypoint.

Checks whether the links found in a document are alive, dead or redirected. Remote
probes go through an injectable async HTTP client, are retried with HEAD->GET fallback
and backoff, memoized per configuration with a TTL, and dispatched through a
concurrency- and rate-limited scheduler.
"""

from .config import DEFAULT_USER_AGENT, LinkCheckSettings, load_settings
from .extract import extract_uris
from .fixes import apply_fixes
from .http import (
    HttpClient,
    HttpRequest,
    HttpResponse,
    HttpxClient,
    StubHttpClient,
    create_default_http_client,
)
from .ignore import build_ignore_matcher
from .log import setup_logging
from .models import CheckItem, CheckResult, CheckStatus, Diagnostic, Fix, ProbeRequest, ProbeResult
from .probe import ProbeCache, RemoteProber, probe_local
from .runtime import DeadLink
from .scan import CheckProfile, LinkChecker, ProfileRegistry, TaskScheduler
from .uri import is_http, is_local, is_relative, resolve_uri
from .version import __version__

__all__ = [
    "DEFAULT_USER_AGENT",
    "CheckItem",
    "CheckProfile",
    "CheckResult",
    "CheckStatus",
    "DeadLink",
    "Diagnostic",
    "Fix",
    "HttpClient",
    "HttpRequest",
    "HttpResponse",
    "HttpxClient",
    "LinkCheckSettings",
    "LinkChecker",
    "ProbeCache",
    "ProbeRequest",
    "ProbeResult",
    "ProfileRegistry",
    "RemoteProber",
    "StubHttpClient",
    "TaskScheduler",
    "apply_fixes",
    "build_ignore_matcher",
    "create_default_http_client",
    "extract_uris",
    "is_http",
    "is_local",
    "is_relative",
    "load_settings",
    "probe_local",
    "resolve_uri",
    "setup_logging",
    "__version__",
]
