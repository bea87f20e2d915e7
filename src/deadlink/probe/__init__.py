# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Local and remote liveness probers plus the result cache."""

from .cache import CacheEntry, CacheKey, ProbeCache
from .local import local_path, probe_local
from .remote import RemoteProber, exponential_backoff, parse_retry_after

__all__ = [
    "CacheEntry",
    "CacheKey",
    "ProbeCache",
    "RemoteProber",
    "exponential_backoff",
    "local_path",
    "parse_retry_after",
    "probe_local",
]
