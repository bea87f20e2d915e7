# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
URI classification and resolution helpers.

Everything here is pure: no network or filesystem access, and malformed input never
raises. A string that cannot be parsed classifies as relative/non-http and is left to
the orchestrator's skip logic.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from urllib.parse import SplitResult, urljoin, urlsplit, urlunsplit

import httpx

HTTP_SCHEMES = frozenset({"http", "https"})
REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})
_DEFAULT_PORTS = {"http": 80, "https": 443}
_WINDOWS_DRIVE_RE = re.compile(r"^[A-Za-z]:[\\/]")


def _split(uri: str) -> SplitResult | None:
    try:
        return urlsplit(str(uri))
    except ValueError:
        return None


def is_absolute_path(uri: str) -> bool:
    """True for absolute filesystem paths (``/docs/a.md``, ``C:\\docs``), not ``//host`` references."""
    raw = str(uri or "")
    if raw.startswith("//"):
        return False
    return os.path.isabs(raw) or bool(_WINDOWS_DRIVE_RE.match(raw))


def is_network_path(uri: str) -> bool:
    """True for scheme-relative references such as ``//example.com/a``."""
    raw = str(uri or "")
    if not raw.startswith("//"):
        return False
    parts = _split(raw)
    return bool(parts and parts.netloc)


def is_http(uri: str) -> bool:
    parts = _split(uri)
    return bool(parts and parts.scheme.lower() in HTTP_SCHEMES)


def is_relative(uri: str) -> bool:
    """
    True when the reference has neither scheme nor host (or is a host-less ``file:`` URL)
    and is not an absolute filesystem path.

    ``mailto:``/``ftp:``-style references carry a scheme and are not relative.
    """
    if is_absolute_path(uri):
        return False
    parts = _split(uri)
    if parts is None:
        return True
    if parts.netloc:
        return False
    return parts.scheme.lower() in {"", "file"}


def is_local(uri: str) -> bool:
    return is_absolute_path(uri) or is_relative(uri)


def is_redirect(status_code: int | None) -> bool:
    return status_code in REDIRECT_STATUSES


def url_origin(uri: str) -> str | None:
    """Return ``scheme://host[:port]`` for http(s) URIs, with default ports dropped."""
    parts = _split(uri)
    if parts is None:
        return None
    scheme = parts.scheme.lower()
    if scheme not in HTTP_SCHEMES or not parts.hostname:
        return None
    try:
        port = parts.port
    except ValueError:
        return None
    host = parts.hostname.lower()
    if ":" in host:
        host = f"[{host}]"
    if port is None or port == _DEFAULT_PORTS[scheme]:
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def same_origin(a: str, b: str) -> bool:
    origin = url_origin(a)
    return origin is not None and origin == url_origin(b)


def request_host(uri: str) -> str | None:
    """
    ``Host`` header value for ``uri``: the IDNA-encoded host plus any explicit port.

    Returns None when the URI has no host or cannot be encoded.
    """
    parts = _split(uri)
    if parts is None or not parts.hostname:
        return None
    try:
        netloc = httpx.URL(uri).netloc
    except (httpx.InvalidURL, UnicodeError):
        return None
    return netloc.decode("ascii") or None


def _base_as_url(base: str) -> str:
    """Coerce a bare filesystem path into a ``file://`` URL, keeping a trailing separator."""
    parts = _split(base)
    if parts is not None and not is_absolute_path(base) and (parts.netloc or parts.scheme):
        return base
    is_dir = base.endswith(("/", os.sep))
    url = Path(os.path.abspath(base)).as_uri()
    if is_dir and not url.endswith("/"):
        url += "/"
    return url


def resolve_uri(ref: str, base: str | None, *, http_only: bool = False) -> str | None:
    """
    Resolve ``ref`` against ``base``.

    With ``http_only`` the join is strict URL joining and ``base`` must be an absolute URL.
    Otherwise non-relative references pass through and relative ones are joined against
    ``base`` (a bare path base is treated as a local file location). Returns None when no
    resolution is possible.
    """
    if http_only:
        if not base:
            return None
        parts = _split(base)
        if parts is None or not parts.scheme or not parts.netloc:
            return None
        try:
            return urljoin(base, ref)
        except ValueError:
            return None

    if not is_relative(ref):
        return ref
    if not base:
        return None
    try:
        return urljoin(_base_as_url(base), ref)
    except ValueError:
        return None


def join_location(request_url: str, location: str | None) -> str | None:
    """Resolve a ``Location`` header against the URL that produced it."""
    if not location:
        return None
    try:
        target = urljoin(request_url, location.strip())
    except ValueError:
        return None
    parts = _split(target)
    if parts is None or parts.scheme.lower() not in HTTP_SCHEMES or not parts.netloc:
        return None
    return target


def carry_fragment(final_url: str, original_uri: str) -> str:
    """Append the original fragment to ``final_url`` when the redirect chain dropped it."""
    original = _split(original_uri)
    final = _split(final_url)
    if original is None or final is None or not original.fragment or final.fragment:
        return final_url
    return urlunsplit(final._replace(fragment=original.fragment))


def strip_query_and_fragment(ref: str) -> str:
    return re.sub(r"[?#].*$", "", ref, count=1, flags=re.S)


__all__ = [
    "REDIRECT_STATUSES",
    "carry_fragment",
    "is_absolute_path",
    "is_http",
    "is_local",
    "is_network_path",
    "is_redirect",
    "is_relative",
    "join_location",
    "request_host",
    "resolve_uri",
    "same_origin",
    "strip_query_and_fragment",
    "url_origin",
]
