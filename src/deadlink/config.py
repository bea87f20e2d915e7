# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for deadlink."""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields, replace
from typing import Any

from .version import __version__

DEFAULT_USER_AGENT = f"deadlink/{__version__}"


def _float_env(name: str, default: float) -> float:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _optional_str_env(name: str, default: str | None) -> str | None:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value or None


def _as_tuple(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Iterable):
        return tuple(str(item) for item in value)
    raise ValueError(f"Expected a list of strings, got {type(value).__name__}")


@dataclass(frozen=True)
class LinkCheckSettings:
    """
    Immutable snapshot of link-check options.

    Instances compare and hash by value, so two snapshots with identical options
    select the same cache/scheduler profile.
    """

    check_relative: bool = True
    base_uri: str | None = None
    ignore: tuple[str, ...] = ()
    dot_in_ignore: bool = False
    ignore_redirects: bool = False
    prefer_get: tuple[str, ...] = ()
    retry: int = 3
    concurrency: int = 8
    interval: int = 500
    interval_cap: int = 8
    user_agent: str = DEFAULT_USER_AGENT
    max_retry_time: float = 10.0
    max_retry_after_time: float = 10.0
    link_max_age: int = 30_000
    http_only: bool = False
    timeout: float = 10.0
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        # Normalize list-like options so the snapshot stays hashable.
        object.__setattr__(self, "ignore", _as_tuple(self.ignore))
        object.__setattr__(self, "prefer_get", _as_tuple(self.prefer_get))
        object.__setattr__(self, "retry", max(0, int(self.retry)))
        object.__setattr__(self, "concurrency", max(1, int(self.concurrency)))

    @property
    def interval_seconds(self) -> float:
        return self.interval / 1000.0

    @property
    def link_max_age_seconds(self) -> float:
        return self.link_max_age / 1000.0

    @classmethod
    def from_env(cls) -> LinkCheckSettings:
        """Create settings from environment variables (evaluated at call time)."""
        return cls(
            check_relative=_bool_env("DEADLINK_CHECK_RELATIVE", cls.check_relative),
            base_uri=_optional_str_env("DEADLINK_BASE_URI", cls.base_uri),
            ignore_redirects=_bool_env("DEADLINK_IGNORE_REDIRECTS", cls.ignore_redirects),
            retry=_int_env("DEADLINK_RETRY", cls.retry),
            concurrency=_int_env("DEADLINK_CONCURRENCY", cls.concurrency),
            interval=_int_env("DEADLINK_INTERVAL_MS", cls.interval),
            interval_cap=_int_env("DEADLINK_INTERVAL_CAP", cls.interval_cap),
            user_agent=os.getenv("DEADLINK_USER_AGENT", cls.user_agent),
            max_retry_time=_float_env("DEADLINK_MAX_RETRY_TIME", cls.max_retry_time),
            max_retry_after_time=_float_env("DEADLINK_MAX_RETRY_AFTER_TIME", cls.max_retry_after_time),
            link_max_age=_int_env("DEADLINK_LINK_MAX_AGE_MS", cls.link_max_age),
            http_only=_bool_env("DEADLINK_HTTP_ONLY", cls.http_only),
            timeout=_float_env("DEADLINK_HTTP_TIMEOUT", cls.timeout),
            verify_ssl=_bool_env("DEADLINK_VERIFY_SSL", cls.verify_ssl),
        )

    @classmethod
    def from_options(
        cls,
        options: Mapping[str, Any] | None,
        base: LinkCheckSettings | None = None,
    ) -> LinkCheckSettings:
        """
        Layer rule-style options (``checkRelative``, ``baseURI``, ...) over ``base``.

        Snake-case field names are accepted as well. Unknown keys raise ``ValueError``.
        """
        settings = base if base is not None else cls()
        if not options:
            return settings
        known = {f.name for f in fields(cls)}
        updates: dict[str, Any] = {}
        for key, value in options.items():
            name = OPTION_ALIASES.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown link-check option: {key!r}")
            updates[name] = value
        return replace(settings, **updates)


OPTION_ALIASES: dict[str, str] = {
    "checkRelative": "check_relative",
    "baseURI": "base_uri",
    "dotInIgnore": "dot_in_ignore",
    "ignoreRedirects": "ignore_redirects",
    "preferGET": "prefer_get",
    "intervalCap": "interval_cap",
    "userAgent": "user_agent",
    "maxRetryTime": "max_retry_time",
    "maxRetryAfterTime": "max_retry_after_time",
    "linkMaxAge": "link_max_age",
    "httpOnly": "http_only",
    "verifySSL": "verify_ssl",
}


def load_settings(options: Mapping[str, Any] | None = None) -> LinkCheckSettings:
    """Load settings from environment defaults, then apply explicit options."""
    return LinkCheckSettings.from_options(options, base=LinkCheckSettings.from_env())


__all__ = ["DEFAULT_USER_AGENT", "LinkCheckSettings", "OPTION_ALIASES", "load_settings"]
