# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP request/response data models used by the probers."""

from __future__ import annotations

from dataclasses import dataclass, field

Headers = dict[str, str]


@dataclass
class HttpRequest:
    """Normalized request representation consumed by HttpClient implementations."""

    url: str
    method: str = "HEAD"
    headers: Headers | None = None
    timeout: float | None = None
    allow_redirects: bool = False

@dataclass
class HttpResponse:
    """
    Normalized HTTP response.

    ``ok`` reports whether a response was received at all; transport failures carry
    ``status_code=None`` plus ``error_message``/``error_type``. Use ``is_success`` for
    the 2xx check.
    """

    ok: bool
    status_code: int | None = None
    reason: str = ""
    headers: Headers = field(default_factory=dict)
    url: str | None = None
    error_message: str | None = None
    error_type: str | None = None

    @property
    def is_success(self) -> bool:
        return self.status_code is not None and 200 <= self.status_code < 300

    @property
    def status_line(self) -> str:
        if self.status_code is None:
            return self.error_message or ""
        return f"{self.status_code} {self.reason}".strip()
