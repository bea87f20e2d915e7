# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe request/result models."""

from __future__ import annotations

from dataclasses import dataclass, replace

HEAD = "HEAD"
GET = "GET"


@dataclass(frozen=True)
class ProbeRequest:
    uri: str
    method: str = HEAD
    attempt: int = 0

    def next_attempt(self, method: str = GET) -> ProbeRequest:
        return replace(self, method=method, attempt=self.attempt + 1)


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of one completed probe chain (after retries and redirect resolution)."""

    ok: bool
    message: str
    redirected: bool = False
    redirect_to: str | None = None
    status_code: int | None = None
    error_type: str | None = None
    attempts: int = 1

    def to_dict(self) -> dict[str, object]:
        return {
            "ok": self.ok,
            "message": self.message,
            "redirected": self.redirected,
            "redirect_to": self.redirect_to,
            "status_code": self.status_code,
            "error_type": self.error_type,
            "attempts": self.attempts,
        }
