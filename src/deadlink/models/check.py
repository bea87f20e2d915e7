# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Check items, diagnostics and per-URI results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .probe import ProbeResult

UNRESOLVED_RELATIVE_MESSAGE = "Unable to resolve the relative URI. Please check if the base URI is correctly specified."


class CheckStatus(str, Enum):
    IGNORED = "IGNORED"
    SKIPPED = "SKIPPED"
    ALIVE = "ALIVE"
    DEAD = "DEAD"
    REDIRECTED = "REDIRECTED"
    UNRESOLVED = "UNRESOLVED"


@dataclass(frozen=True)
class CheckItem:
    """A discovered URI and where it occurs; ``location`` is opaque to the engine."""

    uri: str
    index: int
    location: Any = None

    @property
    def end(self) -> int:
        return self.index + len(self.uri)


@dataclass(frozen=True)
class Fix:
    """Literal replacement of ``text[start:end]``."""

    start: int
    end: int
    text: str


@dataclass(frozen=True)
class Diagnostic:
    message: str
    start: int
    end: int
    location: Any = None
    fix: Fix | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"message": self.message, "range": [self.start, self.end]}
        if self.fix is not None:
            data["fix"] = {"range": [self.fix.start, self.fix.end], "text": self.fix.text}
        return data


@dataclass(frozen=True)
class CheckResult:
    item: CheckItem
    status: CheckStatus
    uri: str
    probe: ProbeResult | None = None
    diagnostic: Diagnostic | None = None

    @property
    def reportable(self) -> bool:
        return self.diagnostic is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "uri": self.item.uri,
            "resolved_uri": self.uri,
            "index": self.item.index,
            "status": self.status.value,
            "probe": self.probe.to_dict() if self.probe else None,
            "diagnostic": self.diagnostic.to_dict() if self.diagnostic else None,
        }
