# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Dataclass exports for deadlink."""

from .check import UNRESOLVED_RELATIVE_MESSAGE, CheckItem, CheckResult, CheckStatus, Diagnostic, Fix
from .probe import GET, HEAD, ProbeRequest, ProbeResult

__all__ = [
    "GET",
    "HEAD",
    "UNRESOLVED_RELATIVE_MESSAGE",
    "CheckItem",
    "CheckResult",
    "CheckStatus",
    "Diagnostic",
    "Fix",
    "ProbeRequest",
    "ProbeResult",
]
