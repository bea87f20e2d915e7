# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Apply redirect fixes to document text."""

from __future__ import annotations

from collections.abc import Iterable

from .models.check import Diagnostic, Fix


def apply_fixes(text: str, diagnostics: Iterable[Diagnostic]) -> tuple[str, int]:
    """
    Apply every non-overlapping fix, right to left so earlier offsets stay valid.

    Returns the new text and the number of fixes applied. When two fixes overlap the
    one starting first wins.
    """
    fixes: list[Fix] = sorted(
        (d.fix for d in diagnostics if d.fix is not None),
        key=lambda fix: (fix.start, fix.end),
    )
    accepted: list[Fix] = []
    last_end = -1
    for fix in fixes:
        if fix.start < last_end or fix.start < 0 or fix.end > len(text):
            continue
        accepted.append(fix)
        last_end = fix.end

    for fix in reversed(accepted):
        text = text[: fix.start] + fix.text + text[fix.end :]
    return text, len(accepted)


__all__ = ["apply_fixes"]
