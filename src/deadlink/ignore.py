# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Glob-style ignore patterns for URIs.

Patterns follow the usual shell/minimatch conventions, applied to the URI string with
``/`` as the segment separator: ``*`` and ``?`` stay within a segment, ``**`` spans
segments, ``[...]`` is a character class and ``{a,b}`` an alternation. Unless ``dot``
is set, wildcards never match a segment that starts with ``.``.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from functools import lru_cache

IgnorePredicate = Callable[[str], bool]

_SEGMENT = r"[^/]*"
_NO_DOT = r"(?!\.)"


def _at_segment_start(out: list[str], starts_segment: bool) -> bool:
    if not out:
        return starts_segment
    return out[-1].endswith("/")


def _find_closing(pattern: str, start: int, opener: str, closer: str) -> int:
    depth = 0
    pos = start
    while pos < len(pattern):
        char = pattern[pos]
        if char == "\\":
            pos += 2
            continue
        if char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return pos
        pos += 1
    return -1


def _split_alternatives(body: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current = ""
    escaped = False
    for char in body:
        if escaped:
            current += char
            escaped = False
            continue
        if char == "\\":
            escaped = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        elif char == "," and depth == 0:
            parts.append(current)
            current = ""
            continue
        current += char
    parts.append(current)
    return parts


def _translate_class(body: str) -> str | None:
    negate = body[:1] in ("!", "^")
    if negate:
        body = body[1:]
    if not body:
        return None
    out: list[str] = []
    i = 0
    while i < len(body):
        char = body[i]
        if char == "\\" and i + 1 < len(body):
            out.append(re.escape(body[i + 1]))
            i += 2
            continue
        out.append("\\" + char if char in "\\[]^" else char)
        i += 1
    return ("[^" if negate else "[") + "".join(out) + "]"


def _globstar(dot: bool, *, trailing_slash: bool) -> str:
    if trailing_slash:
        # zero or more whole segments, so ``a/**/b`` also matches ``a/b``
        return "(?:[^/]*/)*" if dot else f"(?:{_NO_DOT}{_SEGMENT}/)*"
    return ".*" if dot else f"(?:{_NO_DOT}{_SEGMENT}(?:/{_NO_DOT}{_SEGMENT})*)?"


def _translate(pattern: str, dot: bool, *, starts_segment: bool = True, ends_segment: bool = True) -> str:
    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        char = pattern[i]
        at_start = _at_segment_start(out, starts_segment)
        guard = "" if dot or not at_start else _NO_DOT
        if char == "*":
            j = i
            while j < n and pattern[j] == "*":
                j += 1
            alone = at_start and (pattern[j] == "/" if j < n else ends_segment)
            if j - i >= 2 and alone:
                trailing_slash = j < n
                out.append(_globstar(dot, trailing_slash=trailing_slash))
                i = j + 1 if trailing_slash else j
            else:
                out.append(guard + _SEGMENT)
                i = j
        elif char == "?":
            out.append(guard + "[^/]")
            i += 1
        elif char == "[":
            end = _find_closing(pattern, i, "[", "]")
            translated = _translate_class(pattern[i + 1 : end]) if end != -1 else None
            if translated is None:
                out.append(re.escape(char))
                i += 1
                continue
            out.append(translated)
            i = end + 1
        elif char == "{":
            end = _find_closing(pattern, i, "{", "}")
            alternatives = _split_alternatives(pattern[i + 1 : end]) if end != -1 else []
            if len(alternatives) < 2:
                out.append(re.escape(char))
                i += 1
                continue
            closes = pattern[end + 1] == "/" if end + 1 < n else ends_segment
            branches = (_translate(alt, dot, starts_segment=at_start, ends_segment=closes) for alt in alternatives)
            out.append("(?:" + "|".join(branches) + ")")
            i = end + 1
        elif char == "\\" and i + 1 < n:
            out.append(re.escape(pattern[i + 1]))
            i += 2
        else:
            out.append(re.escape(char))
            i += 1
    return "".join(out)


@lru_cache(maxsize=512)
def compile_glob(pattern: str, dot: bool = False) -> re.Pattern[str]:
    return re.compile(_translate(pattern, dot), re.DOTALL)


def glob_match(uri: str, pattern: str, *, dot: bool = False) -> bool:
    if not pattern:
        return False
    return compile_glob(pattern, dot).fullmatch(uri) is not None


def build_ignore_matcher(patterns: Iterable[str], *, dot: bool = False) -> IgnorePredicate:
    """Return a predicate that is true when a URI matches any of ``patterns``."""
    compiled = [compile_glob(p, dot) for p in patterns if p]

    def is_ignored(uri: str) -> bool:
        return any(regex.fullmatch(uri) is not None for regex in compiled)

    return is_ignored


__all__ = ["IgnorePredicate", "build_ignore_matcher", "compile_glob", "glob_match"]
