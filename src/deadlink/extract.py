# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Regex-based URI discovery for Markdown and plain text.

Recognizes inline links and images (``[text](url)``), reference definitions
(``[id]: url``) and bare ``http(s)://`` / ``//host`` URIs. Code blocks, inline code
and block quotes are not scanned. Bare URIs inside a link are reported once.
"""

from __future__ import annotations

import bisect
import re

from .models.check import CheckItem

# Adopted from http://stackoverflow.com/a/3809435/951517
BARE_URI_RE = re.compile(
    r"(?:https?:)?//(?:www\.)?[-a-zA-Z0-9@:%._+~#=]{2,256}\.[a-z]{2,6}\b(?:[-a-zA-Z0-9@:%_+.~#?&/=]*)"
)
INLINE_LINK_RE = re.compile(r"!?\[(?:[^\[\]]|\[[^\]]*\])*\]\(\s*(?P<angle><)?(?P<url>[^\s)>]*)>?(?:\s+(?:\"[^\"]*\"|'[^']*'))?\s*\)")
DEFINITION_RE = re.compile(r"^ {0,3}\[(?P<label>[^\]]+)\]:[ \t]*<?(?P<url>[^\s>]+)>?", re.MULTILINE)
FENCE_RE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})[^\n]*\n.*?(?:^ {0,3}(?P=fence)[ \t]*$|\Z)", re.MULTILINE | re.DOTALL)
INLINE_CODE_RE = re.compile(r"(?P<ticks>`+)(?!`).+?(?<!`)(?P=ticks)(?!`)", re.DOTALL)
BLOCKQUOTE_RE = re.compile(r"^ {0,3}>.*$", re.MULTILINE)

_TRAILING_PUNCTUATION = ".,;:!?"


def _spans(pattern: re.Pattern[str], text: str) -> list[tuple[int, int]]:
    return [match.span() for match in pattern.finditer(text)]


def _inside(index: int, spans: list[tuple[int, int]]) -> bool:
    return any(start <= index < end for start, end in spans)


def _trim_bare(uri: str) -> str:
    while uri and uri[-1] in _TRAILING_PUNCTUATION:
        uri = uri[:-1]
    return uri


def extract_uris(text: str, *, markdown: bool = True) -> list[CheckItem]:
    """Return the URIs found in ``text`` as CheckItems ordered by position."""
    excluded: list[tuple[int, int]] = []
    if markdown:
        excluded += _spans(FENCE_RE, text)
        excluded += _spans(INLINE_CODE_RE, text)
    excluded += _spans(BLOCKQUOTE_RE, text)

    items: list[CheckItem] = []
    link_spans: list[tuple[int, int]] = []

    if markdown:
        for match in INLINE_LINK_RE.finditer(text):
            if _inside(match.start(), excluded):
                continue
            link_spans.append(match.span())
            url = match.group("url")
            if url:
                items.append(CheckItem(uri=url, index=match.start("url")))

        for match in DEFINITION_RE.finditer(text):
            if _inside(match.start(), excluded) or match.group("label").startswith("^"):
                continue
            link_spans.append(match.span())
            items.append(CheckItem(uri=match.group("url"), index=match.start("url")))

    for match in BARE_URI_RE.finditer(text):
        if _inside(match.start(), excluded) or _inside(match.start(), link_spans):
            continue
        uri = _trim_bare(match.group(0))
        if uri:
            items.append(CheckItem(uri=uri, index=match.start()))

    items.sort(key=lambda item: item.index)
    return items


def line_starts(text: str) -> list[int]:
    starts = [0]
    starts.extend(match.end() for match in re.finditer(r"\n", text))
    return starts


def line_and_column(starts: list[int], index: int) -> tuple[int, int]:
    """1-based (line, column) for a character offset."""
    line = bisect.bisect_right(starts, index) - 1
    return line + 1, index - starts[line] + 1


__all__ = ["BARE_URI_RE", "extract_uris", "line_and_column", "line_starts"]
