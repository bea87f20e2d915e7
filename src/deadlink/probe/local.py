# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Filesystem existence checks for local references."""

from __future__ import annotations

import asyncio
import os
from urllib.parse import urlsplit
from urllib.request import url2pathname

from ..models.probe import ProbeResult
from ..uri import strip_query_and_fragment


def local_path(ref: str) -> str:
    """Turn a local reference (plain path or ``file:`` URL) into a filesystem path."""
    target = strip_query_and_fragment(ref)
    if target.lower().startswith("file:"):
        return url2pathname(urlsplit(target).path)
    return target


async def probe_local(ref: str) -> ProbeResult:
    """Check that the referenced file or directory exists. Failures are final, never retried."""
    path = local_path(ref)
    try:
        await asyncio.to_thread(os.stat, path)
    except (OSError, ValueError) as exc:
        return ProbeResult(ok=False, message=str(exc), error_type=type(exc).__name__)
    return ProbeResult(ok=True, message="OK")


__all__ = ["local_path", "probe_local"]
