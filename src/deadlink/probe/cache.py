# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Time-bounded memoization of probe results."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from ..models.probe import ProbeResult

CacheKey = tuple[str, str, int]


@dataclass(frozen=True)
class CacheEntry:
    result: ProbeResult
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class ProbeCache:
    """
    In-memory TTL cache keyed by ``(uri, method, max_retries)``.

    Dead results are cached like live ones so a known-dead URI is not hammered within
    the TTL window. Concurrent misses on one key are not deduplicated; both probe and
    the later write wins. A non-positive TTL disables storage.
    """

    def __init__(self, ttl: float, *, clock: Callable[[], float] = time.monotonic):
        self.ttl = float(ttl)
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: CacheKey) -> ProbeResult | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            self._entries.pop(key, None)
            return None
        return entry.result

    def put(self, key: CacheKey, result: ProbeResult) -> None:
        if self.ttl <= 0:
            return
        self._entries[key] = CacheEntry(result=result, expires_at=self._clock() + self.ttl)

    async def get_or_probe(self, key: CacheKey, probe: Callable[[], Awaitable[ProbeResult]]) -> ProbeResult:
        cached = self.get(key)
        if cached is not None:
            self.hits += 1
            return cached
        self.misses += 1
        result = await probe()
        self.put(key, result)
        return result

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, tuple) and self.get(key) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["CacheEntry", "CacheKey", "ProbeCache"]
