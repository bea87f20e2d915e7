# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Concurrency- and rate-limited task queue."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

from pyrate_limiter import Duration, Limiter, Rate
from pyrate_limiter.buckets import InMemoryBucket

T = TypeVar("T")
Task = Callable[[], Awaitable[T]]

RATE_POLL_SECONDS = 0.01
_LIMITER_NAME = "task-starts"


def build_start_limiter(interval: float, interval_cap: int) -> Limiter | None:
    """Sliding-window limiter admitting ``interval_cap`` starts per ``interval`` seconds."""
    if interval <= 0 or interval_cap <= 0:
        return None
    window_ms = max(1, round(interval * int(Duration.SECOND)))
    bucket = InMemoryBucket([Rate(interval_cap, window_ms)])
    return Limiter(bucket, raise_when_fail=False, max_delay=None)


class TaskScheduler:
    """
    Runs zero-argument coroutine factories with two limits:

    - at most ``concurrency`` tasks in flight;
    - at most ``interval_cap`` task starts within any sliding ``interval`` seconds
      (disabled when either is non-positive).

    Admission is FIFO; completion order is not. The start window lives in the limiter,
    so back-to-back documents on one profile share the rate limit.
    """

    def __init__(
        self,
        concurrency: int = 8,
        interval: float = 0.5,
        interval_cap: int = 8,
        *,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
    ):
        self.concurrency = max(1, int(concurrency))
        self.interval = float(interval)
        self.interval_cap = int(interval_cap)
        self._sleep = sleep or asyncio.sleep
        self._limiter = build_start_limiter(self.interval, self.interval_cap)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._slots: asyncio.Semaphore | None = None
        self._admission: asyncio.Lock | None = None
        self.started = 0

    @property
    def rate_limited(self) -> bool:
        return self._limiter is not None

    def _bind(self) -> tuple[asyncio.Semaphore, asyncio.Lock]:
        # asyncio primitives belong to one loop; rebuild them when a new loop drives us.
        loop = asyncio.get_running_loop()
        if self._loop is not loop or self._slots is None or self._admission is None:
            self._loop = loop
            self._slots = asyncio.Semaphore(self.concurrency)
            self._admission = asyncio.Lock()
        return self._slots, self._admission

    async def _wait_for_rate_window(self) -> None:
        if self._limiter is None:
            return
        # try_acquire never blocks with max_delay=None; poll on the event loop instead.
        while not self._limiter.try_acquire(_LIMITER_NAME, weight=1):
            await self._sleep(min(RATE_POLL_SECONDS, self.interval))

    async def _run_one(self, task: Task[T], slots: asyncio.Semaphore, admission: asyncio.Lock) -> T:
        async with admission:
            await slots.acquire()
            try:
                await self._wait_for_rate_window()
            except BaseException:
                slots.release()
                raise
            self.started += 1
        try:
            return await task()
        finally:
            slots.release()

    async def run(self, tasks: Iterable[Task[T]]) -> list[T | BaseException]:
        """
        Run every task and wait until all have settled.

        Results come back in submission order; a task that raised contributes its
        exception instead of a value.
        """
        slots, admission = self._bind()
        pending = [asyncio.ensure_future(self._run_one(task, slots, admission)) for task in tasks]
        if not pending:
            return []
        return list(await asyncio.gather(*pending, return_exceptions=True))


__all__ = ["RATE_POLL_SECONDS", "TaskScheduler", "build_start_limiter"]
