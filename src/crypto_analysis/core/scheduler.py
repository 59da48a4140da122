"""Single-threaded cooperative timer queue and task runner."""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
import time
from collections.abc import Callable, Coroutine
from typing import Any

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], float]


class TimerHandle:
    """Cancellable reference to a scheduled callback."""

    __slots__ = ("deadline", "callback", "cancelled")

    def __init__(self, deadline: float, callback: Callable[[], None]) -> None:
        self.deadline = deadline
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class CooperativeScheduler:
    """Timer queue driven by the host.

    Nothing here runs on its own: the host advances work by calling
    :meth:`run_due` (timers) and :meth:`drain` (spawned network work). Every
    callback runs on the caller's thread, so user input, timer firings and
    completions never interleave mid-callback.
    """

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self._queue: list[tuple[float, int, TimerHandle]] = []
        self._counter = itertools.count()
        self._tasks: list[Coroutine[Any, Any, None]] = []

    def now(self) -> float:
        return self._clock()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(self.now() + max(delay, 0.0), callback)
        heapq.heappush(self._queue, (handle.deadline, next(self._counter), handle))
        return handle

    def run_due(self) -> int:
        """Fire every callback whose deadline has passed, in deadline order."""
        fired = 0
        now = self.now()
        while self._queue and self._queue[0][0] <= now:
            _, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            handle.cancelled = True
            handle.callback()
            fired += 1
        return fired

    def next_deadline(self) -> float | None:
        for deadline, _, handle in sorted(self._queue):
            if not handle.cancelled:
                return deadline
        return None

    def spawn(self, coroutine: Coroutine[Any, Any, None]) -> None:
        self._tasks.append(coroutine)

    @property
    def has_pending_work(self) -> bool:
        return bool(self._tasks)

    async def drain(self) -> None:
        """Run spawned work concurrently until nothing is left."""
        while self._tasks:
            batch, self._tasks = self._tasks, []
            LOGGER.debug("Running %d spawned task(s)", len(batch))
            await asyncio.gather(*batch)
