"""Cancellable timers driven by a simulated millisecond clock."""
from __future__ import annotations

import heapq
import itertools
import logging
from typing import Callable, List, Protocol, Tuple

logger = logging.getLogger(__name__)


class ScheduledTask:
    """Handle for a callback registered with a scheduler."""

    def __init__(self, due_ms: float, callback: Callable[[], None]) -> None:
        self.due_ms = due_ms
        self._callback = callback
        self._cancelled = False
        self._done = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._done

    @property
    def active(self) -> bool:
        return not (self._cancelled or self._done)

    def cancel(self) -> None:
        self._cancelled = True

    def run(self) -> None:
        if not self.active:
            return
        self._done = True
        self._callback()

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "done" if self._done else "pending"
        return f"<ScheduledTask due={self.due_ms:.0f}ms {state}>"


class Scheduler(Protocol):
    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> ScheduledTask:
        ...


class SimulatedClock:
    """Single-threaded clock that runs callbacks when time is advanced.

    Callbacks fire in order of due time, ties broken by scheduling order.
    Callbacks scheduled while advancing run during the same call if they fall
    due before its target time.
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self.now_ms = float(start_ms)
        self._queue: List[Tuple[float, int, ScheduledTask]] = []
        self._sequence = itertools.count()

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> ScheduledTask:
        if delay_ms < 0:
            raise ValueError("delay_ms must not be negative")
        task = ScheduledTask(self.now_ms + delay_ms, callback)
        heapq.heappush(self._queue, (task.due_ms, next(self._sequence), task))
        return task

    def pending(self) -> int:
        """Number of scheduled callbacks that have not run or been cancelled."""

        return sum(1 for _, _, task in self._queue if task.active)

    def advance(self, delta_ms: float) -> int:
        if delta_ms < 0:
            raise ValueError("Cannot move the clock backwards")
        return self.advance_to(self.now_ms + delta_ms)

    def advance_to(self, time_ms: float) -> int:
        """Move the clock to ``time_ms`` and return how many callbacks ran."""

        if time_ms < self.now_ms:
            raise ValueError("Cannot move the clock backwards")
        ran = 0
        while self._queue and self._queue[0][0] <= time_ms:
            due_ms, _, task = heapq.heappop(self._queue)
            if not task.active:
                continue
            self.now_ms = due_ms
            task.run()
            ran += 1
        self.now_ms = float(time_ms)
        if ran:
            logger.debug("Clock at %.0f ms ran %d callback(s)", self.now_ms, ran)
        return ran
