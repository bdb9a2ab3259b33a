"""Deferred callbacks for the wheel's presentation delay."""

from __future__ import annotations

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(order=True)
class ScheduledCall:
    due: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class EventScheduler:
    """Single-threaded timer queue driven by the caller.

    Nothing fires on its own. The host loop (a UI tick, a terminal
    front-end, a test) moves time forward with :meth:`advance` and every
    callback whose delay has elapsed runs on the caller's thread, in due
    order.
    """

    def __init__(self) -> None:
        self._now = 0.0
        self._queue: list[ScheduledCall] = []
        self._counter = itertools.count()

    @property
    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        if delay < 0:
            raise ValueError("delay must not be negative")
        call = ScheduledCall(self._now + delay, next(self._counter), callback)
        heapq.heappush(self._queue, call)
        return call

    def pending(self) -> int:
        return sum(1 for call in self._queue if not call.cancelled)

    def next_due_in(self) -> Optional[float]:
        """Seconds until the next live callback, or ``None`` when idle."""
        for call in sorted(self._queue):
            if not call.cancelled:
                return max(call.due - self._now, 0.0)
        return None

    def advance(self, seconds: float) -> int:
        """Move the clock forward and run every callback that came due.

        Returns the number of callbacks executed.
        """
        if seconds < 0:
            raise ValueError("cannot move the clock backwards")
        target = self._now + seconds
        ran = 0
        while self._queue and self._queue[0].due <= target:
            call = heapq.heappop(self._queue)
            if call.cancelled:
                continue
            self._now = call.due
            call.callback()
            ran += 1
        self._now = target
        return ran

    def run_pending(self) -> int:
        """Fire everything still queued, jumping the clock as needed."""
        ran = 0
        while self._queue:
            call = heapq.heappop(self._queue)
            if call.cancelled:
                continue
            self._now = max(self._now, call.due)
            call.callback()
            ran += 1
        if ran:
            logger.debug(f"Flushed {ran} scheduled callback(s)")
        return ran


__all__ = ["EventScheduler", "ScheduledCall"]
