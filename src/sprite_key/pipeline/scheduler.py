"""
Tick Schedulers for Sprite Key
==============================

The pipeline loop never drives itself; it asks a scheduler for the next
tick. Schedulers here stand in for a host display-refresh callback.
"""

import itertools
import time
from collections import OrderedDict
from typing import Any, Callable, Optional, Protocol


TickCallback = Callable[[], Any]


class Scheduler(Protocol):
    """Capability to schedule the next tick and to cancel it."""

    def schedule(self, callback: TickCallback) -> int:
        ...

    def cancel(self, handle: int) -> None:
        ...


class ManualScheduler:
    """
    Scheduler driven explicitly by the caller.

    Example:
        >>> scheduler = ManualScheduler()
        >>> loop = PipelineLoop(source, surface, scheduler)
        >>> result = scheduler.step()     # runs exactly one tick
        >>> scheduler.run(10)             # runs up to ten more
    """

    def __init__(self):
        self._pending: "OrderedDict[int, TickCallback]" = OrderedDict()
        self._ids = itertools.count(1)
        self.ticks_run = 0

    def schedule(self, callback: TickCallback) -> int:
        handle = next(self._ids)
        self._pending[handle] = callback
        return handle

    def cancel(self, handle: int) -> None:
        self._pending.pop(handle, None)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def step(self) -> Any:
        """Run the oldest pending callback and return its value."""
        if not self._pending:
            return None
        _, callback = self._pending.popitem(last=False)
        self.ticks_run += 1
        return callback()

    def run(self, max_ticks: int) -> list:
        """Run up to ``max_ticks`` callbacks; returns their values."""
        results = []
        for _ in range(max_ticks):
            if not self._pending:
                break
            results.append(self.step())
        return results


class CadenceScheduler(ManualScheduler):
    """
    Single-threaded scheduler that runs callbacks at a fixed frame rate.

    ``run()`` blocks the calling thread, invoking one callback per frame
    interval until nothing is pending, ``max_ticks`` is reached or
    ``duration`` seconds have elapsed. With ``realtime=False`` the cadence
    is not enforced and callbacks run back to back.
    """

    def __init__(
        self,
        fps: float = 60.0,
        realtime: bool = True,
        clock: Callable[[], float] = time.perf_counter,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__()
        if fps <= 0:
            raise ValueError(f"fps must be > 0, got {fps}")
        self.fps = fps
        self.realtime = realtime
        self._clock = clock
        self._sleep = sleep

    @property
    def interval(self) -> float:
        return 1.0 / self.fps

    def run(
        self,
        max_ticks: Optional[int] = None,
        duration: Optional[float] = None,
        on_result: Optional[Callable[[Any], None]] = None,
    ) -> int:
        """
        Run callbacks at the configured cadence.

        Callback values are passed to ``on_result`` and not retained.

        Returns:
            Number of ticks run
        """
        ticks = 0
        start = self._clock()
        next_deadline = start

        while self._pending:
            if max_ticks is not None and ticks >= max_ticks:
                break
            now = self._clock()
            if duration is not None and now - start >= duration:
                break

            if self.realtime and next_deadline > now:
                self._sleep(next_deadline - now)

            result = self.step()
            ticks += 1
            if on_result is not None:
                on_result(result)

            next_deadline += self.interval
            if self.realtime:
                # Drop missed frames instead of bursting to catch up
                next_deadline = max(next_deadline, self._clock())

        return ticks
