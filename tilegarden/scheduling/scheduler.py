"""
Timer scheduling for tilegarden.

Debounced autosave, periodic snapshots and the post-migration re-save all go
through a Scheduler instead of calling timer APIs directly, so their timing
can be driven by a virtual clock in tests.
"""

import asyncio
import heapq
import itertools
import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple


class Cancellable:
    """Handle returned for every scheduled callback."""

    def __init__(self, on_cancel: Optional[Callable[[], None]] = None):
        self._cancelled = False
        self._on_cancel = on_cancel

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Stop the callback from firing again. Safe to call repeatedly."""
        if self._cancelled:
            return
        self._cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()


class Scheduler(ABC):
    """
    Abstract timer source.
    """

    @abstractmethod
    def after(self, delay: float, fn: Callable[[], None]) -> Cancellable:
        """
        Run fn once after delay seconds.

        Args:
            delay: Delay in seconds
            fn: Callback taking no arguments

        Returns:
            Handle that cancels the callback
        """
        pass

    @abstractmethod
    def every(self, interval: float, fn: Callable[[], None]) -> Cancellable:
        """
        Run fn every interval seconds until cancelled.

        Args:
            interval: Interval in seconds
            fn: Callback taking no arguments

        Returns:
            Handle that stops the repetition
        """
        pass


class ManualScheduler(Scheduler):
    """
    Virtual-clock scheduler. Nothing fires until advance() is called.

    Callbacks run on the caller's thread in due-time order; exceptions they
    raise propagate out of advance().
    """

    def __init__(self):
        self.now = 0.0
        self._queue: List[Tuple[float, int, Cancellable, Callable[[], None], Optional[float]]] = []
        self._counter = itertools.count()

    def after(self, delay: float, fn: Callable[[], None]) -> Cancellable:
        handle = Cancellable()
        self._push(self.now + max(delay, 0.0), handle, fn, None)
        return handle

    def every(self, interval: float, fn: Callable[[], None]) -> Cancellable:
        if interval <= 0:
            raise ValueError("Interval must be positive")
        handle = Cancellable()
        self._push(self.now + interval, handle, fn, interval)
        return handle

    def _push(self, due: float, handle: Cancellable, fn: Callable[[], None], interval: Optional[float]):
        heapq.heappush(self._queue, (due, next(self._counter), handle, fn, interval))

    def advance(self, seconds: float) -> int:
        """
        Move the virtual clock forward, firing everything that becomes due.

        Args:
            seconds: How far to move the clock

        Returns:
            Number of callbacks fired
        """
        target = self.now + seconds
        fired = 0

        while self._queue and self._queue[0][0] <= target:
            due, _, handle, fn, interval = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = due
            if interval is not None:
                self._push(due + interval, handle, fn, interval)
            fn()
            fired += 1

        self.now = target
        return fired

    def run_pending(self) -> int:
        """Fire everything already due without moving the clock."""
        return self.advance(0.0)

    @property
    def pending_count(self) -> int:
        return sum(1 for entry in self._queue if not entry[2].cancelled)


class AsyncioScheduler(Scheduler):
    """
    Schedules callbacks on an asyncio event loop.

    Everything runs on the loop's thread, so callbacks never overlap. Without
    an explicit loop it must be created from inside a running loop.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop = loop or asyncio.get_running_loop()

    def after(self, delay: float, fn: Callable[[], None]) -> Cancellable:
        timer = self.loop.call_later(max(delay, 0.0), _guarded(fn))
        return Cancellable(timer.cancel)

    def every(self, interval: float, fn: Callable[[], None]) -> Cancellable:
        if interval <= 0:
            raise ValueError("Interval must be positive")

        current = {"timer": None}
        handle = Cancellable(lambda: current["timer"] and current["timer"].cancel())
        guarded = _guarded(fn)

        def tick():
            if handle.cancelled:
                return
            current["timer"] = self.loop.call_later(interval, tick)
            guarded()

        current["timer"] = self.loop.call_later(interval, tick)
        return handle


class ThreadingScheduler(Scheduler):
    """
    Schedules callbacks on background threads.

    For synchronous hosts such as the CLI; callbacks run on timer threads.
    """

    def after(self, delay: float, fn: Callable[[], None]) -> Cancellable:
        timer = threading.Timer(max(delay, 0.0), _guarded(fn))
        timer.daemon = True
        timer.start()
        return Cancellable(timer.cancel)

    def every(self, interval: float, fn: Callable[[], None]) -> Cancellable:
        if interval <= 0:
            raise ValueError("Interval must be positive")

        stop = threading.Event()
        guarded = _guarded(fn)

        def loop():
            while not stop.wait(interval):
                guarded()

        thread = threading.Thread(target=loop, name="tilegarden-interval", daemon=True)
        thread.start()
        return Cancellable(stop.set)


def _guarded(fn: Callable[[], None]) -> Callable[[], None]:
    """Wrap a callback so a failure is logged instead of killing the timer."""
    def run():
        try:
            fn()
        except Exception as e:
            logging.error(f"Scheduled callback failed: {e}")
    return run
