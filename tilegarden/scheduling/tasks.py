"""
Background task handles.

Work that must not block its caller, like re-saving freshly migrated data, is
wrapped in a BackgroundTask. The caller gets the handle and can wait for it,
inspect its outcome or cancel it before it starts.
"""

import logging
import threading
from enum import Enum
from typing import Any, Callable, List, Optional

from .scheduler import Cancellable, Scheduler


class TaskState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


FINISHED_STATES = (TaskState.SUCCEEDED, TaskState.FAILED, TaskState.CANCELLED)


class BackgroundTask:
    """
    A unit of deferred work with an observable outcome.

    Failures are logged and recorded on the handle; they are never re-raised
    into whoever scheduled the task.
    """

    def __init__(self, name: str, fn: Callable[[], Any]):
        self.name = name
        self._fn = fn
        self.state = TaskState.PENDING
        self.result: Any = None
        self.error: Optional[BaseException] = None
        self._handle: Optional[Cancellable] = None
        self._lock = threading.Lock()
        self._finished = threading.Event()
        self._callbacks: List[Callable[["BackgroundTask"], None]] = []

    def schedule(self, scheduler: Scheduler, delay: float = 0.0) -> "BackgroundTask":
        """Hand the task to a scheduler. Returns self for chaining."""
        self._handle = scheduler.after(delay, self.run)
        return self

    def run(self) -> None:
        """Execute the task now. Does nothing unless the task is still pending."""
        with self._lock:
            if self.state != TaskState.PENDING:
                return
            self.state = TaskState.RUNNING

        try:
            self.result = self._fn()
            self.state = TaskState.SUCCEEDED
        except Exception as e:
            self.error = e
            self.state = TaskState.FAILED
            logging.error(f"Background task '{self.name}' failed: {e}")
        finally:
            self._finish()

    def cancel(self) -> bool:
        """
        Cancel the task if it has not started.

        Returns:
            True if the task was cancelled
        """
        with self._lock:
            if self.state != TaskState.PENDING:
                return False
            self.state = TaskState.CANCELLED

        if self._handle is not None:
            self._handle.cancel()
        self._finish()
        return True

    @property
    def done(self) -> bool:
        return self.state in FINISHED_STATES

    @property
    def succeeded(self) -> bool:
        return self.state == TaskState.SUCCEEDED

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the task finishes.

        Only meaningful with a scheduler that runs on another thread.

        Returns:
            True if the task finished within the timeout
        """
        return self._finished.wait(timeout)

    def add_done_callback(self, callback: Callable[["BackgroundTask"], None]) -> None:
        """Call back once finished; immediately if already finished."""
        with self._lock:
            if not self._finished.is_set():
                self._callbacks.append(callback)
                return
        callback(self)

    def _finish(self) -> None:
        with self._lock:
            self._finished.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback(self)
            except Exception as e:
                logging.error(f"Done callback for task '{self.name}' failed: {e}")

    def __repr__(self):
        return f"BackgroundTask(name='{self.name}', state={self.state.value})"
