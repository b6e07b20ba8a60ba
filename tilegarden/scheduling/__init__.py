"""Timers and background tasks."""

from .scheduler import (
    Cancellable,
    Scheduler,
    ManualScheduler,
    AsyncioScheduler,
    ThreadingScheduler,
)
from .tasks import BackgroundTask, TaskState

__all__ = [
    "Cancellable",
    "Scheduler",
    "ManualScheduler",
    "AsyncioScheduler",
    "ThreadingScheduler",
    "BackgroundTask",
    "TaskState"
]
