"""Versioned persistence of block collections."""

from .events import EventBus, DATA_SAVED, DATA_CLEARED
from .store import PersistenceStore, LoadResult, template_usage

__all__ = [
    "EventBus",
    "DATA_SAVED",
    "DATA_CLEARED",
    "PersistenceStore",
    "LoadResult",
    "template_usage"
]
