"""Debounced autosave."""

from .coordinator import AutosaveCoordinator
from .writers import RecordWriter, StoreRecordWriter

__all__ = ["AutosaveCoordinator", "RecordWriter", "StoreRecordWriter"]
