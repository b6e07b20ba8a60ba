"""
Record writers used by the autosave coordinator.

A RecordWriter is whatever durably commits a garden record's edited fields:
the hosted record service in the web application, or the local persistence
store.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict

from ..persistence import PersistenceStore


class RecordWriter(ABC):
    """
    Abstract destination for autosave writes.
    """

    @abstractmethod
    def write(self, record_id: str, changes: Dict[str, Any]) -> None:
        """
        Commit changed fields of a record.

        Args:
            record_id: The owning record's identifier
            changes: Mapping with 'tiles', 'layout' and 'title'

        Raises:
            Exception: Any failure; the coordinator keeps the changes pending
        """
        pass


class StoreRecordWriter(RecordWriter):
    """
    Writes the record's tiles through a PersistenceStore.

    Only the block collection is persisted; layout and title belong to the
    hosted record service.
    """

    def __init__(self, store: PersistenceStore):
        self.store = store

    def write(self, record_id: str, changes: Dict[str, Any]) -> None:
        tiles = changes.get("tiles") or []
        self.store.save(tiles)
        logging.debug(f"Persisted {len(tiles)} tiles for record {record_id}")
