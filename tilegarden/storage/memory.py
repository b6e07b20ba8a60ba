"""In-memory storage backend."""

from typing import Dict, Optional

from .base import StoragePort


class InMemoryStorage(StoragePort):
    """
    Keeps slots in a dict. Used for tests and throwaway sessions.
    """

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = dict(initial or {})

    def read(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def write(self, key: str, data: bytes) -> None:
        self._data[key] = bytes(data)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return list(self._data.keys())
