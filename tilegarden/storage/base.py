"""
Storage port for tilegarden.

The persistence store never touches a concrete backend directly. Anything
that can read, write and remove opaque bytes under a string key can hold the
live and backup slots: a directory on disk, a DuckDB file, a remote service or
plain memory.
"""

from abc import ABC, abstractmethod
from typing import Optional


class StoragePort(ABC):
    """
    Abstract key/value storage for encoded envelopes.

    Implementations raise StorageError on backend failures. Reading a key that
    was never written returns None rather than raising.
    """

    @abstractmethod
    def read(self, key: str) -> Optional[bytes]:
        """
        Read the bytes stored under a key.

        Args:
            key: Slot key

        Returns:
            The stored bytes, or None if the key is absent
        """
        pass

    @abstractmethod
    def write(self, key: str, data: bytes) -> None:
        """
        Store bytes under a key, replacing any previous value.

        Args:
            key: Slot key
            data: Bytes to store
        """
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """
        Remove a key. Removing an absent key is not an error.

        Args:
            key: Slot key
        """
        pass

    def exists(self, key: str) -> bool:
        """Check whether a key currently holds data."""
        return self.read(key) is not None
