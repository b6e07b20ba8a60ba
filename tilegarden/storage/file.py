"""
File storage backend.

Each key is stored as one file in a directory. Writes go to a temporary file
first and are moved into place, so a crash mid-write never leaves a truncated
slot behind.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from ..errors import StorageError
from .base import StoragePort


class FileStorage(StoragePort):
    """
    Stores each slot as a file inside a directory.
    """

    def __init__(self, directory: str, suffix: str = ".json"):
        """
        Initialize the file storage.

        Args:
            directory: Directory holding the slot files (created on first write)
            suffix: File extension for slot files
        """
        self.directory = Path(directory)
        self.suffix = suffix

    def path_for(self, key: str) -> Path:
        """Map a key to a file path inside the storage directory; distinct keys never share a file."""
        if not key:
            raise StorageError(f"Invalid storage key: {key!r}")
        safe_name = quote(key, safe='')
        return self.directory / f"{safe_name}{self.suffix}"

    def read(self, key: str) -> Optional[bytes]:
        path = self.path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def write(self, key: str, data: bytes) -> None:
        path = self.path_for(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=str(self.directory), prefix=".tmp-")
            try:
                with os.fdopen(fd, 'wb') as f:
                    f.write(data)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}") from e

        logging.debug(f"Wrote {len(data)} bytes to {path}")

    def remove(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Failed to remove {path}: {e}") from e
