"""
DuckDB storage backend for tilegarden.

Slots live in a single DuckDB table, one row per key.
"""

import duckdb
import logging
from datetime import datetime
from typing import List, Optional

from ..errors import StorageError
from .base import StoragePort


class DuckDBStorage(StoragePort):
    """
    Stores slots as rows of a DuckDB table.
    """

    def __init__(self, db_path: str = "tilegarden.duckdb"):
        """
        Initialize the DuckDB storage.

        Args:
            db_path: Path to the DuckDB database file (":memory:" for an in-memory database)
        """
        self.db_path = db_path
        self.connection = None

    def connect(self):
        """Establish connection to the database and create the slot table."""
        self.connection = duckdb.connect(self.db_path)
        self.initialize_database()

    def disconnect(self):
        """Close the database connection."""
        if self.connection:
            self.connection.close()
            self.connection = None

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.disconnect()

    def initialize_database(self):
        """
        Create the slot table if it doesn't exist.
        """
        self._require_connection()

        self.connection.execute("""
            CREATE TABLE IF NOT EXISTS storage_slots (
                slot_key VARCHAR PRIMARY KEY,
                payload BLOB NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    def read(self, key: str) -> Optional[bytes]:
        self._require_connection()

        try:
            result = self.connection.execute("""
                SELECT payload FROM storage_slots WHERE slot_key = ?
            """, [key]).fetchone()
        except duckdb.Error as e:
            raise StorageError(f"Failed to read slot '{key}': {e}") from e

        if result is None:
            return None
        return bytes(result[0])

    def write(self, key: str, data: bytes) -> None:
        self._require_connection()

        try:
            self.connection.execute("""
                INSERT OR REPLACE INTO storage_slots (slot_key, payload, updated_at)
                VALUES (?, ?, ?)
            """, [key, bytes(data), datetime.now()])
        except duckdb.Error as e:
            raise StorageError(f"Failed to write slot '{key}': {e}") from e

        logging.debug(f"Stored {len(data)} bytes in slot '{key}'")

    def remove(self, key: str) -> None:
        self._require_connection()

        try:
            self.connection.execute("""
                DELETE FROM storage_slots WHERE slot_key = ?
            """, [key])
        except duckdb.Error as e:
            raise StorageError(f"Failed to remove slot '{key}': {e}") from e

    def list_keys(self) -> List[str]:
        """List every stored key in alphabetical order."""
        self._require_connection()

        results = self.connection.execute("""
            SELECT slot_key FROM storage_slots ORDER BY slot_key
        """).fetchall()
        return [row[0] for row in results]

    def _require_connection(self):
        if not self.connection:
            raise StorageError("Database connection not established")
