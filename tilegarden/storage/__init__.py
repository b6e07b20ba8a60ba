"""Storage backends for the live and backup slots."""

import logging
from typing import Optional

from ..config import ConfigManager, config as default_config
from .base import StoragePort
from .memory import InMemoryStorage
from .file import FileStorage
from .duckdb_store import DuckDBStorage
from .remote import HttpStorage


def create_storage(cfg: Optional[ConfigManager] = None) -> StoragePort:
    """
    Build the storage backend named in the configuration.

    DuckDB storage is returned connected; callers should disconnect it
    when done.

    Args:
        cfg: Configuration to read (defaults to the global configuration)

    Returns:
        A StoragePort implementation

    Raises:
        ValueError: If the configured backend is unknown
    """
    cfg = cfg or default_config
    backend = cfg.storage_backend

    if backend == "memory":
        storage = InMemoryStorage()
    elif backend == "file":
        storage = FileStorage(cfg.storage_directory)
    elif backend == "duckdb":
        storage = DuckDBStorage(cfg.database_filename)
        storage.connect()
    elif backend == "http":
        storage = HttpStorage(cfg.storage_base_url, timeout=cfg.storage_timeout)
    else:
        raise ValueError(f"Unknown storage backend: {backend!r}")

    logging.info(f"Using {backend} storage backend")
    return storage


__all__ = [
    "StoragePort",
    "InMemoryStorage",
    "FileStorage",
    "DuckDBStorage",
    "HttpStorage",
    "create_storage"
]
