"""
tilegarden: Migration and versioned persistence for garden page layouts.

Converts legacy free-form grid blocks into template-bound blocks and keeps the
block collection in durable storage with backup, restore and autosave.
"""

__version__ = "0.1.0"
__author__ = "tilegarden Project"

# Import main components
from .models import Block, LegacyBlock, Template, MigrationSummary
from .templates import TemplateRegistry, PredefinedTemplateRegistry, TemplateResolver
from .migration import BlockMigrator, needs_migration
from .storage import StoragePort, InMemoryStorage, FileStorage, DuckDBStorage, HttpStorage
from .persistence import PersistenceStore, LoadResult, EventBus
from .autosave import AutosaveCoordinator

__all__ = [
    "Block",
    "LegacyBlock",
    "Template",
    "MigrationSummary",
    "TemplateRegistry",
    "PredefinedTemplateRegistry",
    "TemplateResolver",
    "BlockMigrator",
    "needs_migration",
    "StoragePort",
    "InMemoryStorage",
    "FileStorage",
    "DuckDBStorage",
    "HttpStorage",
    "PersistenceStore",
    "LoadResult",
    "EventBus",
    "AutosaveCoordinator"
]
