"""Data models for tilegarden."""

from .templates import Template, TemplateCategory, Dimensions, DefaultStyles
from .blocks import Block, BlockType, LegacyBlock, Position
from .migration import MigrationResult, MigrationSummary
from .envelope import EnvelopeMetadata, PersistedEnvelope, StorageInfo, StoredBlock
from .records import GardenRecord, PendingChanges, SaveStatus, LocalSnapshot

__all__ = [
    "Template",
    "TemplateCategory",
    "Dimensions",
    "DefaultStyles",
    "Block",
    "BlockType",
    "LegacyBlock",
    "Position",
    "MigrationResult",
    "MigrationSummary",
    "EnvelopeMetadata",
    "PersistedEnvelope",
    "StorageInfo",
    "StoredBlock",
    "GardenRecord",
    "PendingChanges",
    "SaveStatus",
    "LocalSnapshot"
]
