"""Legacy data migration."""

from .detection import DocumentShape, detect_document_shape, extract_blocks, needs_migration
from .preserver import ContentPreserver
from .validator import MigrationValidator, ValidationReport
from .migrator import BlockMigrator, MigrationBatch, auto_migrate

__all__ = [
    "DocumentShape",
    "detect_document_shape",
    "extract_blocks",
    "needs_migration",
    "ContentPreserver",
    "MigrationValidator",
    "ValidationReport",
    "BlockMigrator",
    "MigrationBatch",
    "auto_migrate"
]
