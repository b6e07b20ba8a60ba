"""
Legacy block migration for tilegarden.

This module binds legacy blocks to templates, normalizes their content and
validates the result, one block at a time or over a whole collection.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Tuple

from ..clock import Clock, utc_now
from ..models import Block, LegacyBlock, MigrationResult, MigrationSummary
from ..templates import TemplateRegistry, TemplateResolver, template_registry
from .detection import needs_migration
from .preserver import ContentPreserver
from .validator import MigrationValidator


@dataclass
class MigrationBatch:
    """Blocks that migrated successfully plus the batch summary."""
    blocks: List[Block] = field(default_factory=list)
    summary: Optional[MigrationSummary] = None


class BlockMigrator:
    """
    Migrates legacy blocks to the template-based schema.

    The order is fixed: resolve a template, preserve content, build the
    candidate block, validate. A block that fails validation is never handed
    back to the caller.
    """

    def __init__(self, registry: Optional[TemplateRegistry] = None, clock: Clock = utc_now):
        """
        Initialize the migrator.

        Args:
            registry: Template registry to resolve against (defaults to the built-in catalog)
            clock: Time source for creation/update timestamps
        """
        self.registry = registry or template_registry
        self.resolver = TemplateResolver(self.registry)
        self.preserver = ContentPreserver()
        self.validator = MigrationValidator(self.registry)
        self.clock = clock

    def migrate_one(self, raw: Any) -> MigrationResult:
        """
        Migrate a single legacy block.

        Args:
            raw: The legacy record (dict or LegacyBlock)

        Returns:
            MigrationResult; never raises
        """
        warnings: List[str] = []
        errors: List[str] = []

        try:
            legacy = raw if isinstance(raw, LegacyBlock) else LegacyBlock.model_validate(raw)

            template = self.resolver.resolve(legacy.dimensions, legacy.type)
            if template is None:
                errors.append(
                    f"No suitable template found for dimensions {legacy.size_label()} and type {legacy.type}"
                )
                return MigrationResult(success=False, warnings=warnings, errors=errors)

            content = self.preserver.preserve(legacy.content, legacy.type, template)

            now = self.clock()
            # Built unvalidated so the validator can report missing fields itself
            candidate = Block.model_construct(
                id=legacy.id,
                type=legacy.type,
                content=content,
                template=template,
                position=legacy.position,
                created_at=now,
                updated_at=now
            )

            report = self.validator.validate(legacy, candidate)
            warnings.extend(report.warnings)
            errors.extend(report.errors)

            if not report.valid:
                return MigrationResult(success=False, warnings=warnings, errors=errors)

            return MigrationResult(success=True, block=candidate, warnings=warnings, errors=errors)

        except Exception as e:
            errors.append(f"Migration failed: {e}")
            return MigrationResult(success=False, warnings=warnings, errors=errors)

    def migrate_many(self, raws: Iterable[Any]) -> MigrationBatch:
        """
        Migrate a collection; one block's failure never stops the others.

        Args:
            raws: Legacy records in collection order

        Returns:
            MigrationBatch with successful blocks in input order and a summary
        """
        blocks: List[Block] = []
        all_warnings: List[str] = []
        all_errors: List[str] = []
        total = 0
        failed = 0

        for raw in raws:
            total += 1
            result = self.migrate_one(raw)
            block_id = _raw_id(raw)

            if result.success and result.block is not None:
                blocks.append(result.block)
            else:
                failed += 1

            all_warnings.extend(f"Block {block_id}: {w}" for w in result.warnings)
            all_errors.extend(f"Block {block_id}: {e}" for e in result.errors)

        summary = MigrationSummary(
            total_items=total,
            successful_migrations=len(blocks),
            failed_migrations=failed,
            warnings=tuple(all_warnings),
            errors=tuple(all_errors)
        )

        logging.info(
            f"Migrated {summary.successful_migrations}/{summary.total_items} legacy blocks "
            f"({summary.failed_migrations} failed, {len(all_warnings)} warnings)"
        )
        return MigrationBatch(blocks=blocks, summary=summary)


def auto_migrate(data: Any, migrator: Optional[BlockMigrator] = None) -> Tuple[bool, Optional[MigrationBatch]]:
    """
    Migrate data only if it looks like legacy data.

    Args:
        data: A raw block sequence
        migrator: Migrator to use (a default one is created if omitted)

    Returns:
        (migration_needed, batch or None)
    """
    if not needs_migration(data):
        return False, None
    return True, (migrator or BlockMigrator()).migrate_many(data)


def _raw_id(raw: Any) -> Any:
    if isinstance(raw, LegacyBlock):
        return raw.id
    if isinstance(raw, dict):
        return raw.get("id")
    return None
