"""
Validation of migrated blocks.

Errors reject the block; warnings flag possible information loss but leave
the block usable.
"""

from dataclasses import dataclass, field
from typing import List

from ..models import Block, BlockType, LegacyBlock
from ..templates import TemplateRegistry
from .preserver import is_empty, normalize_legacy_content


@dataclass
class ValidationReport:
    """Outcome of validating one migrated block."""
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


# Type-defining content field and how a loss is described
DEFINING_FIELDS = {
    BlockType.TEXT: ("text", "Text content may have been lost"),
    BlockType.IMAGE: ("src", "Image source may have been lost"),
    BlockType.VIDEO: ("src", "Video source may have been lost"),
}


class MigrationValidator:
    """
    Checks a migrated block for completeness and template compatibility.
    """

    def __init__(self, registry: TemplateRegistry):
        self.registry = registry

    def validate(self, legacy: LegacyBlock, migrated: Block) -> ValidationReport:
        """
        Validate a migrated block against the legacy record it came from.

        Args:
            legacy: The legacy block the candidate was built from
            migrated: The candidate block

        Returns:
            ValidationReport with warnings and errors
        """
        report = ValidationReport()

        if not migrated.id:
            report.errors.append("Missing required field: id")
        if not migrated.type:
            report.errors.append("Missing required field: type")

        template = migrated.template
        if template is None:
            report.errors.append("Missing required field: template")
        elif not self.registry.is_compatible(template, migrated.type):
            report.errors.append(
                f"Template {template.id} is not compatible with tile type {migrated.type}"
            )

        if template is not None:
            dims = template.dimensions
            if legacy.w != dims.w or legacy.h != dims.h:
                report.warnings.append(f"Dimensions changed from {legacy.size_label()} to {dims}")

        legacy_content = normalize_legacy_content(legacy.content)
        if not is_empty(legacy.content) and is_empty(migrated.content):
            report.warnings.append("Content may have been lost during migration")

        known_type = BlockType.parse(migrated.type)
        if known_type in DEFINING_FIELDS:
            field_name, message = DEFINING_FIELDS[known_type]
            migrated_value = (migrated.content or {}).get(field_name)
            legacy_has_data = any(not is_empty(v) for v in legacy_content.values())
            if is_empty(migrated_value) and legacy_has_data:
                report.warnings.append(f"{message} ({field_name})")

        return report
