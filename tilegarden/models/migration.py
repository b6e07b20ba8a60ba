"""Migration result models."""

from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .base import GardenModel
from .blocks import Block


class MigrationResult(BaseModel):
    """
    The outcome of migrating a single legacy block.
    """

    success: bool = Field(
        ...,
        description="True when the block migrated without fatal errors"
    )

    block: Optional[Block] = Field(
        default=None,
        description="The migrated block; always None when success is False"
    )

    warnings: List[str] = Field(
        default_factory=list,
        description="Non-fatal signals of possible information loss"
    )

    errors: List[str] = Field(
        default_factory=list,
        description="Fatal problems; the block was rejected"
    )


class MigrationSummary(GardenModel):
    """
    Aggregate outcome of migrating a batch. Built once, never mutated.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    total_items: int = Field(..., description="Number of legacy blocks processed")
    successful_migrations: int = Field(..., description="Blocks migrated successfully")
    failed_migrations: int = Field(..., description="Blocks rejected")
    warnings: Tuple[str, ...] = Field(
        default_factory=tuple,
        description="Every per-block warning, prefixed with the block id"
    )
    errors: Tuple[str, ...] = Field(
        default_factory=tuple,
        description="Every per-block error, prefixed with the block id"
    )
