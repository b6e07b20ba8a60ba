"""
Persisted envelope models for tilegarden.

The envelope is the versioned container written to the live slot and used as
the portable export format.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import Field

from .base import GardenModel
from .blocks import Block


class EnvelopeMetadata(GardenModel):
    """Metadata derived from the block collection at save time."""

    total_blocks: int = Field(..., description="Number of blocks in the envelope")
    template_usage: Dict[str, int] = Field(
        default_factory=dict,
        description="Template id -> number of blocks bound to it"
    )
    last_modified: datetime = Field(..., description="When the envelope was written")


# A parsed Block, or the raw mapping of an element that does not parse as one
StoredBlock = Union[Block, Dict[str, Any]]


class PersistedEnvelope(GardenModel):
    """A versioned block collection as written to storage or exported."""

    version: str = Field(..., description="Envelope format version")
    timestamp: datetime = Field(..., description="Capture time")
    blocks: List[StoredBlock] = Field(default_factory=list, description="The ordered block collection")
    metadata: EnvelopeMetadata = Field(..., description="Derived metadata")


class StorageInfo(GardenModel):
    """Read-only view of what the live and backup slots currently hold."""

    has_data: bool
    has_backup: bool
    data_size: int = Field(0, description="Byte size of the live slot")
    backup_size: int = Field(0, description="Byte size of the backup slot")
    last_modified: Optional[str] = Field(
        default=None,
        description="Best available last-modified timestamp, if known"
    )
