"""
Block models for tilegarden.

`Block` is the current schema: every block is bound to a template.
`LegacyBlock` describes pre-template records with raw grid geometry; nothing
about it can be trusted.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .base import GardenModel
from .templates import Dimensions, Template


class BlockType(str, Enum):
    """The block types the migration rules know about."""

    TEXT = "text"
    THOUGHT = "thought"
    QUOTE = "quote"
    IMAGE = "image"
    VIDEO = "video"
    PROJECT = "project"
    STATUS = "status"

    @classmethod
    def parse(cls, value: Any) -> Optional["BlockType"]:
        """Return the matching member, or None for unknown types."""
        try:
            return cls(value)
        except ValueError:
            return None


class Position(GardenModel):
    """Grid coordinates of a block."""

    x: int = Field(default=0, description="Column in grid units")
    y: int = Field(default=0, description="Row in grid units")


class Block(GardenModel):
    """
    One positioned, typed content item bound to a template.

    Block types are open to extension, so `type` is a plain string; the known
    values are listed in BlockType. Unknown keys are kept so that newer
    documents survive a round trip through older code.
    """

    model_config = ConfigDict(extra="allow", alias_generator=to_camel, populate_by_name=True)

    id: str = Field(
        ...,
        description="Identifier, unique within a collection"
    )

    type: str = Field(
        ...,
        description="Block type tag (see BlockType)"
    )

    content: Dict[str, Any] = Field(
        default_factory=dict,
        description="Type-specific content payload"
    )

    template: Template = Field(
        ...,
        description="The template this block is bound to"
    )

    position: Position = Field(
        default_factory=Position,
        description="Grid position of the block"
    )

    created_at: datetime = Field(
        ...,
        description="When the block was created"
    )

    updated_at: datetime = Field(
        ...,
        description="When the block was last saved"
    )


class LegacyBlock(BaseModel):
    """
    A pre-template block record.

    Geometry is explicit (x, y, w, h) and content is free-form. Every field
    is optional because legacy data is untrusted input.
    """

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    type: Optional[str] = None
    content: Any = None
    x: Optional[float] = None
    y: Optional[float] = None
    w: Optional[float] = None
    h: Optional[float] = None

    # Legacy-only fields
    size: Optional[str] = None
    category: Optional[str] = None
    template: Optional[Any] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def dimensions(self) -> Optional[Dimensions]:
        """Legacy geometry as Dimensions, or None if missing or unusable."""
        if self.w is None or self.h is None:
            return None
        try:
            return Dimensions(w=self.w, h=self.h)
        except ValidationError:
            return None

    @property
    def position(self) -> Position:
        return Position(x=int(self.x or 0), y=int(self.y or 0))

    def size_label(self) -> str:
        """Geometry formatted for messages, e.g. '2x3'."""
        return f"{_fmt(self.w)}x{_fmt(self.h)}"


def _fmt(value: Optional[float]) -> str:
    if value is None:
        return "?"
    if float(value).is_integer():
        return str(int(value))
    return str(value)
