"""
Template models for tilegarden.

Templates are owned by a registry and never created or mutated by the
migration and persistence core; they are therefore frozen.
"""

from enum import Enum
from typing import Optional, Tuple

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from .base import GardenModel


class TemplateCategory(str, Enum):
    """Shape families a template can belong to."""

    SQUARE = "square"
    RECTANGLE = "rectangle"
    CIRCLE = "circle"


class Dimensions(GardenModel):
    """Grid footprint in grid units."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    w: int = Field(..., gt=0, description="Width in grid units")
    h: int = Field(..., gt=0, description="Height in grid units")

    @property
    def area(self) -> int:
        return self.w * self.h

    def __str__(self) -> str:
        return f"{self.w}x{self.h}"


class DefaultStyles(GardenModel):
    """Default styling a template applies to the blocks bound to it."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    background_color: Optional[str] = Field(
        default=None,
        description="Background color used when a block does not carry its own"
    )

    border_radius: Optional[str] = Field(
        default=None,
        description="CSS border radius, e.g. '50%' for circles"
    )


class Template(GardenModel):
    """
    A named, registry-defined shape a block can be bound to.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(
        ...,
        description="Unique template identifier (e.g. 'medium-square')"
    )

    name: str = Field(
        ...,
        description="Human-readable template name"
    )

    category: TemplateCategory = Field(
        ...,
        description="Shape family of the template"
    )

    dimensions: Dimensions = Field(
        ...,
        description="Declared grid footprint"
    )

    aspect_ratio: float = Field(
        ...,
        description="Width divided by height"
    )

    allowed_tile_types: Tuple[str, ...] = Field(
        default_factory=tuple,
        description="Block types this template may hold"
    )

    default_styles: DefaultStyles = Field(
        default_factory=DefaultStyles,
        description="Default styling for blocks bound to this template"
    )

    description: Optional[str] = Field(
        default=None,
        description="Short description shown in template pickers"
    )
