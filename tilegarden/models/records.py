"""
Models for the owning garden record and its autosave state.
"""

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import Field

from .base import GardenModel


class GardenRecord(GardenModel):
    """The last committed state of a garden as known locally."""

    id: str = Field(..., description="Record identifier")
    title: str = Field(default="", description="Garden title")
    tiles: List[Any] = Field(default_factory=list, description="Committed tiles")
    layout: Any = Field(default=None, description="Committed layout")
    updated_at: Optional[datetime] = Field(default=None, description="Last successful write")


class PendingChanges(GardenModel):
    """Fields edited since the last successful write. None means untouched."""

    tiles: Optional[List[Any]] = None
    layout: Optional[Any] = None
    title: Optional[str] = None

    def is_empty(self) -> bool:
        return self.tiles is None and self.layout is None and self.title is None


class SaveStatus(GardenModel):
    """What the user sees about the save state."""

    status: Literal["idle", "saving", "saved", "error"] = "idle"
    last_saved: Optional[datetime] = None
    has_unsaved_changes: bool = False
    error: Optional[str] = None


class LocalSnapshot(GardenModel):
    """Periodic local safety copy of unsaved work."""

    garden_id: str
    tiles: List[Any] = Field(default_factory=list)
    layout: Any = None
    title: str = ""
    timestamp: datetime
