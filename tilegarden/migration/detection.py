"""
Format detection for stored and imported garden documents.

Older versions of the garden builder wrote several different shapes. Instead
of testing optional fields ad hoc, every document is classified into one
DocumentShape, checked in a fixed priority order, and each shape has exactly
one extraction rule.
"""

from enum import Enum
from typing import Any, List


class DocumentShape(str, Enum):
    """Known document layouts, in detection priority order."""

    CURRENT = "current"              # {"version": ..., "blocks": [...]}
    ROOT_SEQUENCE = "root_sequence"  # [...]
    BLOCKS = "blocks"                # {"blocks": [...]} without a version
    LAYOUT = "layout"                # grid-layout export {"layout": [...]}
    ITEMS = "items"                  # {"items": [...]}
    TILES = "tiles"                  # {"tiles": [...]}
    NONE = "none"


# Legacy container fields, highest priority first
LEGACY_FIELDS = (
    (DocumentShape.BLOCKS, "blocks"),
    (DocumentShape.LAYOUT, "layout"),
    (DocumentShape.ITEMS, "items"),
    (DocumentShape.TILES, "tiles"),
)


def detect_document_shape(document: Any) -> DocumentShape:
    """
    Classify a decoded document.

    Args:
        document: The decoded JSON value

    Returns:
        The first matching DocumentShape
    """
    if isinstance(document, list):
        return DocumentShape.ROOT_SEQUENCE

    if not isinstance(document, dict):
        return DocumentShape.NONE

    if document.get("version") and isinstance(document.get("blocks"), list):
        return DocumentShape.CURRENT

    for shape, field_name in LEGACY_FIELDS:
        if isinstance(document.get(field_name), list):
            return shape

    return DocumentShape.NONE


def extract_blocks(document: Any, shape: DocumentShape) -> List[Any]:
    """
    Pull the raw block sequence out of a document of a known shape.

    Args:
        document: The decoded JSON value
        shape: The shape returned by detect_document_shape

    Returns:
        The raw block list (empty for DocumentShape.NONE)
    """
    if shape == DocumentShape.NONE:
        return []
    if shape == DocumentShape.ROOT_SEQUENCE:
        return list(document)
    if shape == DocumentShape.CURRENT:
        return list(document["blocks"])
    return list(document[shape.value])


def needs_migration(data: Any) -> bool:
    """
    Decide whether a raw block sequence is legacy data.

    True only when data is a list and at least one element is a dict without
    a bound template that still carries legacy width or height.
    """
    if not isinstance(data, list):
        return False

    return any(
        isinstance(item, dict)
        and not item.get("template")
        and ("w" in item or "h" in item)
        for item in data
    )


def has_identity(item: Any) -> bool:
    """True for dict elements carrying both an id and a type."""
    return isinstance(item, dict) and bool(item.get("id")) and bool(item.get("type"))
