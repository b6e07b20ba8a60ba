"""
Template registry for tilegarden.

The registry is the catalog of templates blocks can be bound to. The migration
and persistence core only queries it; the abstract interface lets a host
application plug in its own catalog, while PredefinedTemplateRegistry carries
the catalog the garden builder ships with.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from ..models import Dimensions, DefaultStyles, Template, TemplateCategory, BlockType


# Square and rectangle templates that are too small for media
STANDARD_TILE_TYPES = (
    BlockType.TEXT.value,
    BlockType.THOUGHT.value,
    BlockType.QUOTE.value,
    BlockType.PROJECT.value,
    BlockType.STATUS.value,
)

# Circle templates only hold media
CIRCLE_TILE_TYPES = (BlockType.VIDEO.value, BlockType.IMAGE.value)

ALL_TILE_TYPES = tuple(member.value for member in BlockType)

MAX_TEMPLATE_WIDTH = 12


class TemplateRegistry(ABC):
    """
    Abstract catalog of templates.

    Implementations must return templates in a stable order; the resolver
    breaks ties by that order.
    """

    @abstractmethod
    def list_all(self) -> List[Template]:
        """
        Return every template in registry order.

        Returns:
            List of Template objects
        """
        pass

    @abstractmethod
    def is_compatible(self, template: Template, block_type: Optional[str]) -> bool:
        """
        Report whether a block of the given type may be bound to a template.

        Args:
            template: The template to check
            block_type: The block type tag (may be None for untyped legacy data)

        Returns:
            True if the combination is allowed
        """
        pass

    def get(self, template_id: str) -> Optional[Template]:
        """Look up a template by id."""
        for template in self.list_all():
            if template.id == template_id:
                return template
        return None


class PredefinedTemplateRegistry(TemplateRegistry):
    """
    Registry holding the built-in square, rectangle and circle templates.
    """

    def __init__(self, register_defaults: bool = True):
        """
        Initialize the registry.

        Args:
            register_defaults: Register the built-in catalog on creation
        """
        self._templates: Dict[str, Template] = {}
        if register_defaults:
            self._register_default_templates()

    def _register_default_templates(self):
        """Register the built-in catalog. Order matters for tie-breaking."""

        # Squares
        self.register(_template("small-square", "Small Square", TemplateCategory.SQUARE, 1, 1,
                                STANDARD_TILE_TYPES, "Perfect for status updates and small content"))
        self.register(_template("medium-square", "Medium Square", TemplateCategory.SQUARE, 2, 2,
                                ALL_TILE_TYPES, "Ideal for featured content and medium-sized media"))
        self.register(_template("large-square", "Large Square", TemplateCategory.SQUARE, 3, 3,
                                ALL_TILE_TYPES, "Great for showcase pieces and large content"))

        # Rectangles
        self.register(_template("small-rectangle", "Small Rectangle", TemplateCategory.RECTANGLE, 2, 1,
                                STANDARD_TILE_TYPES, "Perfect for text snippets and status updates"))
        self.register(_template("medium-rectangle", "Medium Rectangle", TemplateCategory.RECTANGLE, 3, 2,
                                ALL_TILE_TYPES, "Great for article previews and medium projects"))
        self.register(_template("wide-rectangle", "Wide Rectangle", TemplateCategory.RECTANGLE, 4, 2,
                                ALL_TILE_TYPES, "Ideal for banner content and wide images"))
        self.register(_template("large-rectangle", "Large Rectangle", TemplateCategory.RECTANGLE, 6, 3,
                                ALL_TILE_TYPES, "Perfect for featured projects and detailed content"))

        # Circles use square footprints with circular styling
        self.register(_template("small-circle", "Small Circle", TemplateCategory.CIRCLE, 1, 1,
                                CIRCLE_TILE_TYPES, "Perfect for profile images and icons"))
        self.register(_template("medium-circle", "Medium Circle", TemplateCategory.CIRCLE, 2, 2,
                                CIRCLE_TILE_TYPES, "Great for featured images and avatars"))
        self.register(_template("large-circle", "Large Circle", TemplateCategory.CIRCLE, 3, 3,
                                CIRCLE_TILE_TYPES, "Ideal for hero images and main visuals"))

    def register(self, template: Template) -> None:
        """
        Register a template.

        Args:
            template: The template to register

        Raises:
            ValueError: If the template id is already registered
        """
        if template.id in self._templates:
            raise ValueError(f"Template id already registered: {template.id!r}")
        self._templates[template.id] = template

    def list_all(self) -> List[Template]:
        return list(self._templates.values())

    def get(self, template_id: str) -> Optional[Template]:
        return self._templates.get(template_id)

    def is_compatible(self, template: Template, block_type: Optional[str]) -> bool:
        if not block_type:
            return False
        if block_type not in template.allowed_tile_types:
            return False
        if template.category == TemplateCategory.CIRCLE and block_type not in CIRCLE_TILE_TYPES:
            return False
        return True

    def templates_for_type(self, block_type: str) -> List[Template]:
        """List the templates a block type may use."""
        return [t for t in self.list_all() if self.is_compatible(t, block_type)]

    def validate_all(self) -> List[str]:
        """
        Check every registered template for integrity.

        Returns:
            List of error messages, empty when the catalog is sound
        """
        errors = []
        for template in self.list_all():
            errors.extend(f"Template '{template.id}': {e}" for e in validate_template(template))
        return errors


def validate_template(template: Template) -> List[str]:
    """
    Validate a single template definition.

    Args:
        template: The template to check

    Returns:
        List of error messages
    """
    errors = []

    if not template.id.strip():
        errors.append("Template must have a valid ID")
    if not template.name.strip():
        errors.append("Template must have a valid name")

    dims = template.dimensions
    if dims.w > MAX_TEMPLATE_WIDTH:
        errors.append(f"Template width cannot exceed {MAX_TEMPLATE_WIDTH} grid units")

    if abs(template.aspect_ratio - dims.w / dims.h) > 0.01:
        errors.append("Template aspect ratio does not match dimensions")

    if template.category in (TemplateCategory.SQUARE, TemplateCategory.CIRCLE) and dims.w != dims.h:
        errors.append(f"{template.category.value} templates must have equal width and height")

    if not template.allowed_tile_types:
        errors.append("Template must specify at least one allowed tile type")

    if template.category == TemplateCategory.CIRCLE:
        invalid = [t for t in template.allowed_tile_types if t not in CIRCLE_TILE_TYPES]
        if invalid:
            errors.append(f"Circle templates can only allow video and image tile types, found: {', '.join(invalid)}")

    return errors


def _template(template_id: str, name: str, category: TemplateCategory, w: int, h: int,
              allowed: tuple, description: str) -> Template:
    styles = DefaultStyles(border_radius="50%") if category == TemplateCategory.CIRCLE else DefaultStyles()
    return Template(
        id=template_id,
        name=name,
        category=category,
        dimensions=Dimensions(w=w, h=h),
        aspect_ratio=w / h,
        allowed_tile_types=allowed,
        default_styles=styles,
        description=description
    )


# Global registry instance
template_registry = PredefinedTemplateRegistry()
