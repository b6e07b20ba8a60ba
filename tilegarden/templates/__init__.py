"""Template catalog and resolution."""

from .registry import (
    TemplateRegistry,
    PredefinedTemplateRegistry,
    template_registry,
    validate_template,
)
from .resolver import TemplateResolver

__all__ = [
    "TemplateRegistry",
    "PredefinedTemplateRegistry",
    "template_registry",
    "validate_template",
    "TemplateResolver"
]
