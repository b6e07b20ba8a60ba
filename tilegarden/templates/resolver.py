"""
Template resolution for legacy geometry.

Legacy blocks carry raw w/h grid sizes. The resolver picks the registry
template that best matches that shape while keeping the block type legal.
"""

import logging
from typing import List, Optional

from ..models import Dimensions, Template
from .registry import TemplateRegistry


class TemplateResolver:
    """
    Finds the best-matching template for legacy dimensions and a block type.

    Policy, in order:
        1. an exact-dimension template compatible with the type;
        2. the first exact-dimension template, even if incompatible, so the
           legacy footprint is kept and validation reports the mismatch;
        3. when no template has the exact dimensions, the compatible
           template with the nearest area (registry order breaks ties);
        4. None.
    """

    def __init__(self, registry: TemplateRegistry):
        self.registry = registry

    def resolve(self, dimensions: Optional[Dimensions], block_type: Optional[str]) -> Optional[Template]:
        """
        Resolve a template for a legacy block.

        Args:
            dimensions: Legacy grid size, or None when the block had none
            block_type: The legacy block type

        Returns:
            The chosen template, or None if nothing fits
        """
        if dimensions is None:
            return None

        templates = self.registry.list_all()
        exact = [t for t in templates if t.dimensions == dimensions]

        for template in exact:
            if self.registry.is_compatible(template, block_type):
                return template

        if exact:
            logging.debug(f"No {dimensions} template accepts '{block_type}', keeping {exact[0].id}")
            return exact[0]

        return self._nearest_compatible(templates, dimensions, block_type)

    def _nearest_compatible(self, templates: List[Template], dimensions: Dimensions,
                            block_type: Optional[str]) -> Optional[Template]:
        target_area = dimensions.area
        closest = None
        closest_diff = None

        for template in templates:
            if not self.registry.is_compatible(template, block_type):
                continue
            diff = abs(template.dimensions.area - target_area)
            # Strict comparison keeps the first template on ties
            if closest_diff is None or diff < closest_diff:
                closest = template
                closest_diff = diff

        return closest
