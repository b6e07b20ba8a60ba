"""Shared pydantic base for tilegarden models."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class GardenModel(BaseModel):
    """
    Base model using camelCase keys in serialized form.

    Documents written by the browser application use camelCase, so dumps go
    through aliases while Python code keeps snake_case attribute names.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        """Dump to a JSON-compatible dict using the portable key names."""
        return self.model_dump(mode="json", by_alias=True)
