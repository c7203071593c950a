"""Base schemas with common configuration."""
from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with common configuration for all API responses.

    Field names are snake_case in Python; the public JSON keys are set per
    field through ``alias``.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )
