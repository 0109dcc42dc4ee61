"""Base model with camelCase aliases for API input and output."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for every model that crosses the HTTP boundary.

    Accepts both ``snake_case`` and ``camelCase`` on input and serializes
    ``camelCase`` with ``model_dump(by_alias=True)``.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )
