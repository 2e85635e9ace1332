"""Base model configuration for serialized report structures."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Model(BaseModel):
    """Immutable base model using camelCase keys on the wire.

    Fields are populated by their Python names in code and by their camelCase
    aliases when validating serialized reports.
    """

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )
