"""
Base Schema Classes for Pydantic Models

Persisted records keep the camelCase keys of the original browser storage
layout (programName, srpPerCaseVatin, ...). Python code works with
snake_case attributes; the alias generator bridges the two.

RULE: Every schema that is persisted or returned by the API MUST inherit from
CamelModel so that both spellings are accepted on input and camelCase is
emitted on output.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base class for persisted and API-facing schemas.

    Features:
    - camelCase aliases for every field
    - Population by field name or alias
    - Unknown keys ignored (old records may carry extra fields)
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='ignore',
    )

    def to_storage(self) -> dict:
        """Serialize for persistence: camelCase keys, absent fields dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class BaseUpdateSchema(CamelModel):
    """
    Base class for update/patch schemas.

    All fields are optional by default for partial updates.
    """
    pass


def blank_to_none(value):
    """Normalise empty or whitespace-only strings to None."""
    if isinstance(value, str) and not value.strip():
        return None
    return value
