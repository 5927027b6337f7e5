"""Shared schema base: camelCase on the wire, snake_case in Python."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel

from app.core.security import NAME_MAX_LEN, NAME_MIN_LEN

# Trimmed before the length check, so whitespace-only names are rejected.
PersonName = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN)
]
RoleName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
PermissionName = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=3, max_length=100)
]


class CamelModel(BaseModel):
    """Base for request/response bodies; accepts both camelCase and field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    """Plain acknowledgement body."""

    message: str = Field(..., description="Human-readable result")


def total_pages(total: int, limit: int) -> int:
    """Number of pages needed for total items at limit per page."""
    return (total + limit - 1) // limit if limit > 0 else 0
