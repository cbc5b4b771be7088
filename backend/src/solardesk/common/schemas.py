"""Schemas shared by all resource routers.

Every successful response body is ``{"value": ...}``; list responses add
``count``, the number of matching rows in the caller's organization.
"""

from typing import ClassVar, Generic, List, Tuple, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, model_validator

T = TypeVar("T")


class ValueResponse(BaseModel, Generic[T]):
    value: T


class ListResponse(BaseModel, Generic[T]):
    value: List[T]
    count: int


class DeletedRef(BaseModel):
    id: UUID


class ResourceSchema(BaseModel):
    """Base for resource response models read from ORM rows."""
    model_config = ConfigDict(from_attributes=True)


class UpdateSchema(BaseModel):
    """Base for partial-update payloads.

    Unknown keys are rejected, at least one field must be present, and the
    fields named in ``non_nullable`` may not be set to null.
    """
    model_config = ConfigDict(extra="forbid")

    non_nullable: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def check_fields(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        for field in self.non_nullable:
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self

    def changes(self) -> dict:
        """Submitted fields only, as plain Python values."""
        return self.model_dump(exclude_unset=True)


def strip_required(value: str, field: str) -> str:
    """Trim a required text field; blank values are rejected."""
    if not value.strip():
        raise ValueError(f"{field} cannot be empty")
    return value.strip()
