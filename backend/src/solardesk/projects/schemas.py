"""Pydantic schemas for projects"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..common.schemas import ResourceSchema, UpdateSchema, strip_required
from .status import ProjectStatus


class ProjectCreate(BaseModel):
    """Schema for creating a project for an existing customer"""
    model_config = ConfigDict(extra="forbid")

    customer_id: UUID
    name: str = Field(..., min_length=1, max_length=200)
    address: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=5000)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return strip_required(v, "name")


class ProjectUpdate(UpdateSchema):
    """Partial update of project details. Status has its own endpoint."""
    non_nullable = ("name",)

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    address: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=5000)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return strip_required(v, "name")


class ProjectStatusUpdate(BaseModel):
    """Status change request. Cancelling requires a reason."""
    model_config = ConfigDict(extra="forbid")

    status: ProjectStatus
    reason: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def require_cancel_reason(self):
        if self.reason is not None:
            self.reason = self.reason.strip() or None
        if self.status == ProjectStatus.CANCELLED and not self.reason:
            raise ValueError("reason is required when cancelling a project")
        return self


class ProjectResponse(ResourceSchema):
    """Project as returned by the API"""
    id: UUID
    organization_id: UUID
    customer_id: UUID
    name: str
    address: Optional[str] = None
    notes: Optional[str] = None
    status: ProjectStatus
    cancel_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
