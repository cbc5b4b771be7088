"""Pydantic schemas for handovers"""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..common.schemas import ResourceSchema, UpdateSchema, strip_required
from .status import HandoverStatus, HandoverType


class ChecklistItem(BaseModel):
    """One line of the handover checklist; ``status`` is True once checked."""
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=200)
    status: bool = False

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return strip_required(v, "name")


class HandoverCreate(BaseModel):
    """Schema for creating a handover protocol for a contract"""
    model_config = ConfigDict(extra="forbid")

    contract_id: UUID
    handover_type: HandoverType
    handover_date: Optional[date] = None
    checklist: List[ChecklistItem] = Field(default_factory=list, max_length=200)
    notes: Optional[str] = Field(None, max_length=5000)


class HandoverUpdate(UpdateSchema):
    """Partial update of a DRAFT handover"""
    non_nullable = ("handover_type", "checklist")

    handover_type: Optional[HandoverType] = None
    handover_date: Optional[date] = None
    checklist: Optional[List[ChecklistItem]] = Field(None, max_length=200)
    notes: Optional[str] = Field(None, max_length=5000)

    def changes(self) -> dict:
        changes = super().changes()
        if "handover_type" in changes:
            changes["handover_type"] = changes["handover_type"].value
        return changes


class HandoverStatusUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: HandoverStatus
    reason: Optional[str] = Field(None, max_length=1000)


class HandoverResponse(ResourceSchema):
    """Handover as returned by the API"""
    id: UUID
    organization_id: UUID
    contract_id: UUID
    project_id: UUID
    handover_type: HandoverType
    handover_date: Optional[date] = None
    checklist: List[ChecklistItem]
    notes: Optional[str] = None
    status: HandoverStatus
    signed_by: Optional[str] = None
    signed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
