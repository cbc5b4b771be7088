"""Pydantic schemas for quotes"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..common.schemas import ResourceSchema, UpdateSchema, strip_required
from .status import QuoteStatus


class QuoteCreate(BaseModel):
    """Schema for creating a draft quote for a project"""
    model_config = ConfigDict(extra="forbid")

    project_id: UUID
    title: Optional[str] = Field(None, max_length=200)
    payload: Dict[str, Any] = Field(default_factory=dict)
    total_price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)


class QuotePayloadUpdate(UpdateSchema):
    """Edit of a draft quote's body. ``payload`` replaces the stored payload."""
    non_nullable = ("payload",)

    title: Optional[str] = Field(None, max_length=200)
    payload: Optional[Dict[str, Any]] = None
    total_price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)


class QuoteStatusUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: QuoteStatus


class QuoteRejection(BaseModel):
    """Manager's reason for sending a submitted quote back to draft"""
    model_config = ConfigDict(extra="forbid")

    reason: str = Field(..., min_length=1, max_length=1000)

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: str) -> str:
        return strip_required(v, "reason")


class QuoteResponse(ResourceSchema):
    """Quote as returned by the API"""
    id: UUID
    organization_id: UUID
    project_id: UUID
    customer_id: UUID
    title: Optional[str] = None
    status: QuoteStatus
    payload: Dict[str, Any]
    total_price: Optional[float] = None
    version: int
    parent_quote_id: Optional[UUID] = None
    superseded: bool
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
