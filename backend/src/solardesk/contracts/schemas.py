"""Pydantic schemas for contracts"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..common.schemas import ResourceSchema, UpdateSchema
from .status import ContractStatus

DEFAULT_DEPOSIT_PERCENTAGE = 30


class PaymentTerm(BaseModel):
    """One payment milestone as a percentage of the contract value"""
    model_config = ConfigDict(extra="forbid")

    milestone: str = Field(..., min_length=1, max_length=100)
    pct: int = Field(..., ge=0, le=100)


def default_payment_terms() -> List[PaymentTerm]:
    return [
        PaymentTerm(milestone="Deposit", pct=DEFAULT_DEPOSIT_PERCENTAGE),
        PaymentTerm(milestone="Final", pct=100 - DEFAULT_DEPOSIT_PERCENTAGE),
    ]


def check_payment_terms(terms: Optional[List[PaymentTerm]]) -> Optional[List[PaymentTerm]]:
    """Milestones must add up to exactly 100 percent."""
    if terms is None:
        return terms
    if not terms:
        raise ValueError("payment_terms must not be empty")
    if sum(term.pct for term in terms) != 100:
        raise ValueError("payment_terms percentages must add up to 100")
    return terms


class ContractCreate(BaseModel):
    """Schema for creating a contract from an accepted quote"""
    model_config = ConfigDict(extra="forbid")

    project_id: UUID
    quote_id: UUID
    payment_terms: List[PaymentTerm] = Field(default_factory=default_payment_terms)
    warranty_terms: Optional[str] = Field(None, max_length=5000)
    construction_days: Optional[int] = Field(None, ge=1, le=3650)

    @field_validator('payment_terms')
    @classmethod
    def validate_payment_terms(cls, v):
        return check_payment_terms(v)


class ContractUpdate(UpdateSchema):
    """Partial update of a DRAFT contract"""
    non_nullable = ("payment_terms",)

    payment_terms: Optional[List[PaymentTerm]] = None
    warranty_terms: Optional[str] = Field(None, max_length=5000)
    construction_days: Optional[int] = Field(None, ge=1, le=3650)

    @field_validator('payment_terms')
    @classmethod
    def validate_payment_terms(cls, v):
        return check_payment_terms(v)


class ContractStatusUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: ContractStatus
    reason: Optional[str] = Field(None, max_length=1000)


class ContractResponse(ResourceSchema):
    """Contract as returned by the API"""
    id: UUID
    organization_id: UUID
    project_id: UUID
    quote_id: UUID
    contract_number: str
    status: ContractStatus
    payment_terms: List[PaymentTerm]
    warranty_terms: Optional[str] = None
    construction_days: Optional[int] = None
    signed_at: Optional[datetime] = None
    signed_by: Optional[str] = None
    cancel_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
