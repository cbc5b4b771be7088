"""Contract SQLAlchemy model"""

from sqlalchemy import Column, Text, ForeignKey, Index, Integer, DateTime, UniqueConstraint, Uuid

from .base import Base, PortableJSONB, TenantScoped, TimestampMixin


class Contract(TenantScoped, TimestampMixin, Base):
    """Signed-or-pending installation contract created from an accepted quote.

    ``contract_number`` has the form ``CT-<year>-<seq>`` and is unique within
    an organization.
    """
    __tablename__ = "contracts"
    __table_args__ = (
        UniqueConstraint("organization_id", "contract_number", name="uq_contracts_org_number"),
        Index("ix_contracts_org_status", "organization_id", "status"),
        Index("ix_contracts_org_created_at", "organization_id", "created_at"),
    )

    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="RESTRICT"), nullable=False, index=True)
    quote_id = Column(Uuid, ForeignKey("quotes.id", ondelete="RESTRICT"), nullable=False, index=True)
    contract_number = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default="DRAFT")
    payment_terms = Column(PortableJSONB, nullable=False, default=list)
    warranty_terms = Column(Text, nullable=True)
    construction_days = Column(Integer, nullable=True)
    signed_at = Column(DateTime(timezone=True), nullable=True)
    signed_by = Column(Text, nullable=True)
    cancel_reason = Column(Text, nullable=True)
