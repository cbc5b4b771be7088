"""Handover SQLAlchemy model"""

from sqlalchemy import Column, Text, ForeignKey, Index, Date, DateTime, Uuid

from .base import Base, PortableJSONB, TenantScoped, TimestampMixin


class Handover(TenantScoped, TimestampMixin, Base):
    """Handover protocol for a contract (installation, commissioning, final).

    ``checklist`` is a list of ``{"name": str, "status": bool}`` items.
    """
    __tablename__ = "handovers"
    __table_args__ = (
        Index("ix_handovers_org_status", "organization_id", "status"),
        Index("ix_handovers_org_created_at", "organization_id", "created_at"),
    )

    contract_id = Column(Uuid, ForeignKey("contracts.id", ondelete="RESTRICT"), nullable=False, index=True)
    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="RESTRICT"), nullable=False, index=True)
    handover_type = Column(Text, nullable=False)
    handover_date = Column(Date, nullable=True)
    checklist = Column(PortableJSONB, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="DRAFT")
    signed_by = Column(Text, nullable=True)
    signed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
