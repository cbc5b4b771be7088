"""Quote SQLAlchemy model"""

from sqlalchemy import Boolean, Column, DateTime, Text, ForeignKey, Index, Integer, Numeric, Uuid

from .base import Base, PortableJSONB, TenantScoped, TimestampMixin


class Quote(TenantScoped, TimestampMixin, Base):
    """Price quote for a project.

    ``payload`` holds the free-form quote body (line items, system size,
    notes) and may only be edited while the quote is a draft.

    A revision is a new quote with ``version + 1`` whose ``parent_quote_id``
    points at the quote it replaces; the replaced quote is marked
    ``superseded`` and can no longer change.
    """
    __tablename__ = "quotes"
    __table_args__ = (
        Index("ix_quotes_org_status", "organization_id", "status"),
        Index("ix_quotes_org_created_at", "organization_id", "created_at"),
    )

    project_id = Column(Uuid, ForeignKey("projects.id", ondelete="RESTRICT"), nullable=False, index=True)
    customer_id = Column(Uuid, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True)
    title = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="draft")
    payload = Column(PortableJSONB, nullable=False, default=dict)
    total_price = Column(Numeric(12, 2), nullable=True)
    version = Column(Integer, nullable=False, default=1)
    # One revision per quote
    parent_quote_id = Column(Uuid, ForeignKey("quotes.id", ondelete="SET NULL"), nullable=True, unique=True)
    superseded = Column(Boolean, nullable=False, default=False)
    approved_by = Column(Text, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
