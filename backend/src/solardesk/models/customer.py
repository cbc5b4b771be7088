"""Customer SQLAlchemy model"""

from sqlalchemy import Column, Text, Index, DateTime, UniqueConstraint

from .base import Base, TenantScoped, TimestampMixin


class Customer(TenantScoped, TimestampMixin, Base):
    """Customer of a solar installer.

    Customers with projects or quotes are soft-deleted (``deleted_at`` set) so
    that the history stays intact; soft-deleted customers are invisible to
    every read.
    """
    __tablename__ = "customers"
    __table_args__ = (
        UniqueConstraint("organization_id", "email", name="uq_customers_org_email"),
        Index("ix_customers_org_created_at", "organization_id", "created_at"),
    )

    name = Column(Text, nullable=False)
    email = Column(Text, nullable=True)
    phone = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
