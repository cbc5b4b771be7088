"""Project SQLAlchemy model"""

from sqlalchemy import Column, Text, ForeignKey, Index, Uuid

from .base import Base, TenantScoped, TimestampMixin


class Project(TenantScoped, TimestampMixin, Base):
    """Installation project for one customer.

    Status values follow ``solardesk.projects.status.ProjectStatus``.
    """
    __tablename__ = "projects"
    __table_args__ = (
        Index("ix_projects_org_status", "organization_id", "status"),
        Index("ix_projects_org_created_at", "organization_id", "created_at"),
    )

    customer_id = Column(Uuid, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True)
    name = Column(Text, nullable=False)
    address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="NEW")
    cancel_reason = Column(Text, nullable=True)
