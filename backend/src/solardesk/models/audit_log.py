"""AuditLog SQLAlchemy model"""

from sqlalchemy import Column, Text, Index, DateTime, Uuid

from .base import Base, PortableJSONB, TenantScoped, utcnow


class AuditLog(TenantScoped, Base):
    """AuditLog model for the append-only audit trail.

    One row per successful or not-found operation on a tenant resource.
    Rows are never updated or deleted by the application: the isolation
    listeners reject both (``__append_only__``), and the PostgreSQL migration
    revokes UPDATE/DELETE on the table.
    """
    __tablename__ = "audit_logs"
    __append_only__ = True
    __table_args__ = (
        Index("ix_audit_logs_org_created_at", "organization_id", "created_at"),
        Index("ix_audit_logs_org_action", "organization_id", "action"),
        Index("ix_audit_logs_entity", "entity_type", "entity_id"),
    )

    actor_id = Column("actor", Text, nullable=False)
    action = Column(Text, nullable=False)
    entity_type = Column(Text, nullable=True)
    entity_id = Column(Uuid, nullable=True)
    metadata_json = Column("metadata", PortableJSONB, nullable=False, default=dict)
    request_id = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
