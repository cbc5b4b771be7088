"""Base SQLAlchemy declarative base and shared column helpers for all models"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import TypeDecorator, JSON, Column, ForeignKey, DateTime, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, declared_attr


class PortableJSONB(TypeDecorator):
    """JSON type that works with both PostgreSQL (JSONB) and SQLite (JSON).

    Uses JSONB on PostgreSQL for efficient indexing and querying,
    falls back to JSON on SQLite for testing compatibility.
    """
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(JSONB())
        else:
            return dialect.type_descriptor(JSON())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


Base = declarative_base()


class TimestampMixin:
    """created_at / updated_at columns, set on the Python side so SQLite and
    PostgreSQL behave the same."""

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class TenantScoped:
    """Marker mixin for tables owned by exactly one organization.

    Every mapped subclass is filtered and write-checked by the row isolation
    listeners in ``solardesk.tenancy.isolation``. ``organization_id`` is set
    from the bound tenant context and can never change afterwards.
    """

    @declared_attr
    def id(cls):
        return Column(Uuid, primary_key=True, default=uuid.uuid4)

    @declared_attr
    def organization_id(cls):
        return Column(
            Uuid,
            ForeignKey("organizations.id", ondelete="RESTRICT"),
            nullable=False,
            index=True,
        )


def tenant_scoped_models():
    """Return every mapped class that carries the TenantScoped marker."""
    return [
        mapper.class_
        for mapper in Base.registry.mappers
        if issubclass(mapper.class_, TenantScoped)
    ]
