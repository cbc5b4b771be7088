"""Row isolation enforcement at the ORM session boundary.

Every ``Session`` in the process carries these listeners:

- ``do_orm_execute``: adds ``with_loader_criteria`` on ``TenantScoped`` to
  every ORM SELECT, UPDATE and DELETE, restricting rows to the organization
  bound to the session. Without a bound context the criteria is ``false()``,
  so tenant tables read as empty.
- ``before_flush``: stamps ``organization_id`` on new tenant rows and rejects
  any insert, update or delete that would touch another organization, or any
  write made without a bound context. Append-only models reject updates and
  deletes entirely.
- ``after_begin``: on PostgreSQL, publishes the organization id to
  ``app.current_org_id`` (transaction-local) for the row level security
  policies installed by migration 004.

Services still scope their own queries by ``organization_id``; these
listeners hold even when a query forgets to.
"""

import logging
from uuid import UUID

from sqlalchemy import event, false, inspect, text
from sqlalchemy.orm import Session, with_loader_criteria

from ..models.base import TenantScoped
from ..observability.metrics import tenant_isolation_violations_total
from .context import current_context

logger = logging.getLogger(__name__)


class TenantIsolationError(Exception):
    """Raised when a write would cross the bound organization boundary."""

    def __init__(self, operation: str, model: str, message: str):
        self.operation = operation
        self.model = model
        super().__init__(f"{operation} on {model} rejected: {message}")


def _as_uuid(value):
    if value is None or isinstance(value, UUID):
        return value
    return UUID(str(value))


def _violation(session: Session, operation: str, model: str, message: str) -> TenantIsolationError:
    ctx = current_context(session)
    tenant_isolation_violations_total.labels(operation=operation).inc()
    logger.error(
        f"Tenant isolation violation: {operation} on {model}: {message}",
        extra={
            "org_id": ctx.organization_id if ctx else None,
            "user_id": ctx.actor_id if ctx else None,
        },
    )
    return TenantIsolationError(operation, model, message)


def _sets_organization_id(statement) -> bool:
    values = getattr(statement, "_values", None) or {}
    for key in values:
        if getattr(key, "key", key) == "organization_id":
            return True
    return False


@event.listens_for(Session, "do_orm_execute")
def scope_orm_statements(execute_state):
    """Restrict ORM statements to the bound organization."""
    if execute_state.is_select:
        if execute_state.is_column_load or execute_state.is_relationship_load:
            return
    elif execute_state.is_update or execute_state.is_delete:
        session = execute_state.session
        mapper = execute_state.bind_mapper
        model = mapper.class_ if mapper is not None else None
        operation = "bulk_update" if execute_state.is_update else "bulk_delete"
        if model is not None and getattr(model, "__append_only__", False):
            raise _violation(session, operation, model.__name__, "table is append-only")
        if execute_state.is_update and _sets_organization_id(execute_state.statement):
            raise _violation(
                session, operation, getattr(model, "__name__", "?"), "organization_id is immutable"
            )
    else:
        return

    ctx = current_context(execute_state.session)
    if ctx is None:
        criteria = with_loader_criteria(
            TenantScoped, lambda cls: false(), include_aliases=True
        )
    else:
        org_id = ctx.organization_id
        criteria = with_loader_criteria(
            TenantScoped, lambda cls: cls.organization_id == org_id, include_aliases=True
        )
    execute_state.statement = execute_state.statement.options(criteria)


@event.listens_for(Session, "before_flush")
def enforce_tenant_writes(session, flush_context, instances):
    """Stamp and check organization_id on every pending tenant write.

    Raises:
        TenantIsolationError: Write without context, write into another
            organization, organization_id change, or update/delete of an
            append-only row
    """
    ctx = current_context(session)
    org_id = ctx.organization_id if ctx else None

    for obj in session.new:
        if not isinstance(obj, TenantScoped):
            continue
        name = type(obj).__name__
        if ctx is None:
            raise _violation(session, "insert", name, "no tenant context bound")
        if obj.organization_id is None:
            obj.organization_id = org_id
        elif _as_uuid(obj.organization_id) != org_id:
            raise _violation(session, "insert", name, "row belongs to another organization")

    for obj in session.dirty:
        if not isinstance(obj, TenantScoped) or not session.is_modified(obj):
            continue
        name = type(obj).__name__
        if getattr(type(obj), "__append_only__", False):
            raise _violation(session, "update", name, "table is append-only")
        if ctx is None:
            raise _violation(session, "update", name, "no tenant context bound")
        history = inspect(obj).attrs.organization_id.history
        previous = [v for v in history.deleted if v is not None]
        if previous and _as_uuid(previous[0]) != _as_uuid(obj.organization_id):
            raise _violation(session, "update", name, "organization_id is immutable")
        if _as_uuid(obj.organization_id) != org_id:
            raise _violation(session, "update", name, "row belongs to another organization")

    for obj in session.deleted:
        if not isinstance(obj, TenantScoped):
            continue
        name = type(obj).__name__
        if getattr(type(obj), "__append_only__", False):
            raise _violation(session, "delete", name, "table is append-only")
        if ctx is None:
            raise _violation(session, "delete", name, "no tenant context bound")
        if _as_uuid(obj.organization_id) != org_id:
            raise _violation(session, "delete", name, "row belongs to another organization")


@event.listens_for(Session, "after_begin")
def publish_org_to_database(session, transaction, connection):
    """Expose the bound organization to PostgreSQL RLS policies."""
    ctx = current_context(session)
    if ctx is None or connection.dialect.name != "postgresql":
        return
    connection.execute(
        text("SELECT set_config('app.current_org_id', :org_id, true)"),
        {"org_id": str(ctx.organization_id)},
    )
