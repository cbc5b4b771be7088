"""Celery tasks for the audit retry queue.

Tasks:
- audit.persist_record: re-insert an audit record whose synchronous write
  failed after the business change committed
"""

import logging
from typing import Any, Dict
from uuid import UUID

from celery import Task
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ..auth.roles import UserRole
from ..celery_app import celery_app
from ..config import get_settings
from ..database import tenant_session
from ..models.audit_log import AuditLog
from ..observability.metrics import audit_retry_total
from ..tenancy.context import TenantContext
from .recorder import audit_log_from_record

logger = logging.getLogger(__name__)


class PersistAuditRecordTask(Task):
    """Retry configuration for audit persistence.

    Retry policy:
    - Max retries: AUDIT_RETRY_MAX_ATTEMPTS (default 10)
    - Backoff: Exponential with jitter, capped at 10 minutes
    - Retry on: any SQLAlchemyError (database unavailable, timeouts)
    """
    autoretry_for = (SQLAlchemyError,)
    retry_kwargs = {'max_retries': get_settings().AUDIT_RETRY_MAX_ATTEMPTS}
    retry_backoff = True
    retry_backoff_max = 600
    retry_jitter = True

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        record = kwargs.get("record") or (args[0] if args else None)
        audit_retry_total.labels(status="failed").inc()
        logger.critical(
            f"Audit record permanently lost after retries: {record}",
            exc_info=exc,
        )


def persist_audit_record_now(record: Dict[str, Any]) -> str:
    """Insert ``record`` unless a row with its id already exists.

    Idempotent: the record id is generated once, when the record is built,
    so re-delivery of the same task never creates a second row.

    Returns:
        "persisted" or "duplicate"
    """
    ctx = TenantContext(
        organization_id=UUID(record["organization_id"]),
        actor_id=record["actor_id"],
        role=UserRole.ADMIN,
    )
    with tenant_session(ctx) as session:
        existing = session.execute(
            select(AuditLog.id).where(
                AuditLog.id == UUID(record["id"]),
                AuditLog.organization_id == ctx.organization_id,
            )
        ).scalar_one_or_none()
        if existing is not None:
            return "duplicate"
        session.add(audit_log_from_record(record))
    return "persisted"


@celery_app.task(base=PersistAuditRecordTask, name="audit.persist_record", bind=True)
def persist_audit_record(self: Task, record: Dict[str, Any]) -> Dict[str, Any]:
    """Persist one audit record from the retry queue.

    Args:
        record: Serialized audit record as built by AuditRecorder.build_record

    Returns:
        Dict with keys:
            - audit_id: Audit record UUID
            - status: 'persisted' or 'duplicate'

    Example:
        >>> persist_audit_record.delay(record=record)
    """
    status = persist_audit_record_now(record)
    audit_retry_total.labels(status=status).inc()
    logger.info(
        f"Audit record {record['id']} from retry queue: {status}",
        extra={"org_id": record["organization_id"]},
    )
    return {"audit_id": record["id"], "status": status}


def enqueue_audit_retry(record: Dict[str, Any]) -> None:
    """Default retry queue for AuditRecorder."""
    persist_audit_record.delay(record=record)
