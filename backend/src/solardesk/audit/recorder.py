"""Audit recorder.

Writes exactly one audit record per Ok or NotFound outcome, inside the
request's own transaction.

Failure policy:
    The insert runs in a SAVEPOINT after the business change has been
    flushed. If the insert fails, only the savepoint is rolled back: the
    business change still commits. The failure is logged at ERROR, counted,
    and the serialized record is parked on the session. When the session
    commits, parked records are handed to the retry queue (Celery task
    ``audit.persist_record``); when it rolls back they are dropped, since the
    operation they describe never happened. If the retry queue itself is
    unreachable the full record is logged at CRITICAL.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple
from uuid import UUID, uuid4

from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.audit_log import AuditLog
from ..observability.metrics import (
    audit_records_total,
    audit_retry_total,
    audit_write_failures_total,
)
from ..observability.request_id import current_request_id
from ..tenancy.context import TenantContext
from .actions import get_action, validate_metadata

logger = logging.getLogger(__name__)

PENDING_RETRY_KEY = "audit_pending_retry"

RetryQueue = Callable[[dict], None]


def audit_log_from_record(record: dict) -> AuditLog:
    """Build an AuditLog row from its serialized form."""
    return AuditLog(
        id=UUID(record["id"]),
        organization_id=UUID(record["organization_id"]),
        actor_id=record["actor_id"],
        action=record["action"],
        entity_type=record["entity_type"],
        entity_id=UUID(record["entity_id"]) if record.get("entity_id") else None,
        metadata_json=record["metadata"],
        request_id=record.get("request_id"),
        created_at=datetime.fromisoformat(record["created_at"]),
    )


class AuditRecorder:
    """Appends audit records for service outcomes.

    Args:
        retry_queue: Callable receiving a serialized record when the
            synchronous insert failed and the business transaction committed.
            None disables the retry queue (failures are then logged at
            CRITICAL on commit).

    Example:
        recorder = AuditRecorder(retry_queue=enqueue_audit_retry)
        recorder.record(db, ctx, "quote.get", {"quote_id": quote.id})
        db.commit()
    """

    def __init__(self, retry_queue: Optional[RetryQueue] = None):
        self.retry_queue = retry_queue

    def build_record(self, ctx: TenantContext, action: str, metadata: dict) -> dict:
        """Validate metadata and serialize the record.

        Raises:
            UnknownAuditActionError: Unregistered action
            pydantic.ValidationError: Metadata does not match the action
        """
        registered = get_action(action)
        payload = validate_metadata(action, metadata)
        # A requested id that does not resolve may belong to another
        # organization; it stays in the metadata only.
        entity_id = None if registered.is_not_found else payload.get(registered.entity_key)
        return {
            "id": str(uuid4()),
            "organization_id": str(ctx.organization_id),
            "actor_id": ctx.actor_id,
            "action": registered.name,
            "entity_type": registered.entity_type,
            "entity_id": entity_id,
            "metadata": payload,
            "request_id": current_request_id(),
            "created_at": datetime.now(timezone.utc).isoformat(),
        }

    def record(self, db: Session, ctx: TenantContext, action: str, metadata: dict) -> Optional[AuditLog]:
        """Append one audit record in the session's current transaction.

        Returns:
            The persisted AuditLog, or None when the write failed and the
            record was parked for the retry queue.
        """
        record = self.build_record(ctx, action, metadata)

        # The savepoint must contain the audit insert only.
        db.flush()

        try:
            entry = self._persist(db, record)
        except SQLAlchemyError as exc:
            self._park_for_retry(db, record, exc)
            return None

        registered = get_action(action)
        audit_records_total.labels(
            action_family=registered.family,
            outcome="not_found" if registered.is_not_found else "ok",
        ).inc()
        return entry

    def _persist(self, db: Session, record: dict) -> AuditLog:
        with db.begin_nested():
            entry = audit_log_from_record(record)
            db.add(entry)
        return entry

    def _park_for_retry(self, db: Session, record: dict, exc: Exception) -> None:
        audit_write_failures_total.labels(action=record["action"]).inc()
        logger.error(
            f"Audit write failed for {record['action']}, record parked for retry: {json.dumps(record)}",
            extra={"org_id": record["organization_id"], "user_id": record["actor_id"]},
            exc_info=exc,
        )
        pending: List[Tuple[Optional[RetryQueue], dict]] = db.info.setdefault(PENDING_RETRY_KEY, [])
        pending.append((self.retry_queue, record))


def _enqueue(retry_queue: Optional[RetryQueue], record: dict) -> None:
    if retry_queue is not None:
        try:
            retry_queue(record)
        except Exception:
            logger.critical(
                f"Audit record lost to retry queue failure: {json.dumps(record)}",
                exc_info=True,
            )
            audit_retry_total.labels(status="enqueue_failed").inc()
        else:
            audit_retry_total.labels(status="enqueued").inc()
        return

    logger.critical(f"Audit record not persisted and no retry queue configured: {json.dumps(record)}")
    audit_retry_total.labels(status="enqueue_failed").inc()


@event.listens_for(Session, "after_commit")
def hand_off_pending_audit_records(session):
    """Send records whose insert failed to the retry queue once the business change is durable."""
    for retry_queue, record in session.info.pop(PENDING_RETRY_KEY, []):
        _enqueue(retry_queue, record)


@event.listens_for(Session, "after_rollback")
def drop_pending_audit_records(session):
    pending = session.info.pop(PENDING_RETRY_KEY, [])
    if pending:
        logger.warning(
            f"Dropped {len(pending)} parked audit record(s): transaction rolled back"
        )
