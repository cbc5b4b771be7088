"""Base class for tenant-scoped resource services.

A service instance serves one request: it holds the request's session (bound
to the caller's TenantContext), the context itself and the audit recorder.
Every public operation ends in exactly one of:

- ``_succeed``: record ``<resource>.<op>``, commit, return the value
- ``_not_found``: record ``<resource>.<op>.not_found``, commit, raise NotFoundError
- ``_conflict``: roll back, raise ConflictError (no audit record)

Invalid input never reaches a service: it is rejected by request validation.
"""

import logging
from typing import Any, Dict, Iterable, List, NoReturn, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..audit.recorder import AuditRecorder
from ..errors import ConflictError, NotFoundError
from ..observability.metrics import service_outcomes_total
from ..tenancy.context import TenantContext, attach
from .params import ListParams
from .status import StateTransitionError, validate_transition

logger = logging.getLogger(__name__)


def apply_changes(row, changes: Dict[str, Any]) -> List[str]:
    """Apply ``changes`` to ``row`` and return the fields whose value changed.

    Submitted fields equal to the current value are left untouched and are
    not reported.

    Example:
        >>> apply_changes(customer, {"name": "Same", "phone": "+49 30 1"})
        ['phone']
    """
    changed = []
    for field, value in changes.items():
        if getattr(row, field) != value:
            setattr(row, field, value)
            changed.append(field)
    return sorted(changed)


def like_pattern(q: str) -> str:
    """Build a substring LIKE pattern with ``%``, ``_`` and ``\\`` escaped."""
    escaped = q.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class TenantResourceService:
    """Shared get/list/update/status logic for one resource kind.

    Subclasses set:
        resource: audit namespace and id key prefix (``quote`` -> ``quote_id``)
        label: name used in not-found messages (``Quote not found``)
        model: ORM class (a TenantScoped model)
        search_columns: columns matched by ``q``
        status_enum / transitions: state machine, for resources with a status
    """
    resource: str = ""
    label: str = ""
    model = None
    search_columns: Tuple = ()
    status_enum = None
    transitions: Dict = {}

    def __init__(self, db: Session, ctx: TenantContext, recorder: AuditRecorder):
        self.db = attach(db, ctx)
        self.ctx = ctx
        self.recorder = recorder

    @property
    def id_key(self) -> str:
        return f"{self.resource}_id"

    # ========================================================================
    # Queries (explicitly scoped; the isolation listeners scope them again)
    # ========================================================================

    def _scoped(self, model):
        return select(model).where(model.organization_id == self.ctx.organization_id)

    def _base_query(self):
        return self._scoped(self.model)

    def _find(self, resource_id: UUID):
        stmt = self._base_query().where(self.model.id == resource_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def _find_related(self, model, resource_id: UUID, *criteria):
        stmt = self._scoped(model).where(model.id == resource_id, *criteria)
        return self.db.execute(stmt).scalar_one_or_none()

    def _count_related(self, model, *criteria) -> int:
        stmt = select(func.count()).select_from(model).where(
            model.organization_id == self.ctx.organization_id, *criteria
        )
        return self.db.execute(stmt).scalar_one()

    def _filtered(self, params: ListParams):
        stmt = self._base_query()
        if params.q and self.search_columns:
            pattern = like_pattern(params.q)
            stmt = stmt.where(or_(*[col.ilike(pattern, escape="\\") for col in self.search_columns]))
        if params.status is not None:
            stmt = stmt.where(self.model.status == params.status.value)
        return stmt

    # ========================================================================
    # Outcomes
    # ========================================================================

    def _log_outcome(self, action: str, outcome: str, operation: str) -> None:
        service_outcomes_total.labels(
            resource=self.resource, operation=operation, outcome=outcome
        ).inc()
        logger.info(
            f"{action} {outcome}",
            extra={
                "org_id": self.ctx.organization_id,
                "user_id": self.ctx.actor_id,
                "action": action,
                "outcome": outcome,
            },
        )

    def _succeed(self, operation: str, metadata: Dict[str, Any], result=None):
        action = f"{self.resource}.{operation}"
        self.recorder.record(self.db, self.ctx, action, metadata)
        self.db.commit()
        self._log_outcome(action, "ok", operation)
        return result

    def _not_found(self, operation: str, metadata: Dict[str, Any], label: Optional[str] = None) -> NoReturn:
        action = f"{self.resource}.{operation}.not_found"
        self.recorder.record(self.db, self.ctx, action, metadata)
        self.db.commit()
        self._log_outcome(action, "not_found", operation)
        raise NotFoundError(f"{label or self.label} not found")

    def _conflict(self, operation: str, message: str) -> NoReturn:
        self.db.rollback()
        service_outcomes_total.labels(
            resource=self.resource, operation=operation, outcome="conflict"
        ).inc()
        logger.info(
            f"{self.resource}.{operation} conflict: {message}",
            extra={"org_id": self.ctx.organization_id, "user_id": self.ctx.actor_id},
        )
        raise ConflictError(message)

    def _flush(self, operation: str, conflict_message: str) -> None:
        """Flush pending changes, turning unique violations into a conflict."""
        try:
            self.db.flush()
        except IntegrityError:
            self._conflict(operation, conflict_message)

    # ========================================================================
    # Operations shared by every resource
    # ========================================================================

    def get(self, resource_id: UUID):
        row = self._find(resource_id)
        if row is None:
            self._not_found("get", {self.id_key: resource_id})
        return self._succeed("get", {self.id_key: row.id}, row)

    def list(self, params: ListParams) -> Tuple[List, int]:
        """Return one page of rows and the total number of matching rows."""
        stmt = self._filtered(params)
        total = self.db.execute(
            select(func.count()).select_from(stmt.subquery())
        ).scalar_one()
        rows = self.db.execute(
            stmt.order_by(self.model.created_at.desc(), self.model.id.desc())
            .limit(params.limit)
            .offset(params.offset)
        ).scalars().all()

        metadata = {
            "limit": params.limit,
            "offset": params.offset,
            "result_count": len(rows),
            "total_count": total,
            "q": params.q,
        }
        if self.status_enum is not None:
            metadata["status"] = params.status.value if params.status is not None else None
        self._succeed("list", metadata)
        return rows, total

    def _check_updatable(self, row) -> None:
        """Hook: call ``self._conflict`` when ``row`` may not be edited."""

    def update(self, resource_id: UUID, changes: Dict[str, Any], conflict_message: str = "Conflict"):
        row = self._find(resource_id)
        if row is None:
            self._not_found("update", {self.id_key: resource_id})
        self._check_updatable(row)
        changed = apply_changes(row, changes)
        self._flush("update", conflict_message)
        return self._succeed("update", {self.id_key: row.id, "changed_fields": changed}, row)

    def _on_status_change(self, row, current, new_status, reason: Optional[str]) -> Dict[str, Any]:
        """Hook: apply side effects of a transition, return extra audit metadata."""
        return {}

    def change_status(self, resource_id: UUID, new_status, reason: Optional[str] = None):
        row = self._find(resource_id)
        if row is None:
            self._not_found("status.update", {self.id_key: resource_id, "to": new_status.value})

        current = self.status_enum(row.status)
        try:
            validate_transition(self.transitions, current, new_status)
        except StateTransitionError as e:
            self._conflict("status.update", str(e))

        extra = self._on_status_change(row, current, new_status, reason)
        row.status = new_status.value
        metadata = {self.id_key: row.id, "from": current.value, "to": new_status.value}
        if reason:
            metadata["reason"] = reason
        metadata.update(extra)
        return self._succeed("status.update", metadata, row)

    def _delete_rows(self, rows: Iterable) -> int:
        count = 0
        for row in rows:
            self.db.delete(row)
            count += 1
        return count
