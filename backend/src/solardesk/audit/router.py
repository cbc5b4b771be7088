"""Audit log query endpoint (ADMIN only).

Read-only. Audit records are appended by the resource services and cannot be
created, updated or deleted through the API. Reading the audit trail is not
itself audited.

ADMIN users can query the records of their own organization with filtering by:
- Action (quote.get, customer.delete.not_found, ...)
- Entity type and entity id
- Date range (start_date, end_date)
- Pagination (limit, offset)
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..auth.roles import UserRole
from ..common.params import DECIMAL_PATTERN, DEFAULT_LIMIT, page_bounds
from ..common.schemas import ListResponse
from ..database import get_db
from ..dependencies import tenant_context
from ..models.audit_log import AuditLog
from ..tenancy.context import TenantContext, attach
from .schemas import AuditLogResponse

router = APIRouter(prefix="/audit-logs", tags=["Audit Logs"])


@router.get(
    "",
    response_model=ListResponse[AuditLogResponse],
    summary="Query audit logs (ADMIN only)",
)
def query_audit_logs(
    ctx: TenantContext = Depends(tenant_context(UserRole.ADMIN)),
    action: Optional[str] = Query(None, max_length=200, description="Exact action name"),
    entity_type: Optional[str] = Query(None, max_length=50, description="Resource kind, e.g. quote"),
    entity_id: Optional[UUID] = Query(None, description="Target resource id"),
    start_date: Optional[datetime] = Query(None, description="Minimum created_at (ISO 8601)"),
    end_date: Optional[datetime] = Query(None, description="Maximum created_at (ISO 8601)"),
    limit: str = Query(str(DEFAULT_LIMIT), pattern=DECIMAL_PATTERN),
    offset: str = Query("0", pattern=DECIMAL_PATTERN),
    db: Session = Depends(get_db),
):
    """Query audit records of the caller's organization, newest first.

    Example:
        GET /api/audit-logs?action=quote.get.not_found&limit=50
    """
    limit, offset = page_bounds(limit, offset)
    db = attach(db, ctx)

    stmt = select(AuditLog).where(AuditLog.organization_id == ctx.organization_id)
    if action:
        stmt = stmt.where(AuditLog.action == action)
    if entity_type:
        stmt = stmt.where(AuditLog.entity_type == entity_type)
    if entity_id is not None:
        stmt = stmt.where(AuditLog.entity_id == entity_id)
    if start_date is not None:
        stmt = stmt.where(AuditLog.created_at >= start_date)
    if end_date is not None:
        stmt = stmt.where(AuditLog.created_at <= end_date)

    total = db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()
    entries = db.execute(
        stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).offset(offset)
    ).scalars().all()

    return {"value": [AuditLogResponse.model_validate(e) for e in entries], "count": total}
