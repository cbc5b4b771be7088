"""Handover API endpoints"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..audit.recorder import AuditRecorder
from ..auth.roles import UserRole
from ..common.params import ListParams, status_list_params
from ..common.schemas import DeletedRef, ListResponse, ValueResponse
from ..database import get_db
from ..dependencies import get_audit_recorder, tenant_context
from ..tenancy.context import TenantContext
from .schemas import HandoverCreate, HandoverResponse, HandoverStatusUpdate, HandoverUpdate
from .service import HandoverService
from .status import HandoverStatus

router = APIRouter(prefix="/handovers", tags=["handovers"])


@router.get("", response_model=ListResponse[HandoverResponse])
def list_handovers(
    ctx: TenantContext = Depends(tenant_context(UserRole.VIEWER)),
    params: ListParams = Depends(status_list_params(HandoverStatus)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """List handovers, newest first, optionally filtered by status and notes search."""
    rows, total = HandoverService(db, ctx, recorder).list(params)
    return {"value": [HandoverResponse.model_validate(r) for r in rows], "count": total}


@router.get("/{handover_id}", response_model=ValueResponse[HandoverResponse])
def get_handover(
    handover_id: UUID,
    ctx: TenantContext = Depends(tenant_context(UserRole.VIEWER)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    handover = HandoverService(db, ctx, recorder).get(handover_id)
    return {"value": HandoverResponse.model_validate(handover)}


@router.post("", response_model=ValueResponse[HandoverResponse], status_code=status.HTTP_201_CREATED)
def create_handover(
    data: HandoverCreate,
    ctx: TenantContext = Depends(tenant_context(UserRole.SALES)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Create a draft handover protocol for a contract.

    Raises:
        NotFoundError 404: "Contract not found"
        ConflictError 409: If the contract is not in HANDOVER status
    """
    handover = HandoverService(db, ctx, recorder).create(data)
    return {"value": HandoverResponse.model_validate(handover)}


@router.patch("/{handover_id}", response_model=ValueResponse[HandoverResponse])
def update_handover(
    handover_id: UUID,
    data: HandoverUpdate,
    ctx: TenantContext = Depends(tenant_context(UserRole.SALES)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Edit type, date, checklist or notes of a draft handover.

    Raises:
        ConflictError 409: If the handover is no longer a draft
    """
    handover = HandoverService(db, ctx, recorder).update(handover_id, data.changes())
    return {"value": HandoverResponse.model_validate(handover)}


@router.patch("/{handover_id}/status", response_model=ValueResponse[HandoverResponse])
def update_handover_status(
    handover_id: UUID,
    data: HandoverStatusUpdate,
    ctx: TenantContext = Depends(tenant_context(UserRole.SALES)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Sign, complete or cancel a handover. Completing it also completes the contract.

    Raises:
        ConflictError 409: If the transition is not allowed from the current status
    """
    handover = HandoverService(db, ctx, recorder).change_status(handover_id, data.status, data.reason)
    return {"value": HandoverResponse.model_validate(handover)}


@router.delete("/{handover_id}", response_model=ValueResponse[DeletedRef])
def delete_handover(
    handover_id: UUID,
    ctx: TenantContext = Depends(tenant_context(UserRole.MANAGER)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    deleted_id = HandoverService(db, ctx, recorder).delete(handover_id)
    return {"value": {"id": deleted_id}}
