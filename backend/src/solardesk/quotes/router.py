"""Quote API endpoints"""

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
from .schemas import QuoteCreate, QuotePayloadUpdate, QuoteRejection, QuoteResponse, QuoteStatusUpdate
from .service import QuoteService
from .status import QuoteStatus

router = APIRouter(prefix="/quotes", tags=["quotes"])


# ============================================================================
# Quote Endpoints
# ============================================================================

@router.get("", response_model=ListResponse[QuoteResponse])
def list_quotes(
    ctx: TenantContext = Depends(tenant_context(UserRole.VIEWER)),
    params: ListParams = Depends(status_list_params(QuoteStatus)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """List quotes, newest first, optionally filtered by status and title search."""
    rows, total = QuoteService(db, ctx, recorder).list(params)
    return {"value": [QuoteResponse.model_validate(r) for r in rows], "count": total}


@router.get("/{quote_id}", response_model=ValueResponse[QuoteResponse])
def get_quote(
    quote_id: UUID,
    ctx: TenantContext = Depends(tenant_context(UserRole.VIEWER)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    quote = QuoteService(db, ctx, recorder).get(quote_id)
    return {"value": QuoteResponse.model_validate(quote)}


@router.post("", response_model=ValueResponse[QuoteResponse], status_code=status.HTTP_201_CREATED)
def create_quote(
    data: QuoteCreate,
    ctx: TenantContext = Depends(tenant_context(UserRole.SALES)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Create a draft quote for a project.

    Raises:
        NotFoundError 404: "Project not found"
    """
    quote = QuoteService(db, ctx, recorder).create(data)
    return {"value": QuoteResponse.model_validate(quote)}


@router.patch("/{quote_id}/status", response_model=ValueResponse[QuoteResponse])
def update_quote_status(
    quote_id: UUID,
    data: QuoteStatusUpdate,
    ctx: TenantContext = Depends(tenant_context(UserRole.SALES)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Send, accept or reject an approved quote, or take it back to draft.

    Submitting and approving have their own endpoints.

    Raises:
        ConflictError 409: If the transition is not allowed from the current status
    """
    quote = QuoteService(db, ctx, recorder).change_status(quote_id, data.status)
    return {"value": QuoteResponse.model_validate(quote)}


@router.patch("/{quote_id}/payload", response_model=ValueResponse[QuoteResponse])
def update_quote_payload(
    quote_id: UUID,
    data: QuotePayloadUpdate,
    ctx: TenantContext = Depends(tenant_context(UserRole.SALES)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Edit title, payload or total price of a draft quote.

    Raises:
        ConflictError 409: If the quote is not a draft
    """
    quote = QuoteService(db, ctx, recorder).update_payload(quote_id, data.changes())
    return {"value": QuoteResponse.model_validate(quote)}


@router.post("/{quote_id}/submit", response_model=ValueResponse[QuoteResponse])
def submit_quote(
    quote_id: UUID,
    ctx: TenantContext = Depends(tenant_context(UserRole.SALES)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Submit a draft quote for manager approval.

    Raises:
        ConflictError 409: If the quote is not a draft
    """
    quote = QuoteService(db, ctx, recorder).submit(quote_id)
    return {"value": QuoteResponse.model_validate(quote)}


@router.post("/{quote_id}/approve", response_model=ValueResponse[QuoteResponse])
def approve_quote(
    quote_id: UUID,
    ctx: TenantContext = Depends(tenant_context(UserRole.MANAGER)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Approve a submitted quote (MANAGER and above).

    Raises:
        ConflictError 409: If the quote is not pending approval
    """
    quote = QuoteService(db, ctx, recorder).approve(quote_id)
    return {"value": QuoteResponse.model_validate(quote)}


@router.post("/{quote_id}/reject", response_model=ValueResponse[QuoteResponse])
def reject_quote(
    quote_id: UUID,
    data: QuoteRejection,
    ctx: TenantContext = Depends(tenant_context(UserRole.MANAGER)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Send a submitted quote back to draft (MANAGER and above).

    Raises:
        ConflictError 409: If the quote is not pending approval
    """
    quote = QuoteService(db, ctx, recorder).reject(quote_id, data.reason)
    return {"value": QuoteResponse.model_validate(quote)}


@router.post("/{quote_id}/revise", response_model=ValueResponse[QuoteResponse], status_code=status.HTTP_201_CREATED)
def revise_quote(
    quote_id: UUID,
    ctx: TenantContext = Depends(tenant_context(UserRole.SALES)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Create the next version of a draft or rejected quote.

    Raises:
        ConflictError 409: If the quote is frozen or was already revised
    """
    revision = QuoteService(db, ctx, recorder).revise(quote_id)
    return {"value": QuoteResponse.model_validate(revision)}


@router.delete("/{quote_id}", response_model=ValueResponse[DeletedRef])
def delete_quote(
    quote_id: UUID,
    ctx: TenantContext = Depends(tenant_context(UserRole.MANAGER)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Delete a quote.

    Raises:
        ConflictError 409: If the quote is approved, sent or accepted
    """
    deleted_id = QuoteService(db, ctx, recorder).delete(quote_id)
    return {"value": {"id": deleted_id}}
