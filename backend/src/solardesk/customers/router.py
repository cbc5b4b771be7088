"""Customer management API endpoints"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..audit.recorder import AuditRecorder
from ..auth.roles import UserRole
from ..common.params import ListParams, list_params
from ..common.schemas import DeletedRef, ListResponse, ValueResponse
from ..database import get_db
from ..dependencies import get_audit_recorder, tenant_context
from ..tenancy.context import TenantContext
from .schemas import CustomerCreate, CustomerResponse, CustomerUpdate
from .service import CustomerService

router = APIRouter(prefix="/customers", tags=["customers"])


# ============================================================================
# Customer CRUD Endpoints
# ============================================================================

@router.get("", response_model=ListResponse[CustomerResponse])
def list_customers(
    ctx: TenantContext = Depends(tenant_context(UserRole.VIEWER)),
    params: ListParams = Depends(list_params),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    List customers, newest first.

    Query:
        limit: 1..100 (default 20)
        offset: >= 0 (default 0)
        q: substring of name, email or phone

    Returns:
        {"value": [...], "count": <matching customers>}
    """
    rows, total = CustomerService(db, ctx, recorder).list(params)
    return {"value": [CustomerResponse.model_validate(r) for r in rows], "count": total}


@router.get("/{customer_id}", response_model=ValueResponse[CustomerResponse])
def get_customer(
    customer_id: UUID,
    ctx: TenantContext = Depends(tenant_context(UserRole.VIEWER)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Get a single customer by ID.

    Raises:
        NotFoundError 404: If customer not found or belongs to different org
    """
    customer = CustomerService(db, ctx, recorder).get(customer_id)
    return {"value": CustomerResponse.model_validate(customer)}


@router.post("", response_model=ValueResponse[CustomerResponse], status_code=status.HTTP_201_CREATED)
def create_customer(
    data: CustomerCreate,
    ctx: TenantContext = Depends(tenant_context(UserRole.SALES)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Create a new customer (SALES or higher).

    Raises:
        ConflictError 409: If the email is already used in this organization
    """
    customer = CustomerService(db, ctx, recorder).create(data)
    return {"value": CustomerResponse.model_validate(customer)}


@router.patch("/{customer_id}", response_model=ValueResponse[CustomerResponse])
def update_customer(
    customer_id: UUID,
    data: CustomerUpdate,
    ctx: TenantContext = Depends(tenant_context(UserRole.SALES)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Update a customer (partial update). Only submitted fields that differ
    from the stored values are reported in the audit trail.
    """
    customer = CustomerService(db, ctx, recorder).update(customer_id, data.changes())
    return {"value": CustomerResponse.model_validate(customer)}


@router.delete("/{customer_id}", response_model=ValueResponse[DeletedRef])
def delete_customer(
    customer_id: UUID,
    ctx: TenantContext = Depends(tenant_context(UserRole.MANAGER)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Delete a customer (MANAGER or higher).

    Customers with projects or quotes are soft-deleted; the response is the
    same in both cases.
    """
    deleted_id = CustomerService(db, ctx, recorder).delete(customer_id)
    return {"value": {"id": deleted_id}}
