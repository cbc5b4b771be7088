"""Contract API endpoints"""

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
from .schemas import ContractCreate, ContractResponse, ContractStatusUpdate, ContractUpdate
from .service import ContractService
from .status import ContractStatus

router = APIRouter(prefix="/contracts", tags=["contracts"])


@router.get("", response_model=ListResponse[ContractResponse])
def list_contracts(
    ctx: TenantContext = Depends(tenant_context(UserRole.VIEWER)),
    params: ListParams = Depends(status_list_params(ContractStatus)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """List contracts, newest first. ``q`` matches contract number and warranty terms."""
    rows, total = ContractService(db, ctx, recorder).list(params)
    return {"value": [ContractResponse.model_validate(r) for r in rows], "count": total}


@router.get("/{contract_id}", response_model=ValueResponse[ContractResponse])
def get_contract(
    contract_id: UUID,
    ctx: TenantContext = Depends(tenant_context(UserRole.VIEWER)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    contract = ContractService(db, ctx, recorder).get(contract_id)
    return {"value": ContractResponse.model_validate(contract)}


@router.post("", response_model=ValueResponse[ContractResponse], status_code=status.HTTP_201_CREATED)
def create_contract(
    data: ContractCreate,
    ctx: TenantContext = Depends(tenant_context(UserRole.SALES)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Create a draft contract from an accepted quote.

    Raises:
        NotFoundError 404: "Project not found" or "Quote not found"
        ConflictError 409: If the quote is not accepted or already contracted
    """
    contract = ContractService(db, ctx, recorder).create(data)
    return {"value": ContractResponse.model_validate(contract)}


@router.patch("/{contract_id}", response_model=ValueResponse[ContractResponse])
def update_contract(
    contract_id: UUID,
    data: ContractUpdate,
    ctx: TenantContext = Depends(tenant_context(UserRole.SALES)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Edit payment terms, warranty terms or construction days of a draft contract.

    Raises:
        ConflictError 409: If the contract is no longer a draft
    """
    contract = ContractService(db, ctx, recorder).update(contract_id, data.changes())
    return {"value": ContractResponse.model_validate(contract)}


@router.patch("/{contract_id}/status", response_model=ValueResponse[ContractResponse])
def update_contract_status(
    contract_id: UUID,
    data: ContractStatusUpdate,
    ctx: TenantContext = Depends(tenant_context(UserRole.SALES)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Move a contract through its lifecycle. Signing stamps signer and time.

    Raises:
        ConflictError 409: If the transition is not allowed from the current status
    """
    contract = ContractService(db, ctx, recorder).change_status(contract_id, data.status, data.reason)
    return {"value": ContractResponse.model_validate(contract)}


@router.delete("/{contract_id}", response_model=ValueResponse[DeletedRef])
def delete_contract(
    contract_id: UUID,
    ctx: TenantContext = Depends(tenant_context(UserRole.MANAGER)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    deleted_id = ContractService(db, ctx, recorder).delete(contract_id)
    return {"value": {"id": deleted_id}}
