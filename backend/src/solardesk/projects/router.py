"""Project API endpoints"""

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
from .schemas import ProjectCreate, ProjectResponse, ProjectStatusUpdate, ProjectUpdate
from .service import ProjectService
from .status import ProjectStatus

router = APIRouter(prefix="/projects", tags=["projects"])


# ============================================================================
# Project Endpoints
# ============================================================================

@router.get("", response_model=ListResponse[ProjectResponse])
def list_projects(
    ctx: TenantContext = Depends(tenant_context(UserRole.VIEWER)),
    params: ListParams = Depends(status_list_params(ProjectStatus)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """List projects, newest first, optionally filtered by status and name/address search."""
    rows, total = ProjectService(db, ctx, recorder).list(params)
    return {"value": [ProjectResponse.model_validate(r) for r in rows], "count": total}


@router.get("/{project_id}", response_model=ValueResponse[ProjectResponse])
def get_project(
    project_id: UUID,
    ctx: TenantContext = Depends(tenant_context(UserRole.VIEWER)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    project = ProjectService(db, ctx, recorder).get(project_id)
    return {"value": ProjectResponse.model_validate(project)}


@router.post("", response_model=ValueResponse[ProjectResponse], status_code=status.HTTP_201_CREATED)
def create_project(
    data: ProjectCreate,
    ctx: TenantContext = Depends(tenant_context(UserRole.SALES)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Create a project for an existing customer.

    Raises:
        NotFoundError 404: "Customer not found" if the customer is missing
            in the caller's organization
    """
    project = ProjectService(db, ctx, recorder).create(data)
    return {"value": ProjectResponse.model_validate(project)}


@router.patch("/{project_id}", response_model=ValueResponse[ProjectResponse])
def update_project(
    project_id: UUID,
    data: ProjectUpdate,
    ctx: TenantContext = Depends(tenant_context(UserRole.SALES)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    project = ProjectService(db, ctx, recorder).update(project_id, data.changes())
    return {"value": ProjectResponse.model_validate(project)}


@router.patch("/{project_id}/status", response_model=ValueResponse[ProjectResponse])
def update_project_status(
    project_id: UUID,
    data: ProjectStatusUpdate,
    ctx: TenantContext = Depends(tenant_context(UserRole.SALES)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Move a project through its lifecycle.

    Raises:
        ConflictError 409: If the transition is not allowed from the current status
    """
    project = ProjectService(db, ctx, recorder).change_status(project_id, data.status, data.reason)
    return {"value": ProjectResponse.model_validate(project)}


@router.delete("/{project_id}", response_model=ValueResponse[DeletedRef])
def delete_project(
    project_id: UUID,
    ctx: TenantContext = Depends(tenant_context(UserRole.MANAGER)),
    db: Session = Depends(get_db),
    recorder: AuditRecorder = Depends(get_audit_recorder),
):
    """
    Delete a project and its quotes.

    Raises:
        ConflictError 409: If the project already has contracts
    """
    deleted_id = ProjectService(db, ctx, recorder).delete(project_id)
    return {"value": {"id": deleted_id}}
