"""Global FastAPI dependencies for tenant binding and audit recording.

This module provides:
- tenant_context: role check + TenantContext for the verified caller
- get_audit_recorder: the AuditRecorder wired to the Celery retry queue

Services receive the TenantContext explicitly and attach it to the request's
own session; nothing tenant-related is kept in module or thread state.
"""

from typing import Callable

from fastapi import Depends

from .audit.recorder import AuditRecorder
from .audit.tasks import enqueue_audit_retry
from .auth.dependencies import require_role
from .auth.jwt import Identity
from .auth.roles import UserRole
from .tenancy.context import TenantContext, bind


def tenant_context(required_role: UserRole) -> Callable:
    """Create a dependency returning the TenantContext of an authorized caller.

    Example:
        @router.get("/customers/{customer_id}")
        def get_customer(
            customer_id: UUID,
            ctx: TenantContext = Depends(tenant_context(UserRole.VIEWER)),
            db: Session = Depends(get_db),
        ):
            ...
    """

    def context_dependency(identity: Identity = Depends(require_role(required_role))) -> TenantContext:
        return bind(identity)

    return context_dependency


def get_audit_recorder() -> AuditRecorder:
    return AuditRecorder(retry_queue=enqueue_audit_retry)
