"""FastAPI dependencies for authentication and authorization.

This module provides dependency injection functions for:
- Verifying the bearer credential and extracting the caller's Identity
- Enforcing role-based access control (RBAC)

Both run before any database session is bound to a tenant, so a rejected
request can never reach a service or the audit trail.

Usage:
    @router.get("/protected")
    def protected_endpoint(identity: Identity = Depends(get_identity)):
        return {"actor": identity.actor_id}

    @router.delete("/things/{thing_id}")
    def delete_thing(identity: Identity = Depends(require_role(UserRole.MANAGER))):
        ...
"""

import logging
from typing import Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..errors import ForbiddenError, UnauthorizedError
from .jwt import AuthenticationError, Identity, verify_credential
from .roles import UserRole, has_permission

logger = logging.getLogger(__name__)

# HTTP Bearer token security scheme; missing headers are reported by
# verify_credential as "absent" instead of FastAPI's default 403.
security = HTTPBearer(auto_error=False)


def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Identity:
    """Verify the bearer credential and return the caller's identity.

    Raises:
        UnauthorizedError: Credential absent, malformed or expired (401)
    """
    raw_token = credentials.credentials if credentials else None
    try:
        return verify_credential(raw_token)
    except AuthenticationError as e:
        logger.info(f"Authentication failed: credential {e.reason}")
        raise UnauthorizedError()


def require_role(required_role: UserRole) -> Callable:
    """Create a dependency that enforces role-based access control.

    Higher roles inherit permissions from lower roles
    (ADMIN > MANAGER > SALES > VIEWER).

    Args:
        required_role: Minimum role required to access the endpoint

    Returns:
        Callable: FastAPI dependency returning the caller's Identity

    Raises:
        ForbiddenError: If the caller's role is insufficient (403)

    Example:
        @router.post("/quotes")
        def create_quote(identity: Identity = Depends(require_role(UserRole.SALES))):
            ...
    """

    def role_dependency(identity: Identity = Depends(get_identity)) -> Identity:
        if not has_permission(identity.role, required_role):
            logger.info(
                f"Forbidden: role {identity.role.value} below {required_role.value}",
                extra={"org_id": identity.organization_id, "user_id": identity.actor_id},
            )
            raise ForbiddenError()
        return identity

    return role_dependency
