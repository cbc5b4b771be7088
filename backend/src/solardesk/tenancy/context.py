"""Request-scoped tenant context.

A TenantContext is created from a verified Identity and attached to exactly
one SQLAlchemy session via ``session.info``. It is passed explicitly to
services; there is no module-level or context-variable copy of it, so two
concurrent requests from different organizations can never observe each
other's binding.
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ..auth.jwt import Identity
from ..auth.roles import UserRole

SESSION_INFO_KEY = "tenant"


@dataclass(frozen=True)
class TenantContext:
    """Organization, actor and role for one unit of work."""
    organization_id: UUID
    actor_id: str
    role: UserRole
    email: Optional[str] = None


def bind(identity: Identity) -> TenantContext:
    """Build the tenant context for a verified identity. Never fails."""
    return TenantContext(
        organization_id=identity.organization_id,
        actor_id=identity.actor_id,
        role=identity.role,
        email=identity.email,
    )


def attach(session: Session, ctx: TenantContext) -> Session:
    """Bind ``ctx`` to ``session`` for the lifetime of the session.

    Raises:
        RuntimeError: If the session is already bound to another context
    """
    current = session.info.get(SESSION_INFO_KEY)
    if current is not None and current != ctx:
        raise RuntimeError("Session is already bound to a different tenant context")
    session.info[SESSION_INFO_KEY] = ctx
    return session


def current_context(session: Session) -> Optional[TenantContext]:
    """Return the context bound to ``session``, or None."""
    return session.info.get(SESSION_INFO_KEY)
