"""User roles and permission hierarchy for SolarDesk.

Role Hierarchy (descending permissions):
- ADMIN: Full access, including the audit trail
- MANAGER: Everything SALES can do, plus deleting resources
- SALES: Create and change customers, projects, quotes, contracts, handovers
- VIEWER: Read-only access to tenant resources

Permission Matrix:
┌──────────────────────┬───────┬─────────┬───────┬────────┐
│ Action               │ ADMIN │ MANAGER │ SALES │ VIEWER │
├──────────────────────┼───────┼─────────┼───────┼────────┤
│ Read Audit Trail     │   ✓   │         │       │        │
│ Delete Resources     │   ✓   │    ✓    │       │        │
│ Create / Update      │   ✓   │    ✓    │   ✓   │        │
│ Change Status        │   ✓   │    ✓    │   ✓   │        │
│ View Resources       │   ✓   │    ✓    │   ✓   │   ✓    │
└──────────────────────┴───────┴─────────┴───────┴────────┘
"""

from enum import Enum
from typing import Set


class UserRole(str, Enum):
    """User roles in SolarDesk.

    Values are carried verbatim in the ``role`` claim of access tokens.
    """
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    SALES = "SALES"
    VIEWER = "VIEWER"


# Role hierarchy: Each role includes permissions of all roles below it
ROLE_HIERARCHY = {
    UserRole.ADMIN: {UserRole.ADMIN, UserRole.MANAGER, UserRole.SALES, UserRole.VIEWER},
    UserRole.MANAGER: {UserRole.MANAGER, UserRole.SALES, UserRole.VIEWER},
    UserRole.SALES: {UserRole.SALES, UserRole.VIEWER},
    UserRole.VIEWER: {UserRole.VIEWER},
}


def has_permission(user_role: UserRole, required_role: UserRole) -> bool:
    """Check if a user role has permission to perform an action requiring a specific role.

    Uses hierarchical permission model where higher roles inherit permissions
    of lower roles (e.g., ADMIN can do everything SALES can do).

    Args:
        user_role: The role of the current user
        required_role: The minimum role required for the action

    Returns:
        True if user_role has permission, False otherwise

    Examples:
        >>> has_permission(UserRole.ADMIN, UserRole.SALES)
        True
        >>> has_permission(UserRole.VIEWER, UserRole.SALES)
        False
        >>> has_permission(UserRole.MANAGER, UserRole.MANAGER)
        True
    """
    return required_role in ROLE_HIERARCHY.get(user_role, set())


def get_allowed_roles(required_role: UserRole) -> Set[UserRole]:
    """Get all roles that have permission to perform an action.

    Example:
        >>> sorted(r.value for r in get_allowed_roles(UserRole.MANAGER))
        ['ADMIN', 'MANAGER']
    """
    return {role for role, permissions in ROLE_HIERARCHY.items() if required_role in permissions}
