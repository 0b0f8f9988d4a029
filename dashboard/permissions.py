"""Role permissions and hierarchy."""

from typing import Optional

from models.data_models import UserRole

ROLE_HIERARCHY: dict[str, int] = {
    "guest": 0,
    "developer": 1,
    "admin": 2,
    "superadmin": 3,
}

ROLE_PERMISSIONS: dict[str, dict[str, bool]] = {
    "superadmin": {
        "canViewDashboard": True,
        "canToggleUrgentQuick": True,
        "canManageAssignees": True,
        "canAccessConfig": True,
        "canManageRepositories": True,
        "canManageRoles": True,
        "canAccessGamification": True,
    },
    "admin": {
        "canViewDashboard": True,
        "canToggleUrgentQuick": True,
        "canManageAssignees": True,
        "canAccessConfig": True,
        "canManageRepositories": True,
        "canManageRoles": True,
        "canAccessGamification": True,
    },
    "developer": {
        "canViewDashboard": True,
        "canToggleUrgentQuick": True,
        "canManageAssignees": True,
        "canAccessConfig": False,
        "canManageRepositories": False,
        "canManageRoles": False,
        "canAccessGamification": True,
    },
    "guest": {
        "canViewDashboard": True,
        "canToggleUrgentQuick": False,
        "canManageAssignees": False,
        "canAccessConfig": False,
        "canManageRepositories": False,
        "canManageRoles": False,
        "canAccessGamification": False,
    },
}


def permissions_for(role: Optional[UserRole]) -> dict[str, bool]:
    """Unknown or missing roles get guest permissions."""
    return dict(ROLE_PERMISSIONS.get(role or "guest", ROLE_PERMISSIONS["guest"]))


def has_role(role: Optional[UserRole], required: UserRole) -> bool:
    """True when ``role`` is ``required`` or above it in the hierarchy."""
    if role not in ROLE_HIERARCHY:
        return False
    return ROLE_HIERARCHY[role] >= ROLE_HIERARCHY[required]
