"""
Permission evaluation for companies and for the platform.

Company permissions are strings of the form "<module>.<action>" held by a
UserCompanyAccess. "write" implies "read", an active owner holds every
permission, and an admin may additionally invite collaborators. Platform
permissions derive from the user role through ROLE_PERMISSIONS.
"""

from typing import Iterable, List, Optional, Set

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.configs.rgpd_config import (
    MANAGER_ROLES,
    PERMISSION_ACTIONS,
    PERMISSION_ALL,
    PERMISSION_INVITE,
    PERMISSION_MODULES,
    ROLE_PERMISSIONS,
)
from backend.app.database.models import User, UserCompanyAccess
from backend.app.utils.system_utils.exceptions import AccessDeniedError, BusinessRuleError

SUPER_ADMIN_ROLE = "super_admin"


def is_valid_permission(permission: str) -> bool:
    """Tell whether a string is a known company permission."""
    if permission in (PERMISSION_ALL, PERMISSION_INVITE):
        return True
    module, _, action = permission.partition(".")
    return module in PERMISSION_MODULES and action in PERMISSION_ACTIONS


def validate_permissions(permissions: Iterable[str]) -> List[str]:
    """
    Validate and deduplicate a permission list, keeping its order.

    Raises:
        BusinessRuleError: If one of the strings is not a known permission.
    """
    result = []
    for permission in permissions:
        if not is_valid_permission(permission):
            raise BusinessRuleError(f"Permission inconnue: {permission}")
        if permission not in result:
            result.append(permission)
    return result


def effective_permissions(access: Optional[UserCompanyAccess]) -> Set[str]:
    """
    Expand the permissions an access actually grants.

    Revoked or pending accesses grant nothing. Owners and "all" expand to every
    module permission; any write permission adds the matching read.
    """
    if access is None or access.status != "active":
        return set()
    granted = set(access.permissions or [])
    if access.role == "owner" or PERMISSION_ALL in granted:
        granted = {f"{m}.{a}" for m in PERMISSION_MODULES for a in PERMISSION_ACTIONS}
        granted.update({PERMISSION_ALL, PERMISSION_INVITE})
        return granted
    for permission in list(granted):
        if permission.endswith(".write"):
            granted.add(permission[:-len("write")] + "read")
    if access.role == "admin":
        granted.add(PERMISSION_INVITE)
    return granted


def access_allows(access: Optional[UserCompanyAccess], module: str, action: str = "read") -> bool:
    """Check a single "<module>.<action>" permission on an access."""
    return f"{module}.{action}" in effective_permissions(access)


def can_invite(access: Optional[UserCompanyAccess]) -> bool:
    """Only active owners and admins holding "all" or "invite" may invite."""
    if access is None or access.status != "active" or access.role not in MANAGER_ROLES:
        return False
    if access.role == "owner":
        return True
    stored = set(access.permissions or [])
    return PERMISSION_ALL in stored or PERMISSION_INVITE in stored


def get_active_access(db: Session, user_id: int, company_id: int) -> Optional[UserCompanyAccess]:
    return db.scalar(
        select(UserCompanyAccess).where(
            UserCompanyAccess.user_id == user_id,
            UserCompanyAccess.company_id == company_id,
            UserCompanyAccess.status == "active",
        )
    )


def check_company_permission(
        db: Session, user: User, company_id: int, module: str, action: str = "read"
) -> Optional[UserCompanyAccess]:
    """
    Ensure a user holds a company permission.

    Returns:
        The user's access to the company, or None for platform super admins.

    Raises:
        AccessDeniedError: If the permission is not granted.
    """
    if user.role == SUPER_ADMIN_ROLE:
        return get_active_access(db, user.id, company_id)
    access = get_active_access(db, user.id, company_id)
    if not access_allows(access, module, action):
        raise AccessDeniedError()
    return access


def check_company_member(db: Session, user: User, company_id: int) -> Optional[UserCompanyAccess]:
    """Ensure the user has any active access to the company."""
    access = get_active_access(db, user.id, company_id)
    if access is None and user.role != SUPER_ADMIN_ROLE:
        raise AccessDeniedError()
    return access


def check_company_manager(db: Session, user: User, company_id: int) -> Optional[UserCompanyAccess]:
    """Ensure the user is an owner or admin of the company."""
    access = get_active_access(db, user.id, company_id)
    if user.role == SUPER_ADMIN_ROLE:
        return access
    if access is None or access.role not in MANAGER_ROLES:
        raise AccessDeniedError("Seuls le propriétaire et les administrateurs peuvent effectuer cette action")
    return access


def platform_permissions(role: str) -> List[str]:
    return list(ROLE_PERMISSIONS.get(role, ROLE_PERMISSIONS["user"]))


def has_platform_permission(user: User, permission: str) -> bool:
    return permission in platform_permissions(user.role)


def check_platform_permission(user: User, permission: str) -> None:
    if not has_platform_permission(user, permission):
        raise AccessDeniedError()
