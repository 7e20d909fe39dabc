"""
FastAPI dependencies resolving the session user and enforcing permissions.

Failures raise domain exceptions, turned into JSON error responses by the
handler registered in create_app().
"""

from typing import Callable

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from backend.app.database.models import User
from backend.app.database.session import get_db
from backend.app.services.auth_service import AuthService
from backend.app.utils.security.permissions import (
    check_company_manager,
    check_company_permission,
    check_platform_permission,
)
from backend.app.utils.system_utils.exceptions import AuthenticationError

SESSION_USER_KEY = "user_id"


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Resolve the user stored in the signed session cookie.

    Raises:
        AuthenticationError: If no user is logged in or the user no longer exists.
    """
    user_id = request.session.get(SESSION_USER_KEY)
    if not user_id:
        raise AuthenticationError()
    try:
        return AuthService(db).get_user(int(user_id))
    except AuthenticationError:
        request.session.clear()
        raise


def require_company_permission(module: str, action: str = "read") -> Callable[..., User]:
    """
    Dependency factory checking a module permission on the `company_id` path parameter.

    Args:
        module: Module identifier, e.g. "records".
        action: "read" or "write".
    """

    def dependency(company_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> User:
        check_company_permission(db, user, company_id, module, action)
        return user

    return dependency


def require_company_manager(company_id: int, user: User = Depends(get_current_user),
                            db: Session = Depends(get_db)) -> User:
    check_company_manager(db, user, company_id)
    return user


def require_platform_permission(permission: str) -> Callable[..., User]:
    """Dependency factory checking a platform permission such as "manage:prompts"."""

    def dependency(user: User = Depends(get_current_user)) -> User:
        check_platform_permission(user, permission)
        return user

    return dependency
