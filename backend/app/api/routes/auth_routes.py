"""
Authentication endpoints.

Users are identified by a signed session cookie holding their id; logging in
and registering open the session, logging out clears it.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from backend.app.api.dependencies import SESSION_USER_KEY, get_current_user
from backend.app.api.models import LoginRequest, RegisterRequest
from backend.app.api.responses import error_response, json_response
from backend.app.database.models import User
from backend.app.database.session import get_db
from backend.app.services.auth_service import AuthService
from backend.app.utils.security.rate_limiting import AUTH_RATE_LIMIT, limiter

router = APIRouter()


@router.post("/register")
@limiter.limit(AUTH_RATE_LIMIT)
async def register(request: Request, payload: RegisterRequest, db: Session = Depends(get_db)) -> JSONResponse:
    """
    Create an account with the default subscription and log it in.

    Returns:
        JSONResponse: The public user with its platform permissions (201).
    """
    try:
        service = AuthService(db)
        user = service.register(payload.model_dump())
        request.session[SESSION_USER_KEY] = user.id
        return json_response(service.describe(user), status_code=201)
    except Exception as e:
        return error_response(e, "api_register", request)


@router.post("/login")
@limiter.limit(AUTH_RATE_LIMIT)
async def login(request: Request, payload: LoginRequest, db: Session = Depends(get_db)) -> JSONResponse:
    try:
        service = AuthService(db)
        user = service.authenticate(payload.username, payload.password)
        request.session.clear()
        request.session[SESSION_USER_KEY] = user.id
        return json_response(service.describe(user))
    except Exception as e:
        return error_response(e, "api_login", request)


@router.post("/logout")
async def logout(request: Request) -> JSONResponse:
    request.session.clear()
    return json_response({"status": "success", "message": "Déconnexion réussie"})


@router.get("/me")
async def me(request: Request, user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response(AuthService(db).describe(user))
    except Exception as e:
        return error_response(e, "api_me", request)
