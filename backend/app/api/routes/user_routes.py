"""
Self-service endpoints of the logged-in user: profile, password,
subscription, invoices, and the companies the user can access or create.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from backend.app.api.dependencies import get_current_user
from backend.app.api.models import CompanyCreate, PasswordChange, ProfileUpdate
from backend.app.api.responses import error_response, json_response
from backend.app.database.models import User
from backend.app.database.session import get_db
from backend.app.services.auth_service import AuthService
from backend.app.services.company_service import CompanyService

router = APIRouter()


@router.get("/profile")
async def get_profile(request: Request, user: User = Depends(get_current_user)) -> JSONResponse:
    try:
        return json_response(user.to_public_dict())
    except Exception as e:
        return error_response(e, "api_get_profile", request)


@router.patch("/profile")
async def update_profile(request: Request, payload: ProfileUpdate, user: User = Depends(get_current_user),
                         db: Session = Depends(get_db)) -> JSONResponse:
    try:
        updated = AuthService(db).update_profile(user, payload.model_dump(exclude_unset=True))
        return json_response(updated.to_public_dict())
    except Exception as e:
        return error_response(e, "api_update_profile", request)


@router.patch("/password")
async def change_password(request: Request, payload: PasswordChange, user: User = Depends(get_current_user),
                          db: Session = Depends(get_db)) -> JSONResponse:
    try:
        AuthService(db).change_password(user, payload.current_password, payload.new_password)
        return json_response({"status": "success", "message": "Mot de passe modifié"})
    except Exception as e:
        return error_response(e, "api_change_password", request)


@router.get("/subscription")
async def get_subscription(request: Request, user: User = Depends(get_current_user),
                           db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response(AuthService(db).get_subscription_or_404(user).to_dict())
    except Exception as e:
        return error_response(e, "api_get_subscription", request)


@router.get("/invoices")
async def list_invoices(request: Request, user: User = Depends(get_current_user),
                        db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response([invoice.to_dict() for invoice in AuthService(db).list_invoices(user)])
    except Exception as e:
        return error_response(e, "api_list_invoices", request)


@router.get("/company-access")
async def list_company_access(request: Request, user: User = Depends(get_current_user),
                              db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response(AuthService(db).list_company_accesses(user))
    except Exception as e:
        return error_response(e, "api_list_company_access", request)


@router.get("/companies")
async def list_companies(request: Request, user: User = Depends(get_current_user),
                         db: Session = Depends(get_db)) -> JSONResponse:
    try:
        companies = CompanyService(db).list_user_companies(user)
        return json_response([company.to_dict() for company in companies])
    except Exception as e:
        return error_response(e, "api_list_companies", request)


@router.post("/companies")
async def create_company(request: Request, payload: CompanyCreate, user: User = Depends(get_current_user),
                         db: Session = Depends(get_db)) -> JSONResponse:
    """
    Create a company owned by the user, within the limit of the subscription.

    Returns:
        JSONResponse: The company (201), or 400 when the limit is reached.
    """
    try:
        company = CompanyService(db).create_company(user, payload.model_dump())
        return json_response(company.to_dict(), status_code=201)
    except Exception as e:
        return error_response(e, "api_create_company", request)
