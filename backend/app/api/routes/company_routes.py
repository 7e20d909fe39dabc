"""
Company and collaboration endpoints: company details, switching the current
company, collaborators, invitations and access management.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from backend.app.api.dependencies import get_current_user
from backend.app.api.models import AccessUpdate, CompanyUpdate, InvitationCreate
from backend.app.api.responses import error_response, json_response
from backend.app.database.models import User
from backend.app.database.session import get_db
from backend.app.services.company_service import CompanyService
from backend.app.utils.logging.logger import log_info

router = APIRouter()


@router.get("/companies/{company_id}")
async def get_company(request: Request, company_id: int, user: User = Depends(get_current_user),
                      db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response(CompanyService(db).describe_company(user, company_id))
    except Exception as e:
        return error_response(e, "api_get_company", request)


@router.patch("/companies/{company_id}")
async def update_company(request: Request, company_id: int, payload: CompanyUpdate,
                         user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> JSONResponse:
    try:
        company = CompanyService(db).update_company(user, company_id, payload.model_dump(exclude_unset=True))
        return json_response(company.to_dict())
    except Exception as e:
        return error_response(e, "api_update_company", request)


@router.post("/companies/{company_id}/switch")
async def switch_company(request: Request, company_id: int, user: User = Depends(get_current_user),
                         db: Session = Depends(get_db)) -> JSONResponse:
    try:
        company = CompanyService(db).switch_company(user, company_id)
        return json_response({"status": "success", "current_company_id": company.id, "company": company.to_dict()})
    except Exception as e:
        return error_response(e, "api_switch_company", request)


@router.get("/companies/{company_id}/collaborators")
async def list_collaborators(request: Request, company_id: int, user: User = Depends(get_current_user),
                             db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response(CompanyService(db).list_collaborators(user, company_id))
    except Exception as e:
        return error_response(e, "api_list_collaborators", request)


@router.post("/companies/{company_id}/invitations")
async def invite_collaborator(request: Request, company_id: int, payload: InvitationCreate,
                              user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> JSONResponse:
    """
    Invite a collaborator by email.

    Returns:
        JSONResponse: The invitation including its token (201). Delivering the
        token to the invitee is up to the client.
    """
    try:
        invitation = CompanyService(db).invite(user, company_id, payload.model_dump())
        log_info(f"[COMPANY] Invitation token issued for company {company_id}")
        return json_response(invitation.to_dict(), status_code=201)
    except Exception as e:
        return error_response(e, "api_invite_collaborator", request)


@router.post("/invitations/{token}/accept")
async def accept_invitation(request: Request, token: str, user: User = Depends(get_current_user),
                            db: Session = Depends(get_db)) -> JSONResponse:
    try:
        access = CompanyService(db).accept_invitation(user, token)
        return json_response(access.to_dict())
    except Exception as e:
        return error_response(e, "api_accept_invitation", request)


@router.patch("/companies/{company_id}/access/{access_id}")
async def update_access(request: Request, company_id: int, access_id: int, payload: AccessUpdate,
                        user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> JSONResponse:
    try:
        access = CompanyService(db).update_access(user, company_id, access_id, payload.model_dump(exclude_unset=True))
        return json_response(access.to_dict())
    except Exception as e:
        return error_response(e, "api_update_access", request)


@router.delete("/companies/{company_id}/access/{access_id}")
async def revoke_access(request: Request, company_id: int, access_id: int,
                        user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> JSONResponse:
    try:
        access = CompanyService(db).revoke_access(user, company_id, access_id)
        return json_response(access.to_dict())
    except Exception as e:
        return error_response(e, "api_revoke_access", request)
