"""
Privacy policy endpoints: versions, generation and activation.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from backend.app.api.dependencies import require_company_permission
from backend.app.api.responses import error_response, json_response
from backend.app.database.models import User
from backend.app.database.session import get_db
from backend.app.services.company_service import CompanyService
from backend.app.services.policy_service import PolicyService
from backend.app.utils.security.rate_limiting import AI_RATE_LIMIT, limiter

router = APIRouter()


@router.get("")
async def list_policies(request: Request, company_id: int,
                        user: User = Depends(require_company_permission("policies", "read")),
                        db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response([policy.to_dict() for policy in PolicyService(db).list_policies(company_id)])
    except Exception as e:
        return error_response(e, "api_list_policies", request)


@router.get("/active")
async def get_active_policy(request: Request, company_id: int,
                            user: User = Depends(require_company_permission("policies", "read")),
                            db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response(PolicyService(db).get_active(company_id).to_dict())
    except Exception as e:
        return error_response(e, "api_get_active_policy", request)


@router.post("/generate")
@limiter.limit(AI_RATE_LIMIT)
async def generate_policy(request: Request, company_id: int,
                          user: User = Depends(require_company_permission("policies", "write")),
                          db: Session = Depends(get_db)) -> JSONResponse:
    """
    Generate a new active version of the privacy policy.

    Returns:
        JSONResponse: The policy (201); generated_by tells whether the model or
        the base template wrote it.
    """
    try:
        company = CompanyService(db).get_company(company_id)
        policy = await PolicyService(db).generate(user, company)
        return json_response(policy.to_dict(), status_code=201)
    except Exception as e:
        return error_response(e, "api_generate_policy", request)


@router.post("/{policy_id}/activate")
async def activate_policy(request: Request, company_id: int, policy_id: int,
                          user: User = Depends(require_company_permission("policies", "write")),
                          db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response(PolicyService(db).activate(user, company_id, policy_id).to_dict())
    except Exception as e:
        return error_response(e, "api_activate_policy", request)
