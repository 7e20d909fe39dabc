"""
Data breach register endpoints, including the AI notification analysis.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from backend.app.api.dependencies import require_company_permission
from backend.app.api.models import BreachPayload, BreachReportRequest
from backend.app.api.responses import error_response, json_response
from backend.app.database.models import User
from backend.app.database.session import get_db
from backend.app.services.breach_service import BreachService, serialize_breach
from backend.app.utils.security.rate_limiting import AI_RATE_LIMIT, limiter

router = APIRouter()


@router.get("")
async def list_breaches(request: Request, company_id: int,
                        user: User = Depends(require_company_permission("breaches", "read")),
                        db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response([serialize_breach(breach) for breach in BreachService(db).list_breaches(company_id)])
    except Exception as e:
        return error_response(e, "api_list_breaches", request)


@router.post("")
async def create_breach(request: Request, company_id: int, payload: BreachPayload,
                        user: User = Depends(require_company_permission("breaches", "write")),
                        db: Session = Depends(get_db)) -> JSONResponse:
    try:
        breach = BreachService(db).create_breach(user, company_id, payload.model_dump(exclude_none=True))
        return json_response(serialize_breach(breach), status_code=201)
    except Exception as e:
        return error_response(e, "api_create_breach", request)


@router.post("/analyze")
@limiter.limit(AI_RATE_LIMIT)
async def analyze_breach(request: Request, company_id: int, payload: BreachPayload,
                         user: User = Depends(require_company_permission("breaches", "write")),
                         db: Session = Depends(get_db)) -> JSONResponse:
    """
    Analyse a breach against the EDPB criteria and store it.

    Returns:
        JSONResponse: {breach, analysis} (201), or 503 when the model is
        unavailable, in which case nothing is stored.
    """
    try:
        result = await BreachService(db).analyze(user, company_id, payload.model_dump(exclude_none=True))
        return json_response(result, status_code=201)
    except Exception as e:
        return error_response(e, "api_analyze_breach", request)


@router.put("/{breach_id}")
async def update_breach(request: Request, company_id: int, breach_id: int, payload: BreachPayload,
                        user: User = Depends(require_company_permission("breaches", "write")),
                        db: Session = Depends(get_db)) -> JSONResponse:
    try:
        breach = BreachService(db).update_breach(user, company_id, breach_id, payload.model_dump(exclude_unset=True))
        return json_response(serialize_breach(breach))
    except Exception as e:
        return error_response(e, "api_update_breach", request)


@router.post("/{breach_id}/report")
async def report_breach(request: Request, company_id: int, breach_id: int, payload: BreachReportRequest,
                        user: User = Depends(require_company_permission("breaches", "write")),
                        db: Session = Depends(get_db)) -> JSONResponse:
    try:
        breach = BreachService(db).report(user, company_id, breach_id, payload.notify_data_subjects)
        return json_response(serialize_breach(breach))
    except Exception as e:
        return error_response(e, "api_report_breach", request)
