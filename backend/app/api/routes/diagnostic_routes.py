"""
Diagnostic questionnaire endpoints: questions, a company's answers, their
analysis into compliance actions, and the AI action plan.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from backend.app.api.dependencies import get_current_user, require_company_permission
from backend.app.api.models import DiagnosticAnswer
from backend.app.api.responses import error_response, json_response
from backend.app.database.models import User
from backend.app.database.session import get_db
from backend.app.services.company_service import CompanyService
from backend.app.services.diagnostic_service import DiagnosticService
from backend.app.utils.security.rate_limiting import AI_RATE_LIMIT, limiter

router = APIRouter()


@router.get("/diagnostic/questions")
async def list_questions(request: Request, user: User = Depends(get_current_user),
                         db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response([question.to_dict() for question in DiagnosticService(db).list_questions()])
    except Exception as e:
        return error_response(e, "api_list_questions", request)


@router.get("/companies/{company_id}/diagnostic/responses")
async def list_responses(request: Request, company_id: int,
                         user: User = Depends(require_company_permission("diagnostic", "read")),
                         db: Session = Depends(get_db)) -> JSONResponse:
    try:
        responses = DiagnosticService(db).list_responses(company_id)
        return json_response([response.to_dict() for response in responses])
    except Exception as e:
        return error_response(e, "api_list_responses", request)


@router.post("/companies/{company_id}/diagnostic/responses")
async def save_response(request: Request, company_id: int, payload: DiagnosticAnswer,
                        user: User = Depends(require_company_permission("diagnostic", "write")),
                        db: Session = Depends(get_db)) -> JSONResponse:
    try:
        response = DiagnosticService(db).save_response(user, company_id, payload.question_id, payload.response)
        return json_response(response.to_dict())
    except Exception as e:
        return error_response(e, "api_save_response", request)


@router.post("/companies/{company_id}/diagnostic/analyze")
async def analyze_diagnostic(request: Request, company_id: int,
                             user: User = Depends(require_company_permission("diagnostic", "write")),
                             db: Session = Depends(get_db)) -> JSONResponse:
    """
    Turn the company's answers into compliance actions.

    Returns:
        JSONResponse: actions, overall_risk_score, risk_distribution,
        total_actions and summary.
    """
    try:
        return json_response(DiagnosticService(db).analyze(user, company_id))
    except Exception as e:
        return error_response(e, "api_analyze_diagnostic", request)


@router.post("/companies/{company_id}/diagnostic/ai-action-plan")
@limiter.limit(AI_RATE_LIMIT)
async def ai_action_plan(request: Request, company_id: int,
                         user: User = Depends(require_company_permission("diagnostic", "write")),
                         db: Session = Depends(get_db)) -> JSONResponse:
    try:
        company = CompanyService(db).get_company(company_id)
        return json_response(await DiagnosticService(db).generate_ai_action_plan(company))
    except Exception as e:
        return error_response(e, "api_ai_action_plan", request)
