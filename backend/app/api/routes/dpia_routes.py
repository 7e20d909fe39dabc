"""
DPIA (AIPD) endpoints: assessments, AI drafting and full AI assessments, CNIL risk scenarios,
the security-measure catalogue and the requirement evaluations.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from backend.app.api.dependencies import require_company_permission
from backend.app.api.models import DpiaAssessRequest, DpiaAssistRequest, DpiaEvaluationPayload, DpiaPayload
from backend.app.api.responses import error_response, json_response
from backend.app.database.models import User
from backend.app.database.session import get_db
from backend.app.services.company_service import CompanyService
from backend.app.services.dpia_service import DpiaService
from backend.app.utils.security.rate_limiting import AI_RATE_LIMIT, limiter

router = APIRouter()
evaluation_router = APIRouter()


@router.get("/security-measures")
async def security_measures(request: Request, company_id: int, category: Optional[str] = Query(None),
                            user: User = Depends(require_company_permission("dpia", "read"))) -> JSONResponse:
    try:
        return json_response(DpiaService.security_measures(category))
    except Exception as e:
        return error_response(e, "api_security_measures", request)


@router.get("")
async def list_assessments(request: Request, company_id: int,
                           user: User = Depends(require_company_permission("dpia", "read")),
                           db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response([dpia.to_dict() for dpia in DpiaService(db).list_assessments(company_id)])
    except Exception as e:
        return error_response(e, "api_list_dpia", request)


@router.post("")
async def create_assessment(request: Request, company_id: int, payload: DpiaPayload,
                            user: User = Depends(require_company_permission("dpia", "write")),
                            db: Session = Depends(get_db)) -> JSONResponse:
    try:
        dpia = DpiaService(db).create_assessment(user, company_id, payload.model_dump(exclude_none=True))
        return json_response(dpia.to_dict(), status_code=201)
    except Exception as e:
        return error_response(e, "api_create_dpia", request)


@router.post("/ai-assist")
@limiter.limit(AI_RATE_LIMIT)
async def ai_assist(request: Request, company_id: int, payload: DpiaAssistRequest,
                    user: User = Depends(require_company_permission("dpia", "write")),
                    db: Session = Depends(get_db)) -> JSONResponse:
    """
    Draft one questionnaire field from the company context and the DPIA
    reference documents.

    Returns:
        JSONResponse: {response, field}, or 503 when the model is unavailable.
    """
    try:
        company = CompanyService(db).get_company(company_id)
        result = await DpiaService(db).ai_assist(
            user, company, payload.field, existing_data=payload.existing_data, dpia_id=payload.dpia_id
        )
        return json_response(result)
    except Exception as e:
        return error_response(e, "api_dpia_ai_assist", request)


@router.post("/assess")
@limiter.limit(AI_RATE_LIMIT)
async def assess(request: Request, company_id: int, payload: DpiaAssessRequest,
                 user: User = Depends(require_company_permission("dpia", "write")),
                 db: Session = Depends(get_db)) -> JSONResponse:
    try:
        company = CompanyService(db).get_company(company_id)
        dpia = await DpiaService(db).assess(
            user, company, payload.processing_record_id,
            name=payload.processing_name, description=payload.processing_description,
        )
        return json_response(dpia.to_dict(), status_code=201)
    except Exception as e:
        return error_response(e, "api_dpia_assess", request)


@router.get("/{dpia_id}")
async def get_assessment(request: Request, company_id: int, dpia_id: int,
                         user: User = Depends(require_company_permission("dpia", "read")),
                         db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response(DpiaService(db).get_assessment(company_id, dpia_id).to_dict())
    except Exception as e:
        return error_response(e, "api_get_dpia", request)


@router.patch("/{dpia_id}")
async def update_assessment(request: Request, company_id: int, dpia_id: int, payload: DpiaPayload,
                            user: User = Depends(require_company_permission("dpia", "write")),
                            db: Session = Depends(get_db)) -> JSONResponse:
    try:
        dpia = DpiaService(db).update_assessment(user, company_id, dpia_id, payload.model_dump(exclude_unset=True))
        return json_response(dpia.to_dict())
    except Exception as e:
        return error_response(e, "api_update_dpia", request)


@router.delete("/{dpia_id}")
async def delete_assessment(request: Request, company_id: int, dpia_id: int,
                            user: User = Depends(require_company_permission("dpia", "write")),
                            db: Session = Depends(get_db)) -> JSONResponse:
    try:
        DpiaService(db).delete_assessment(user, company_id, dpia_id)
        return json_response({"status": "success", "id": dpia_id})
    except Exception as e:
        return error_response(e, "api_delete_dpia", request)


@router.post("/{dpia_id}/risk-assessment")
@limiter.limit(AI_RATE_LIMIT)
async def risk_assessment(request: Request, company_id: int, dpia_id: int,
                          user: User = Depends(require_company_permission("dpia", "write")),
                          db: Session = Depends(get_db)) -> JSONResponse:
    try:
        company = CompanyService(db).get_company(company_id)
        dpia = await DpiaService(db).risk_assessment(user, company, dpia_id)
        return json_response(dpia.to_dict())
    except Exception as e:
        return error_response(e, "api_dpia_risk_assessment", request)


# Requirement evaluations

@evaluation_router.get("")
async def list_evaluations(request: Request, company_id: int,
                           user: User = Depends(require_company_permission("dpia", "read")),
                           db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response([item.to_dict() for item in DpiaService(db).list_evaluations(company_id)])
    except Exception as e:
        return error_response(e, "api_list_dpia_evaluations", request)


@evaluation_router.post("")
async def create_evaluation(request: Request, company_id: int, payload: DpiaEvaluationPayload,
                            user: User = Depends(require_company_permission("dpia", "write")),
                            db: Session = Depends(get_db)) -> JSONResponse:
    try:
        evaluation = DpiaService(db).create_evaluation(user, company_id, payload.model_dump(exclude_none=True))
        return json_response(evaluation.to_dict(), status_code=201)
    except Exception as e:
        return error_response(e, "api_create_dpia_evaluation", request)


@evaluation_router.put("/{evaluation_id}")
async def update_evaluation(request: Request, company_id: int, evaluation_id: int, payload: DpiaEvaluationPayload,
                            user: User = Depends(require_company_permission("dpia", "write")),
                            db: Session = Depends(get_db)) -> JSONResponse:
    try:
        evaluation = DpiaService(db).update_evaluation(
            user, company_id, evaluation_id, payload.model_dump(exclude_unset=True)
        )
        return json_response(evaluation.to_dict())
    except Exception as e:
        return error_response(e, "api_update_dpia_evaluation", request)
