"""
Compliance assistant chatbot endpoint.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from backend.app.api.dependencies import get_current_user
from backend.app.api.models import ChatbotRequest
from backend.app.api.responses import error_response, json_response
from backend.app.database.models import Company, User
from backend.app.database.session import get_db
from backend.app.services.llm_service import LlmFallbackService, company_summary
from backend.app.utils.security.permissions import get_active_access
from backend.app.utils.security.rate_limiting import AI_RATE_LIMIT, limiter

router = APIRouter()


@router.post("/chatbot")
@limiter.limit(AI_RATE_LIMIT)
async def chatbot(request: Request, payload: ChatbotRequest,
                  user: User = Depends(get_current_user),
                  db: Session = Depends(get_db)) -> JSONResponse:
    """
    Answer a GDPR question in French.

    The company profile is added to the prompt only when the user holds an
    active access to the requested company. The model being unavailable yields
    an apology message rather than an error.
    """
    try:
        company_context = None
        if payload.company_id is not None and get_active_access(db, user.id, payload.company_id) is not None:
            company = db.get(Company, payload.company_id)
            if company is not None:
                company_context = company_summary(company)
        response = await LlmFallbackService(db).chatbot_response(payload.message, company_context)
        return json_response({"response": response})
    except Exception as e:
        return error_response(e, "api_chatbot", request)
