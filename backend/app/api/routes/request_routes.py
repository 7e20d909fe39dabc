"""
Data subject request endpoints.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from backend.app.api.dependencies import require_company_permission
from backend.app.api.models import RequestCreate, RequestUpdate
from backend.app.api.responses import error_response, json_response
from backend.app.database.models import User
from backend.app.database.session import get_db
from backend.app.services.request_service import RequestService, serialize_request

router = APIRouter()


@router.get("")
async def list_requests(request: Request, company_id: int,
                        user: User = Depends(require_company_permission("requests", "read")),
                        db: Session = Depends(get_db)) -> JSONResponse:
    try:
        requests = RequestService(db).list_requests(company_id)
        return json_response([serialize_request(item) for item in requests])
    except Exception as e:
        return error_response(e, "api_list_requests", request)


@router.post("")
async def create_request(request: Request, company_id: int, payload: RequestCreate,
                         user: User = Depends(require_company_permission("requests", "write")),
                         db: Session = Depends(get_db)) -> JSONResponse:
    """
    Register a request; its due date is one month after creation.

    Returns:
        JSONResponse: The request with its overdue flag (201).
    """
    try:
        created = RequestService(db).create_request(user, company_id, payload.model_dump())
        return json_response(serialize_request(created), status_code=201)
    except Exception as e:
        return error_response(e, "api_create_request", request)


@router.put("/{request_id}")
async def update_request(request: Request, company_id: int, request_id: int, payload: RequestUpdate,
                         user: User = Depends(require_company_permission("requests", "write")),
                         db: Session = Depends(get_db)) -> JSONResponse:
    try:
        updated = RequestService(db).update_request(
            user, company_id, request_id, payload.model_dump(exclude_unset=True)
        )
        return json_response(serialize_request(updated))
    except Exception as e:
        return error_response(e, "api_update_request", request)


@router.post("/{request_id}/extend")
async def extend_request(request: Request, company_id: int, request_id: int,
                         user: User = Depends(require_company_permission("requests", "write")),
                         db: Session = Depends(get_db)) -> JSONResponse:
    try:
        extended = RequestService(db).extend_request(user, company_id, request_id)
        return json_response(serialize_request(extended))
    except Exception as e:
        return error_response(e, "api_extend_request", request)
