"""
Endpoints of the register of processing carried out for clients.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from backend.app.api.dependencies import require_company_permission
from backend.app.api.models import SubprocessorPayload
from backend.app.api.responses import error_response, json_response
from backend.app.database.models import User
from backend.app.database.session import get_db
from backend.app.services.subprocessor_service import SubprocessorService

router = APIRouter()


@router.get("")
async def list_subprocessors(request: Request, company_id: int,
                             user: User = Depends(require_company_permission("subprocessors", "read")),
                             db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response([record.to_dict() for record in SubprocessorService(db).list_records(company_id)])
    except Exception as e:
        return error_response(e, "api_list_subprocessors", request)


@router.post("")
async def create_subprocessor(request: Request, company_id: int, payload: SubprocessorPayload,
                              user: User = Depends(require_company_permission("subprocessors", "write")),
                              db: Session = Depends(get_db)) -> JSONResponse:
    try:
        record = SubprocessorService(db).create_record(user, company_id, payload.model_dump(exclude_none=True))
        return json_response(record.to_dict(), status_code=201)
    except Exception as e:
        return error_response(e, "api_create_subprocessor", request)


@router.put("/{record_id}")
async def update_subprocessor(request: Request, company_id: int, record_id: int, payload: SubprocessorPayload,
                              user: User = Depends(require_company_permission("subprocessors", "write")),
                              db: Session = Depends(get_db)) -> JSONResponse:
    try:
        record = SubprocessorService(db).update_record(
            user, company_id, record_id, payload.model_dump(exclude_unset=True)
        )
        return json_response(record.to_dict())
    except Exception as e:
        return error_response(e, "api_update_subprocessor", request)


@router.delete("/{record_id}")
async def delete_subprocessor(request: Request, company_id: int, record_id: int,
                              user: User = Depends(require_company_permission("subprocessors", "write")),
                              db: Session = Depends(get_db)) -> JSONResponse:
    try:
        SubprocessorService(db).delete_record(user, company_id, record_id)
        return json_response({"status": "success", "id": record_id})
    except Exception as e:
        return error_response(e, "api_delete_subprocessor", request)
