"""
Processing records registry endpoints, including AI drafting, the DPIA
requirement checks and the CSV export.
"""

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from backend.app.api.dependencies import require_company_permission
from backend.app.api.models import ProcessingRecordCreate, ProcessingRecordUpdate, RecordGenerationRequest
from backend.app.api.responses import error_response, json_response
from backend.app.database.models import User
from backend.app.database.session import get_db
from backend.app.services.company_service import CompanyService
from backend.app.services.record_service import RecordService
from backend.app.utils.constant.constant import CSV_MEDIA_TYPE
from backend.app.utils.security.rate_limiting import AI_RATE_LIMIT, limiter

router = APIRouter()


@router.get("")
async def list_records(request: Request, company_id: int,
                       user: User = Depends(require_company_permission("records", "read")),
                       db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response([record.to_dict() for record in RecordService(db).list_records(company_id)])
    except Exception as e:
        return error_response(e, "api_list_records", request)


@router.get("/export")
async def export_records(request: Request, company_id: int,
                         user: User = Depends(require_company_permission("records", "read")),
                         db: Session = Depends(get_db)):
    """
    Export the register as a CSV file for spreadsheet software.

    Returns:
        Response: text/csv attachment, ';' separated with a UTF-8 BOM.
    """
    try:
        content = RecordService(db).export_csv(company_id)
        return Response(
            content=content.encode("utf-8"),
            media_type=CSV_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="registre_traitements_{company_id}.csv"'},
        )
    except Exception as e:
        return error_response(e, "api_export_records", request)


@router.post("")
async def create_record(request: Request, company_id: int, payload: ProcessingRecordCreate,
                        user: User = Depends(require_company_permission("records", "write")),
                        db: Session = Depends(get_db)) -> JSONResponse:
    try:
        record = RecordService(db).create_record(user, company_id, payload.model_dump(exclude_none=True))
        return json_response(record.to_dict(), status_code=201)
    except Exception as e:
        return error_response(e, "api_create_record", request)


@router.post("/generate")
@limiter.limit(AI_RATE_LIMIT)
async def generate_record(request: Request, company_id: int, payload: RecordGenerationRequest,
                          user: User = Depends(require_company_permission("records", "write")),
                          db: Session = Depends(get_db)) -> JSONResponse:
    try:
        company = CompanyService(db).get_company(company_id)
        record = await RecordService(db).generate_record(user, company, payload.processing_type, payload.description)
        return json_response(record.to_dict(), status_code=201)
    except Exception as e:
        return error_response(e, "api_generate_record", request)


@router.put("/{record_id}")
async def update_record(request: Request, company_id: int, record_id: int, payload: ProcessingRecordUpdate,
                        user: User = Depends(require_company_permission("records", "write")),
                        db: Session = Depends(get_db)) -> JSONResponse:
    try:
        record = RecordService(db).update_record(user, company_id, record_id, payload.model_dump(exclude_unset=True))
        return json_response(record.to_dict())
    except Exception as e:
        return error_response(e, "api_update_record", request)


@router.delete("/{record_id}")
async def delete_record(request: Request, company_id: int, record_id: int,
                        user: User = Depends(require_company_permission("records", "write")),
                        db: Session = Depends(get_db)) -> JSONResponse:
    try:
        RecordService(db).delete_record(user, company_id, record_id)
        return json_response({"status": "success", "id": record_id})
    except Exception as e:
        return error_response(e, "api_delete_record", request)


@router.post("/{record_id}/dpia-precheck")
async def dpia_precheck(request: Request, company_id: int, record_id: int,
                        user: User = Depends(require_company_permission("records", "write")),
                        db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response(RecordService(db).dpia_precheck(user, company_id, record_id))
    except Exception as e:
        return error_response(e, "api_dpia_precheck", request)


@router.post("/{record_id}/analyze-dpia")
@limiter.limit(AI_RATE_LIMIT)
async def analyze_dpia(request: Request, company_id: int, record_id: int,
                       user: User = Depends(require_company_permission("records", "write")),
                       db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response(await RecordService(db).analyze_dpia(user, company_id, record_id))
    except Exception as e:
        return error_response(e, "api_analyze_dpia", request)
