"""
Compliance dashboard endpoints.
"""

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from backend.app.api.dependencies import require_company_permission
from backend.app.api.responses import error_response, json_response
from backend.app.database.models import User
from backend.app.database.session import get_db
from backend.app.services.dashboard_service import DashboardService

router = APIRouter()


@router.get("/companies/{company_id}/dashboard")
async def get_dashboard(request: Request, company_id: int,
                        user: User = Depends(require_company_permission("diagnostic", "read")),
                        db: Session = Depends(get_db)) -> JSONResponse:
    """
    Aggregate the compliance indicators of a company.

    Also records the day's compliance snapshot when the diagnostic has answers.
    """
    try:
        return json_response(DashboardService(db).get_dashboard(company_id))
    except Exception as e:
        return error_response(e, "api_get_dashboard", request)


@router.get("/companies/{company_id}/compliance-snapshots")
async def list_snapshots(request: Request, company_id: int, limit: int = Query(12, ge=1, le=120),
                         user: User = Depends(require_company_permission("diagnostic", "read")),
                         db: Session = Depends(get_db)) -> JSONResponse:
    try:
        snapshots = DashboardService(db).list_snapshots(company_id, limit)
        return json_response([snapshot.to_dict() for snapshot in snapshots])
    except Exception as e:
        return error_response(e, "api_list_snapshots", request)
