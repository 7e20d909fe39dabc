"""
Compliance action endpoints, with comments and the activity feed.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from backend.app.api.dependencies import require_company_manager, require_company_permission
from backend.app.api.models import ActionCreate, ActionUpdate, CommentCreate
from backend.app.api.responses import error_response, json_response
from backend.app.database.models import User
from backend.app.database.session import get_db
from backend.app.services.action_service import ActionService

router = APIRouter()


@router.get("")
async def list_actions(request: Request, company_id: int,
                       user: User = Depends(require_company_permission("actions", "read")),
                       db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response([action.to_dict() for action in ActionService(db).list_actions(company_id)])
    except Exception as e:
        return error_response(e, "api_list_actions", request)


@router.post("")
async def create_action(request: Request, company_id: int, payload: ActionCreate,
                        user: User = Depends(require_company_permission("actions", "write")),
                        db: Session = Depends(get_db)) -> JSONResponse:
    try:
        action = ActionService(db).create_action(user, company_id, payload.model_dump())
        return json_response(action.to_dict(), status_code=201)
    except Exception as e:
        return error_response(e, "api_create_action", request)


@router.put("/{action_id}")
async def update_action(request: Request, company_id: int, action_id: int, payload: ActionUpdate,
                        user: User = Depends(require_company_permission("actions", "write")),
                        db: Session = Depends(get_db)) -> JSONResponse:
    """
    Partially update an action.

    Returns:
        JSONResponse: The action, or 403 when an action requiring approval is
        completed by someone other than an owner or admin.
    """
    try:
        action = ActionService(db).update_action(user, company_id, action_id, payload.model_dump(exclude_unset=True))
        return json_response(action.to_dict())
    except Exception as e:
        return error_response(e, "api_update_action", request)


@router.post("/{action_id}/approve")
async def approve_action(request: Request, company_id: int, action_id: int,
                         user: User = Depends(require_company_manager),
                         db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response(ActionService(db).approve_action(user, company_id, action_id).to_dict())
    except Exception as e:
        return error_response(e, "api_approve_action", request)


@router.delete("/{action_id}")
async def delete_action(request: Request, company_id: int, action_id: int,
                        user: User = Depends(require_company_permission("actions", "write")),
                        db: Session = Depends(get_db)) -> JSONResponse:
    try:
        ActionService(db).delete_action(user, company_id, action_id)
        return json_response({"status": "success", "id": action_id})
    except Exception as e:
        return error_response(e, "api_delete_action", request)


@router.get("/{action_id}/comments")
async def list_comments(request: Request, company_id: int, action_id: int,
                        user: User = Depends(require_company_permission("actions", "read")),
                        db: Session = Depends(get_db)) -> JSONResponse:
    try:
        comments = ActionService(db).list_comments(company_id, action_id)
        return json_response([comment.to_dict() for comment in comments])
    except Exception as e:
        return error_response(e, "api_list_comments", request)


@router.post("/{action_id}/comments")
async def add_comment(request: Request, company_id: int, action_id: int, payload: CommentCreate,
                      user: User = Depends(require_company_permission("actions", "write")),
                      db: Session = Depends(get_db)) -> JSONResponse:
    try:
        comment = ActionService(db).add_comment(user, company_id, action_id, payload.model_dump())
        return json_response(comment.to_dict(), status_code=201)
    except Exception as e:
        return error_response(e, "api_add_comment", request)


@router.get("/{action_id}/activity")
async def list_activity(request: Request, company_id: int, action_id: int,
                        user: User = Depends(require_company_permission("actions", "read")),
                        db: Session = Depends(get_db)) -> JSONResponse:
    try:
        activity = ActionService(db).list_activity(company_id, action_id)
        return json_response([entry.to_dict() for entry in activity])
    except Exception as e:
        return error_response(e, "api_list_activity", request)
