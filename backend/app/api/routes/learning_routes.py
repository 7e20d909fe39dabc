"""
Learning modules and gamification endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from backend.app.api.dependencies import get_current_user
from backend.app.api.models import LearningProgressUpdate
from backend.app.api.responses import error_response, json_response
from backend.app.database.models import User
from backend.app.database.session import get_db
from backend.app.services.learning_service import LearningService

router = APIRouter()
gamification_router = APIRouter()


@router.get("/modules")
async def list_modules(request: Request, category: Optional[str] = Query(None),
                       user: User = Depends(get_current_user),
                       db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response([module.to_dict() for module in LearningService(db).list_modules(category)])
    except Exception as e:
        return error_response(e, "api_list_learning_modules", request)


@router.get("/modules/{module_id}")
async def get_module(request: Request, module_id: int,
                     user: User = Depends(get_current_user),
                     db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response(LearningService(db).get_module(module_id).to_dict())
    except Exception as e:
        return error_response(e, "api_get_learning_module", request)


@router.post("/progress")
async def update_progress(request: Request, payload: LearningProgressUpdate,
                          user: User = Depends(get_current_user),
                          db: Session = Depends(get_db)) -> JSONResponse:
    try:
        entry = LearningService(db).update_progress(user, payload.module_id, payload.progress, payload.time_spent)
        return json_response(entry.to_dict())
    except Exception as e:
        return error_response(e, "api_update_learning_progress", request)


@router.post("/modules/{module_id}/complete")
async def complete_module(request: Request, module_id: int,
                          user: User = Depends(get_current_user),
                          db: Session = Depends(get_db)) -> JSONResponse:
    """
    Complete a module, awarding its XP on the first completion only.

    Returns:
        JSONResponse: xp_awarded, total_xp, level, streak, new_achievements
        and already_completed.
    """
    try:
        return json_response(LearningService(db).complete_module(user, module_id))
    except Exception as e:
        return error_response(e, "api_complete_learning_module", request)


@gamification_router.get("/progress")
async def get_progress(request: Request, user: User = Depends(get_current_user),
                       db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response(LearningService(db).get_progress(user))
    except Exception as e:
        return error_response(e, "api_get_gamification_progress", request)


@gamification_router.get("/achievements")
async def list_achievements(request: Request, user: User = Depends(get_current_user),
                            db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response(LearningService(db).list_achievements(user))
    except Exception as e:
        return error_response(e, "api_list_achievements", request)


@gamification_router.get("/leaderboard")
async def leaderboard(request: Request, limit: int = Query(10, ge=1, le=100),
                      user: User = Depends(get_current_user),
                      db: Session = Depends(get_db)) -> JSONResponse:
    try:
        return json_response(LearningService(db).leaderboard(limit))
    except Exception as e:
        return error_response(e, "api_leaderboard", request)
