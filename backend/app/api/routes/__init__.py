"""
Routes package for API endpoints.

This module exports all route collections for the API.
"""
from backend.app.api.routes.action_routes import router as action_router
from backend.app.api.routes.admin_routes import router as admin_router
from backend.app.api.routes.auth_routes import router as auth_router
from backend.app.api.routes.breach_routes import router as breach_router
from backend.app.api.routes.chatbot_routes import router as chatbot_router
from backend.app.api.routes.company_routes import router as company_router
from backend.app.api.routes.dashboard_routes import router as dashboard_router
from backend.app.api.routes.diagnostic_routes import router as diagnostic_router
from backend.app.api.routes.dpia_routes import evaluation_router as dpia_evaluation_router
from backend.app.api.routes.dpia_routes import router as dpia_router
from backend.app.api.routes.learning_routes import gamification_router
from backend.app.api.routes.learning_routes import router as learning_router
from backend.app.api.routes.policy_routes import router as policy_router
from backend.app.api.routes.record_routes import router as record_router
from backend.app.api.routes.request_routes import router as request_router
from backend.app.api.routes.status_routes import router as status_router
from backend.app.api.routes.subprocessor_routes import router as subprocessor_router
from backend.app.api.routes.user_routes import router as user_router

# Export all routers
__all__ = [
    "action_router",
    "admin_router",
    "auth_router",
    "breach_router",
    "chatbot_router",
    "company_router",
    "dashboard_router",
    "diagnostic_router",
    "dpia_evaluation_router",
    "dpia_router",
    "gamification_router",
    "learning_router",
    "policy_router",
    "record_router",
    "request_router",
    "status_router",
    "subprocessor_router",
    "user_router",
]
