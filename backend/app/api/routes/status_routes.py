"""
Status endpoints for monitoring the API.

/status answers without touching any dependency; /health checks the database
connection and reports whether the LLM is configured along with its usage.
"""

import os
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from backend.app.api.responses import error_response
from backend.app.database.session import check_database
from backend.app.utils.helpers.gemini_helper import gemini_helper
from backend.app.utils.helpers.gemini_usage_manager import gemini_usage_manager
from backend.app.utils.security.rate_limiting import limiter

# Instantiate the API router.
router = APIRouter()


@router.get("/status")
@limiter.limit("60/minute")
async def status(request: Request) -> JSONResponse:
    """
    Get a simple API status with current timestamp and version info.

    Parameters:
        request (Request): The incoming HTTP request.

    Returns:
        JSONResponse: status, timestamp and api_version.
    """
    try:
        return JSONResponse(content={
            "status": "success",
            "timestamp": time.time(),
            "api_version": os.environ.get("API_VERSION", "1.0.0"),
        })
    except Exception as e:
        return error_response(e, "api_status_router", request)


@router.get("/health")
@limiter.limit("30/minute")
async def health_check(request: Request) -> JSONResponse:
    """
    Check the database connection and the LLM configuration.

    Returns:
        JSONResponse: 200 when the database answers, 503 otherwise.
    """
    try:
        database_ok = check_database()
        health = {
            "status": "healthy" if database_ok else "unhealthy",
            "timestamp": time.time(),
            "database": database_ok,
            "llm_configured": gemini_helper.is_configured(),
            "llm_usage": gemini_usage_manager.get_usage_summary(),
        }
        return JSONResponse(content=health, status_code=200 if database_ok else 503)
    except Exception as e:
        return error_response(e, "api_health_check", request)
