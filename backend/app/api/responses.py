"""
Response helpers shared by the routers.
"""

from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from backend.app.utils.constant.constant import JSON_MEDIA_TYPE
from backend.app.utils.system_utils.error_handling import SecurityAwareErrorHandler


def json_response(content: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=jsonable_encoder(content), status_code=status_code, media_type=JSON_MEDIA_TYPE)


def error_response(e: Exception, operation: str, request: Request) -> JSONResponse:
    """
    Build the sanitized JSON error response of a failed endpoint.

    Args:
        e: The exception raised by the endpoint.
        operation: Operation name, prefixed with "api_".
        request: The current request, used for the logged endpoint.
    """
    error_info = SecurityAwareErrorHandler.handle_safe_error(e, operation, endpoint=str(request.url))
    return JSONResponse(
        content=error_info,
        status_code=error_info.get("status_code", 500),
        media_type=JSON_MEDIA_TYPE,
    )
