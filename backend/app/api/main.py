"""
Main entry point for the RGPD compliance API.

This module initializes and configures the FastAPI application with security
headers, request validation, signed cookie sessions, rate limiting and the
modular routers of each compliance area.
"""

import os
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware

from backend.app.api.responses import error_response
from backend.app.api.routes import (
    action_router,
    admin_router,
    auth_router,
    breach_router,
    chatbot_router,
    company_router,
    dashboard_router,
    diagnostic_router,
    dpia_evaluation_router,
    dpia_router,
    gamification_router,
    learning_router,
    policy_router,
    record_router,
    request_router,
    status_router,
    subprocessor_router,
    user_router,
)
from backend.app.configs.config_singleton import get_config
from backend.app.database.session import init_db
from backend.app.utils.constant.constant import ALLOWED_ORIGINS, JSON_MEDIA_TYPE, MAX_REQUEST_SIZE_BYTES
from backend.app.utils.logging.logger import log_error, log_info
from backend.app.utils.security.rate_limiting import limiter
from backend.app.utils.system_utils.error_handling import SecurityAwareErrorHandler
from backend.app.utils.system_utils.exceptions import ComplianceError

API_TITLE = "RGPD Compliance API"
API_VERSION = "1.0"
SESSION_COOKIE = "rgpd_session"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Adds security-related HTTP headers to every response: no content sniffing,
    no framing, strict transport security and a restrictive content policy.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
            response.headers["X-Content-Type-Options"] = "nosniff"
            response.headers["X-Frame-Options"] = "DENY"
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
            # The API serves no documents outside of /api/docs.
            if request.url.path.startswith("/api/docs") or request.url.path.startswith("/api/redoc"):
                response.headers["Content-Security-Policy"] = "frame-ancestors 'none'"
            else:
                response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
            response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
            response.headers["Cache-Control"] = "no-store, max-age=0"
            response.headers["Permissions-Policy"] = "camera=(), microphone=(), geolocation=()"
            return response
        except Exception as e:
            return error_response(e, "api_security_headers", request)


class RequestSizeMiddleware(BaseHTTPMiddleware):
    """
    Rejects requests whose declared body size exceeds the configured limit
    with a 413 answer.
    """

    def __init__(self, app, max_content_length: int = MAX_REQUEST_SIZE_BYTES):
        super().__init__(app)
        self.max_content_length = max_content_length

    async def dispatch(self, request: Request, call_next):
        try:
            content_length = request.headers.get("content-length")
            if content_length is not None and int(content_length) > self.max_content_length:
                return JSONResponse(status_code=413, content={"detail": "Requête trop volumineuse"},
                                    media_type=JSON_MEDIA_TYPE)
            return await call_next(request)
        except Exception as e:
            return error_response(e, "api_request_size", request)


class ValidationMiddleware(BaseHTTPMiddleware):
    """Rejects request paths carrying traversal or shell injection patterns."""

    suspicious_patterns = ("../", "..\\", ";", "&&", "|", "eval(")

    async def dispatch(self, request: Request, call_next):
        try:
            path = request.url.path
            if any(pattern in path for pattern in self.suspicious_patterns):
                return JSONResponse(status_code=400, content={"detail": "Chemin de requête invalide"},
                                    media_type=JSON_MEDIA_TYPE)
            return await call_next(request)
        except Exception as e:
            return error_response(e, "api_validation", request)


def _init_middlewares(app: FastAPI) -> None:
    """
    Add the middleware stack. Starlette runs the last added middleware first,
    so CORS answers preflight requests before any other check.
    """
    try:
        app.add_middleware(
            SessionMiddleware,
            secret_key=get_config("session_secret"),
            session_cookie=SESSION_COOKIE,
            max_age=get_config("session_max_age"),
            same_site="lax",
            https_only=get_config("environment") == "production",
        )
        app.add_middleware(SecurityHeadersMiddleware)
        app.add_middleware(ValidationMiddleware)
        app.add_middleware(RequestSizeMiddleware, max_content_length=MAX_REQUEST_SIZE_BYTES)
        app.add_middleware(GZipMiddleware, minimum_size=1000)

        allowed_origins = ALLOWED_ORIGINS
        if os.environ.get("ENVIRONMENT") == "production":
            allowed_origins = [origin for origin in ALLOWED_ORIGINS if not origin.startswith("http://localhost")]
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
            allow_headers=["*"],
            max_age=600,
        )
    except Exception as e:
        SecurityAwareErrorHandler.log_processing_error(e, "init_middlewares")
        raise


def _init_rate_limiting(app: FastAPI) -> None:
    """Register the shared slowapi limiter and its 429 handler."""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


def _include_routers(app: FastAPI) -> None:
    company_prefix = "/api/companies/{company_id}"
    app.include_router(status_router, tags=["Status"])
    app.include_router(auth_router, prefix="/api/auth", tags=["Authentication"])
    app.include_router(user_router, prefix="/api/user", tags=["User"])
    app.include_router(company_router, prefix="/api", tags=["Companies"])
    app.include_router(diagnostic_router, prefix="/api", tags=["Diagnostic"])
    app.include_router(dashboard_router, prefix="/api", tags=["Dashboard"])
    app.include_router(action_router, prefix=f"{company_prefix}/actions", tags=["Actions"])
    app.include_router(record_router, prefix=f"{company_prefix}/records", tags=["Processing records"])
    app.include_router(subprocessor_router, prefix=f"{company_prefix}/subprocessors", tags=["Subprocessing"])
    app.include_router(request_router, prefix=f"{company_prefix}/requests", tags=["Data subject requests"])
    app.include_router(policy_router, prefix=f"{company_prefix}/privacy-policies", tags=["Privacy policies"])
    app.include_router(breach_router, prefix=f"{company_prefix}/breaches", tags=["Data breaches"])
    app.include_router(dpia_router, prefix=f"{company_prefix}/dpia", tags=["DPIA"])
    app.include_router(dpia_evaluation_router, prefix=f"{company_prefix}/dpia-evaluations", tags=["DPIA"])
    app.include_router(chatbot_router, prefix="/api", tags=["Chatbot"])
    app.include_router(learning_router, prefix="/api/learning", tags=["Learning"])
    app.include_router(gamification_router, prefix="/api/gamification", tags=["Learning"])
    app.include_router(admin_router, prefix="/api/admin", tags=["Administration"])


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: The fully configured FastAPI application instance.
    """
    try:
        app = FastAPI(
            title=API_TITLE,
            version=API_VERSION,
            description="""
            Multi-tenant API helping small and medium French companies reach GDPR (RGPD) compliance:
            diagnostic, action plans, processing records, data subject requests, privacy policies,
            data breaches, DPIA and training.
            """,
            docs_url="/api/docs",
            redoc_url="/api/redoc",
        )

        _init_middlewares(app)
        _init_rate_limiting(app)

        @app.exception_handler(ComplianceError)
        async def compliance_error_handler(request: Request, exc: ComplianceError):
            """Domain errors raised by dependencies, before the endpoint body runs."""
            return error_response(exc, "api_dependency", request)

        _include_routers(app)

        @app.middleware("http")
        async def add_process_time_header(request: Request, call_next):
            """
            Add processing time and request ID headers to every response.
            """
            request_id = f"req_{time.time()}_{os.urandom(4).hex()}"
            request.state.request_id = request_id
            start_time = time.time()
            try:
                response = await call_next(request)
            except Exception as exp:
                return error_response(exp, "api_process_time_header", request)
            process_time = time.time() - start_time
            response.headers["X-Process-Time"] = str(process_time)
            response.headers["X-Request-ID"] = request_id
            log_info(
                f"[REQUEST] {request.method} {request.url.path} completed in {process_time:.4f}s [ID: {request_id}]")
            return response

        @app.on_event("startup")
        async def startup_event():
            """Create the tables and seed the reference data."""
            start_time = time.time()
            log_info("[STARTUP] Initializing database...")
            try:
                init_db()
                log_info(f"[STARTUP] Database ready in {time.time() - start_time:.2f}s")
            except Exception as exp:
                log_error(f"[STARTUP] Error during database initialization: {exp}")
                raise

        log_info("[OK] API application created and configured successfully")
        return app
    except Exception as e:
        SecurityAwareErrorHandler.log_processing_error(e, "create_app")
        raise


# Create the FastAPI app.
app = create_app()
