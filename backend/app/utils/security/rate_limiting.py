"""
Rate limiting shared by every router.

A single slowapi Limiter keyed on the client address is registered on the
application state; routers decorate their endpoints with it. AI endpoints use
the stricter `ai_rate_limit` configured limit since each call is billed by the
LLM provider.
"""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from backend.app.configs.config_singleton import get_config


def get_client_key(request: Request) -> str:
    """Rate limit key: the logged-in user when known, the remote address otherwise."""
    session = request.scope.get("session") or {}
    user_id = session.get("user_id")
    if user_id:
        return f"user:{user_id}"
    return get_remote_address(request)


# Configure the rate limiter using the client's identity.
limiter = Limiter(
    key_func=get_client_key,
    enabled=get_config("rate_limit_enabled", True),
)

# Limit applied to endpoints calling the LLM.
AI_RATE_LIMIT = get_config("ai_rate_limit", "20/minute")
# Limit applied to authentication endpoints.
AUTH_RATE_LIMIT = "10/minute"
