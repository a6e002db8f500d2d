"""
Rate Limiting Middleware

Protects API endpoints from abuse using SlowAPI with Redis backend.
Limits are keyed by session (hashed token) when one is present, else by IP.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request, status
from fastapi.responses import JSONResponse
from chatapp.config import settings
from chatapp.core.security import hash_session_id
from chatapp.utils.sanitize import get_safe_token_display
import logging

logger = logging.getLogger(__name__)


def get_token_from_request(request: Request) -> str:
    """
    Extract the session token from the request for per-session limits

    Checks:
    1. Session cookie
    2. Authorization header (Bearer token)

    Returns:
        Token or IP address as fallback
    """
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if token:
        return token

    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer ") and auth[7:]:
        return auth[7:]

    return get_remote_address(request)


def rate_limit_key(request: Request) -> str:
    """
    Generate rate limit key based on session token or IP

    Format: "session:{sha256}" or "ip:{address}"
    """
    token = get_token_from_request(request)

    if token and token != get_remote_address(request):
        return f"session:{hash_session_id(token)}"

    return f"ip:{token}"


# Initialize rate limiter with Redis backend
limiter = Limiter(
    key_func=rate_limit_key,
    storage_uri=settings.REDIS_URL if settings.RATE_LIMIT_ENABLED else "memory://",
    enabled=settings.RATE_LIMIT_ENABLED
)


def custom_rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """
    Custom handler for rate limit exceeded errors

    Returns:
        JSONResponse (429) with a Retry-After header
    """
    retry_after = "60"
    if getattr(exc, "headers", None):
        retry_after = exc.headers.get("Retry-After", "60")

    token = get_token_from_request(request)
    safe_key = get_safe_token_display(token) if token != get_remote_address(request) else token

    logger.warning(
        f"Rate limit exceeded for {safe_key} "
        f"on {request.url.path}"
    )

    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please slow down.",
            "retry_after": int(retry_after),
            "limit": str(exc.detail) if hasattr(exc, "detail") else str(exc),
            "endpoint": request.url.path
        },
        headers={"Retry-After": retry_after}
    )


# Rate limit decorators for different endpoints

def chat_rate_limit():
    """Rate limit for the chat endpoint (default: 30 requests per minute)"""
    return limiter.limit(settings.RATE_LIMIT_CHAT)


def upload_rate_limit():
    """Rate limit for RAG uploads (default: 20 requests per hour)"""
    return limiter.limit(settings.RATE_LIMIT_UPLOAD)


def auth_rate_limit():
    """
    Rate limit for authentication endpoints

    Default: 10 requests per minute (strict to prevent brute force)
    """
    return limiter.limit(settings.RATE_LIMIT_AUTH)


# Middleware setup function
def setup_rate_limiting(app):
    """
    Setup rate limiting middleware

    Args:
        app: FastAPI application instance
    """
    app.state.limiter = limiter
    if settings.RATE_LIMIT_ENABLED:
        app.add_exception_handler(
            RateLimitExceeded,
            custom_rate_limit_exceeded_handler
        )
        logger.info("Rate limiting enabled with Redis backend")
    else:
        logger.warning("Rate limiting disabled")
