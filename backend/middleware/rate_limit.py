from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request, Response
from fastapi.responses import JSONResponse
import logging

from config import settings
from utils.auth import verify_token

logger = logging.getLogger(__name__)

# Create limiter instance
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",  # Use in-memory storage for now
    enabled=settings.RATE_LIMIT_ENABLED,
)

def create_rate_limit_exceeded_handler():
    """Create a custom handler for rate limit exceeded errors"""
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> Response:
        logger.warning(f"Rate limit exceeded on {request.url.path}: {exc.detail}")
        response = JSONResponse(
            status_code=429,
            content={
                "error": "Rate limit exceeded",
                "message": f"Rate limit exceeded: {exc.detail}",
            }
        )
        response.headers["Retry-After"] = str(exc.retry_after) if hasattr(exc, 'retry_after') else "3600"
        return response

    return rate_limit_handler

def get_user_key(request: Request) -> str:
    """Rate limit key: token subject for authenticated calls, client address otherwise"""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        payload = verify_token(auth_header[7:])
        if payload:
            return f"user:{payload['sub']}"
    return get_remote_address(request)

# Rate limit decorators for different endpoints
jokes_limit = limiter.limit(settings.RATE_LIMIT_JOKES, key_func=get_user_key)
ratings_limit = limiter.limit(settings.RATE_LIMIT_RATINGS, key_func=get_user_key)
ai_limit = limiter.limit(settings.RATE_LIMIT_AI)
