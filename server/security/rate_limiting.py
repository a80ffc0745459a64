"""Rate limiting for the LLM-backed endpoints using slowapi."""

import logging

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

DEFAULT_AI_RATE = "30/minute"
DEFAULT_STORAGE_URI = "memory://"


def get_client_ip(request: Request) -> str:
    """Extract client IP considering proxy headers."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # Take the first IP in the chain
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return request.client.host if request.client else "unknown"


def create_limiter(enabled: bool = True, storage_uri: str = DEFAULT_STORAGE_URI) -> Limiter:
    """A limiter with its own counters; one per application."""
    return Limiter(key_func=get_client_ip, storage_uri=storage_uri, enabled=enabled)


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    """Envelope response for rate limit exceeded."""
    retry_after = exc.limit.limit.get_expiry()
    response = JSONResponse(
        status_code=429,
        content={
            "success": False,
            "message": "Too many requests, please try again later",
            "error": f"Rate limit exceeded: {exc.detail}"
        }
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


def setup_rate_limiting(app: FastAPI, enabled: bool = True,
                        storage_uri: str = DEFAULT_STORAGE_URI) -> Limiter:
    """Attach a fresh limiter to the application and return it for route decoration."""
    limiter = create_limiter(enabled, storage_uri)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    logger.info(f"Rate limiting {'enabled' if enabled else 'disabled'} (storage: {storage_uri.split('://')[0]})")
    return limiter
