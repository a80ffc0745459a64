"""CORS and security header configuration for the RCA API."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from typing import List
import logging

logger = logging.getLogger(__name__)


def get_cors_config(allowed_origins: List[str], is_production: bool = False) -> dict:
    """Get CORS configuration based on environment."""
    config = {
        "allow_origins": list(allowed_origins),
        "allow_credentials": True,
        "allow_methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        "allow_headers": [
            "Accept",
            "Accept-Language",
            "Content-Language",
            "Content-Type",
            "Authorization",
            "X-Requested-With"
        ],
        "expose_headers": ["Retry-After"],
        "max_age": 86400 if is_production else 600  # 24 hours in prod, 10 minutes in dev
    }
    return config


def setup_cors(app: FastAPI, allowed_origins: List[str], is_production: bool = False) -> None:
    """Setup CORS middleware for FastAPI application."""
    config = get_cors_config(allowed_origins, is_production)
    app.add_middleware(CORSMiddleware, **config)
    logger.info(f"CORS configured with origins: {config['allow_origins']}")


class SecurityHeadersMiddleware:
    """Add security headers to all responses."""

    def __init__(self, app: FastAPI, is_production: bool = False):
        self.app = app
        self.is_production = is_production

    async def __call__(self, scope, receive, send):
        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                headers = dict(message.get("headers", []))
                headers.update({
                    b"x-content-type-options": b"nosniff",
                    b"x-frame-options": b"DENY",
                    b"referrer-policy": b"strict-origin-when-cross-origin"
                })
                # HSTS only in production behind HTTPS
                if self.is_production:
                    headers[b"strict-transport-security"] = b"max-age=31536000; includeSubDomains"
                message["headers"] = list(headers.items())

            await send(message)

        await self.app(scope, receive, send_wrapper)


def setup_api_security(app: FastAPI, allowed_origins: List[str], is_production: bool = False) -> None:
    """Setup CORS and security headers."""
    setup_cors(app, allowed_origins, is_production)
    app.add_middleware(SecurityHeadersMiddleware, is_production=is_production)
    logger.info("API security configuration complete")
