"""Security package for the RCA API."""

from .rate_limiting import (
    DEFAULT_AI_RATE,
    create_limiter,
    setup_rate_limiting,
    rate_limit_handler,
    get_client_ip
)
from .cors import (
    setup_cors,
    setup_api_security,
    get_cors_config,
    SecurityHeadersMiddleware
)

__all__ = [
    # Rate limiting
    "DEFAULT_AI_RATE",
    "create_limiter",
    "setup_rate_limiting",
    "rate_limit_handler",
    "get_client_ip",
    # CORS and security headers
    "setup_cors",
    "setup_api_security",
    "get_cors_config",
    "SecurityHeadersMiddleware"
]
