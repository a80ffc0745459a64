"""Application settings for the RCA service.

All configuration is read from the environment once at startup and passed
down explicitly; nothing below the app factory reads ``os.environ``.
"""

import os
from typing import List, Optional
from pydantic import BaseModel, Field

from .database import DatabaseConfig

DEFAULT_ORIGINS = [
    "http://localhost:3000",  # React dev server
    "http://localhost:5173",  # Vite dev server
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173"
]


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class LLMConfig(BaseModel):
    """LLM provider configuration (Anthropic Messages API)."""
    api_key: Optional[str] = Field(default=None, description="Provider credential; unset disables AI")
    model: str = Field(default="claude-sonnet-4-20250514", description="Provider model")
    max_tokens: int = Field(default=1024, description="Default completion budget")
    solver_max_tokens: int = Field(default=2048, description="Completion budget for solver analysis")
    base_url: str = Field(default="https://api.anthropic.com", description="Provider endpoint")
    api_version: str = Field(default="2023-06-01", description="anthropic-version header")
    timeout: float = Field(default=60.0, description="Client timeout in seconds")

    @classmethod
    def from_env(cls) -> 'LLMConfig':
        """Create configuration from environment variables."""
        return cls(
            api_key=os.getenv('ANTHROPIC_API_KEY') or None,
            model=os.getenv('LLM_MODEL', 'claude-sonnet-4-20250514'),
            max_tokens=int(os.getenv('LLM_MAX_TOKENS', '1024')),
            solver_max_tokens=int(os.getenv('LLM_SOLVER_MAX_TOKENS', '2048')),
            base_url=os.getenv('LLM_BASE_URL', 'https://api.anthropic.com'),
            timeout=float(os.getenv('LLM_TIMEOUT', '60'))
        )


class AppSettings(BaseModel):
    """Top-level application settings."""
    environment: str = "development"
    version: str = "1.0.0"
    host: str = "0.0.0.0"
    port: int = 5000

    log_level: str = "INFO"
    log_json: bool = False
    log_file: Optional[str] = None

    allowed_origins: List[str] = Field(default_factory=lambda: list(DEFAULT_ORIGINS))
    rate_limit_enabled: bool = True
    rate_limit_ai: str = "30/minute"
    rate_limit_storage: str = "memory://"

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls) -> 'AppSettings':
        """Create settings from environment variables."""
        origins = [o.strip() for o in os.getenv('ALLOWED_ORIGINS', '').split(',') if o.strip()]
        return cls(
            environment=os.getenv('ENVIRONMENT', 'development'),
            version=os.getenv('APP_VERSION', '1.0.0'),
            host=os.getenv('HOST', '0.0.0.0'),
            port=int(os.getenv('PORT', '5000')),
            log_level=os.getenv('LOG_LEVEL', 'INFO'),
            log_json=_env_bool('LOG_JSON', False),
            log_file=os.getenv('LOG_FILE') or None,
            allowed_origins=origins or list(DEFAULT_ORIGINS),
            rate_limit_enabled=_env_bool('RATE_LIMIT_ENABLED', True),
            rate_limit_ai=os.getenv('RATE_LIMIT_AI', '30/minute'),
            rate_limit_storage=os.getenv('RATE_LIMIT_STORAGE', 'memory://'),
            database=DatabaseConfig.from_env(),
            llm=LLMConfig.from_env()
        )
