"""Domain exceptions raised by the RCA services.

The HTTP layer maps each of these to an envelope response; services never
build HTTP responses themselves.
"""

from typing import Optional


class RCAServiceError(Exception):
    """Base class for service-level errors."""
    status_code = 500

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error = error


class BadRequest(RCAServiceError):
    """Required input is missing or malformed."""
    status_code = 400


class RecordValidationError(BadRequest):
    """A record document failed validation."""

    def __init__(self, message: str = "Validation failed", error: Optional[str] = None):
        super().__init__(message, error)


class RecordNotFound(RCAServiceError):
    status_code = 404

    def __init__(self, record_id: Optional[str] = None):
        super().__init__("RCA not found")
        self.record_id = record_id


class UpstreamUnavailable(RCAServiceError):
    """The LLM provider is not configured or the call failed."""

    def __init__(self, error: Optional[str] = None):
        super().__init__("AI service temporarily unavailable", error)


class LLMError(Exception):
    """A provider call failed; carries the HTTP status when there was one."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status
