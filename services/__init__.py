"""Domain services for the RCA knowledge base."""

from .errors import (
    RCAServiceError,
    BadRequest,
    RecordValidationError,
    RecordNotFound,
    UpstreamUnavailable,
    LLMError
)
from .llm import LLMGateway
from .records import RecordService
from .assist import AssistService
from .solver import ProblemSolver

__all__ = [
    'RCAServiceError',
    'BadRequest',
    'RecordValidationError',
    'RecordNotFound',
    'UpstreamUnavailable',
    'LLMError',
    'LLMGateway',
    'RecordService',
    'AssistService',
    'ProblemSolver'
]
