"""Request bodies and the response envelope for the RCA API."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def envelope(data: Any = None, message: Optional[str] = None, **extra) -> Dict[str, Any]:
    """Build a ``{success, data?, message?}`` body plus any extra top-level keys."""
    body: Dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


def error_envelope(message: str, error: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    if error is not None:
        body["error"] = error
    return body


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SimilarityRequest(CamelModel):
    title: Optional[str] = None
    symptoms: Optional[str] = None


class AssistRequest(CamelModel):
    field: Optional[str] = None
    value: Optional[str] = None
    context: Optional[str] = None


class ValidateRootCauseRequest(CamelModel):
    root_cause: Optional[str] = None
    symptoms: Optional[str] = None


class SummarizeRequest(CamelModel):
    rca_id: Optional[str] = None


class SolverSearchRequest(CamelModel):
    problem: Optional[str] = None
    category: Optional[str] = None
    additional_details: Optional[str] = None


class GuideRequest(CamelModel):
    rca_id: Optional[str] = None
    user_problem: Optional[str] = None
    user_context: Optional[str] = None


class ChatMessage(CamelModel):
    role: Literal["user", "assistant"]
    content: str = ""
    is_error: bool = False


class ChatRequest(CamelModel):
    messages: List[ChatMessage] = Field(default_factory=list)
    context: Optional[str] = None


class FeedbackRequest(CamelModel):
    rca_id: Optional[str] = None
    helpful: Optional[bool] = None
    problem_description: Optional[str] = None
    actual_solution: Optional[str] = None
    create_new_rca: bool = Field(default=False, alias="createNewRCA")
