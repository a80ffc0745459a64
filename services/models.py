"""Record document model and validation."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import RecordValidationError


class Category(str, Enum):
    SERVER = "Server"
    DATABASE = "Database"
    NETWORK = "Network"
    APP = "App"
    SECURITY = "Security"
    OTHER = "Other"


class Severity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class Status(str, Enum):
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


REQUIRED_MESSAGES = {
    "title": "Issue title is required",
    "category": "Category is required",
    "symptoms": "Symptoms are required",
    "rootCause": "Root cause is required",
    "solution": "Solution is required",
}


class RecordCreate(BaseModel):
    """Writable fields of an RCA record."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200)
    category: Category
    symptoms: str = Field(min_length=1)
    root_cause: str = Field(alias="rootCause", min_length=1)
    solution: str = Field(min_length=1)
    prevention: str = ""
    severity: Severity = Severity.MEDIUM
    status: Status = Status.RESOLVED
    tags: List[str] = Field(default_factory=list)
    created_by: str = Field(default="Anonymous", alias="createdBy")

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return value.split(",")
        return value

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: List[str]) -> List[str]:
        return [tag.strip() for tag in value if tag and tag.strip()]

    @field_validator("prevention", "created_by", mode="before")
    @classmethod
    def none_to_default(cls, value: Any, info) -> Any:
        if value is None:
            return "" if info.field_name == "prevention" else "Anonymous"
        return value

    def to_document(self) -> Dict[str, Any]:
        """Dump as a camelCase document with plain string enums."""
        return self.model_dump(by_alias=True, mode="json")


class RecordUpdate(BaseModel):
    """Partial update; provided fields are merged over the stored record."""
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    category: Optional[str] = None
    symptoms: Optional[str] = None
    root_cause: Optional[str] = Field(default=None, alias="rootCause")
    solution: Optional[str] = None
    prevention: Optional[str] = None
    severity: Optional[str] = None
    status: Optional[str] = None
    tags: Optional[Any] = None
    created_by: Optional[str] = Field(default=None, alias="createdBy")

    def provided_fields(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)


def _error_text(exc: ValidationError) -> str:
    messages = []
    for err in exc.errors():
        field = str(err["loc"][0]) if err["loc"] else "record"
        if field == "root_cause":
            field = "rootCause"
        elif field == "created_by":
            field = "createdBy"

        if err["type"] in ("missing", "string_too_short") and field in REQUIRED_MESSAGES:
            messages.append(f"{field}: {REQUIRED_MESSAGES[field]}")
        elif err["type"] == "string_too_long" and field == "title":
            messages.append("title: Title cannot exceed 200 characters")
        else:
            messages.append(f"{field}: {err['msg']}")
    return "; ".join(messages)


def invalid_fields(exc: ValidationError) -> List[str]:
    """Top-level document keys named in a validation error."""
    aliases = {"root_cause": "rootCause", "created_by": "createdBy"}
    fields = []
    for err in exc.errors():
        if err["loc"]:
            field = str(err["loc"][0])
            fields.append(aliases.get(field, field))
    return fields


def validate_record(data: Dict[str, Any], message: str = "Validation failed") -> Dict[str, Any]:
    """Validate a full record document, returning the normalized writable fields."""
    try:
        return RecordCreate.model_validate(data).to_document()
    except ValidationError as e:
        raise RecordValidationError(message, _error_text(e)) from e


def format_date(value: Optional[str]) -> Optional[str]:
    """Render an ISO timestamp as e.g. ``Mar 4, 2025``."""
    if not value:
        return None
    dt = datetime.fromisoformat(value)
    return f"{dt:%b} {dt.day}, {dt.year}"


def present_record(document: Dict[str, Any]) -> Dict[str, Any]:
    """Add derived, read-only fields to a stored record."""
    record = dict(document)
    record["formattedDate"] = format_date(record.get("createdAt"))
    return record
