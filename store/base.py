"""Shared helpers for the RCA record store adapters.

Both adapters persist the same record document. On the wire and in the
service layer records use camelCase keys; storage columns are snake_case.
"""

import re
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional


class TextIndexUnavailable(Exception):
    """Raised when the full-text index is missing or rejects a query."""


# Document key -> storage column
FIELD_COLUMNS: Dict[str, str] = {
    "id": "id",
    "title": "title",
    "category": "category",
    "symptoms": "symptoms",
    "rootCause": "root_cause",
    "solution": "solution",
    "prevention": "prevention",
    "severity": "severity",
    "status": "status",
    "tags": "tags",
    "createdBy": "created_by",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

WRITABLE_FIELDS = (
    "title", "category", "symptoms", "rootCause", "solution",
    "prevention", "severity", "status", "tags", "createdBy",
)

SORTABLE_FIELDS = ("createdAt", "updatedAt", "title", "category", "severity", "status")
FILTERABLE_FIELDS = ("category", "severity", "status")
GROUPABLE_FIELDS = ("category", "severity", "status")

DEFAULT_SORT_FIELD = "createdAt"

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


def new_record_id() -> str:
    """Generate an immutable record identifier."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def sort_column(field: Optional[str]) -> str:
    """Map a sort field to its column, falling back to createdAt."""
    if field not in SORTABLE_FIELDS:
        field = DEFAULT_SORT_FIELD
    return FIELD_COLUMNS[field]


def filter_columns(filters: Optional[Dict[str, str]]) -> Dict[str, str]:
    """Keep only supported, non-empty equality filters keyed by column."""
    if not filters:
        return {}
    return {
        FIELD_COLUMNS[key]: value
        for key, value in filters.items()
        if key in FILTERABLE_FIELDS and value
    }


def search_columns(fields: List[str]) -> List[str]:
    columns = []
    for field in fields:
        if field not in FIELD_COLUMNS:
            raise ValueError(f"Unknown search field: {field}")
        columns.append(FIELD_COLUMNS[field])
    return columns


def query_tokens(query: str) -> List[str]:
    """Split a free-text query into lowercase word tokens, order preserved."""
    seen = []
    for token in _TOKEN_RE.findall(query.lower()):
        if token not in seen:
            seen.append(token)
    return seen


def like_pattern(term: str) -> str:
    """Build a LIKE pattern matching ``term`` literally anywhere in a value."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
