"""Record service: CRUD, listing, keyword search and statistics."""

import logging
import math
import time
from typing import Any, Dict, List, Optional, Tuple

from config.database import RecordStore
from observability.prometheus_metrics import record_record_operation, record_search_metrics, record_error
from store.base import TextIndexUnavailable

from .errors import BadRequest, RecordNotFound
from .models import present_record, validate_record

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20
KEYWORD_FIELDS = ["title", "symptoms", "rootCause", "solution"]


class RecordService:
    """Operations on persisted RCA records."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def create(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        document = validate_record(fields, "Failed to create RCA")
        stored = await self.store.insert_record(document)
        record_record_operation("create")
        logger.info(f"Created RCA {stored['id']}: {stored['title']}")
        return present_record(stored)

    async def list(self, filters: Optional[Dict[str, str]] = None,
                   sort_by: str = "createdAt", order: str = "desc",
                   page: int = 1, limit: int = 10) -> Tuple[List[Dict[str, Any]], Dict[str, int]]:
        """List records with equality filters, sort and 1-indexed pagination."""
        if page < 1 or limit < 1:
            raise BadRequest("Invalid pagination", "page and limit must be positive integers")

        skip = (page - 1) * limit
        records = await self.store.list_records(filters, sort_by, order != "asc", skip, limit)
        total = await self.store.count_records(filters)

        pagination = {
            "total": total,
            "page": page,
            "pages": math.ceil(total / limit),
            "limit": limit,
        }
        return [present_record(r) for r in records], pagination

    async def get(self, record_id: str) -> Dict[str, Any]:
        record = await self.store.get_record(record_id)
        if record is None:
            raise RecordNotFound(record_id)
        return present_record(record)

    async def update(self, record_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Merge ``fields`` over the stored record, revalidate and replace it."""
        existing = await self.store.get_record(record_id)
        if existing is None:
            raise RecordNotFound(record_id)

        merged = {**existing, **fields}
        document = validate_record(merged, "Failed to update RCA")
        stored = await self.store.replace_record(record_id, document)
        # Deleted between read and write
        if stored is None:
            raise RecordNotFound(record_id)

        record_record_operation("update")
        logger.info(f"Updated RCA {record_id}")
        return present_record(stored)

    async def delete(self, record_id: str) -> None:
        if not await self.store.delete_record(record_id):
            raise RecordNotFound(record_id)
        record_record_operation("delete")
        logger.info(f"Deleted RCA {record_id}")

    async def text_search(self, query: str, fallback_terms: List[str], fallback_fields: List[str],
                          category: Optional[str] = None, limit: int = SEARCH_LIMIT,
                          operation: str = "keyword") -> List[Dict[str, Any]]:
        """Full-text search, falling back to substring matching when the index is unavailable."""
        start_time = time.time()
        try:
            results = await self.store.search_text(query, category, limit)
            strategy = "fulltext"
        except TextIndexUnavailable as e:
            logger.warning(f"Text index unavailable, using substring search: {e}")
            record_error("text_index_unavailable", "search")
            results = await self.store.search_substring(fallback_terms, fallback_fields, category, limit)
            strategy = "substring"

        record_search_metrics(operation, strategy, time.time() - start_time, len(results))
        return results

    async def search(self, keyword: Optional[str], category: Optional[str] = None) -> List[Dict[str, Any]]:
        """Keyword search over title, symptoms, root cause and solution."""
        if not keyword:
            raise BadRequest("Search query is required")

        results = await self.text_search(keyword, [keyword], KEYWORD_FIELDS, category or None)
        return [present_record(r) for r in results]

    async def stats(self) -> Dict[str, Any]:
        recent = await self.store.recent_records(5)
        return {
            "byCategory": await self.store.group_counts("category"),
            "bySeverity": await self.store.group_counts("severity"),
            "byStatus": await self.store.group_counts("status"),
            "total": await self.store.count_records(),
            "recentRCAs": [
                {
                    "id": r["id"],
                    "title": r["title"],
                    "category": r["category"],
                    "createdAt": r["createdAt"],
                }
                for r in recent
            ],
        }
