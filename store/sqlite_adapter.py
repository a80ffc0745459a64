"""SQLite record store for the RCA knowledge base.

Default backend for development and tests. Full-text search uses an FTS5
table kept in sync with ``rca_records`` by triggers; when FTS5 is missing
from the SQLite build, or the index has been dropped, text searches raise
``TextIndexUnavailable`` and callers fall back to substring matching.
"""

import json
import sqlite3
import logging
from typing import List, Dict, Any, Optional
from pathlib import Path

from .base import (
    FIELD_COLUMNS,
    GROUPABLE_FIELDS,
    WRITABLE_FIELDS,
    TextIndexUnavailable,
    filter_columns,
    like_pattern,
    new_record_id,
    query_tokens,
    search_columns,
    sort_column,
    utcnow,
)

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schema_sqlite.sql"
TEXT_INDEX_PATH = Path(__file__).parent / "text_index_sqlite.sql"

_COLUMN_FIELDS = {column: field for field, column in FIELD_COLUMNS.items()}


def _casefold(value):
    # LIKE only folds ASCII
    return value.casefold() if isinstance(value, str) else value


class SQLiteRecordStore:
    """SQLite record store with the same interface as the PostgreSQL store."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self.conn: Optional[sqlite3.Connection] = None

    async def initialize(self):
        """Open the connection and ensure schema and text index exist."""
        try:
            self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            self.conn.create_function("casefold", 1, _casefold, deterministic=True)
            self.conn.executescript(SCHEMA_PATH.read_text(encoding="utf-8"))
            self.conn.commit()
            logger.info(f"SQLite record store initialized: {self.db_path}")
        except Exception as e:
            logger.error(f"Failed to initialize SQLite: {e}")
            raise

        try:
            self.conn.executescript(TEXT_INDEX_PATH.read_text(encoding="utf-8"))
            self.conn.commit()
        except sqlite3.OperationalError as e:
            logger.warning(f"Full-text index unavailable, substring search only: {e}")

    async def close(self):
        """Close SQLite connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.info("SQLite connection closed")

    def _row_to_document(self, row: sqlite3.Row) -> Dict[str, Any]:
        document = {}
        for column in row.keys():
            if column not in _COLUMN_FIELDS:
                continue
            value = row[column]
            if column == "tags":
                value = json.loads(value) if value else []
            document[_COLUMN_FIELDS[column]] = value
        return document

    def _column_values(self, document: Dict[str, Any]) -> Dict[str, Any]:
        values = {}
        for field in WRITABLE_FIELDS:
            if field not in document:
                continue
            value = document[field]
            if field == "tags":
                value = json.dumps(list(value or []), ensure_ascii=False)
            values[FIELD_COLUMNS[field]] = value
        return values

    async def insert_record(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a new record and return it with id and timestamps."""
        values = self._column_values(document)
        now = utcnow().isoformat()
        values.update(id=new_record_id(), created_at=now, updated_at=now)

        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        self.conn.execute(
            f"INSERT INTO rca_records ({columns}) VALUES ({placeholders})",
            list(values.values()),
        )
        self.conn.commit()
        return await self.get_record(values["id"])

    async def get_record(self, record_id: str) -> Optional[Dict[str, Any]]:
        """Get a record by its identifier."""
        cursor = self.conn.execute("SELECT * FROM rca_records WHERE id = ?", (record_id,))
        row = cursor.fetchone()
        return self._row_to_document(row) if row else None

    async def replace_record(self, record_id: str, document: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Overwrite every writable field of a record. Returns None if absent."""
        values = self._column_values(document)
        values["updated_at"] = utcnow().isoformat()

        assignments = ", ".join(f"{column} = ?" for column in values)
        cursor = self.conn.execute(
            f"UPDATE rca_records SET {assignments} WHERE id = ?",
            list(values.values()) + [record_id],
        )
        self.conn.commit()
        if cursor.rowcount == 0:
            return None
        return await self.get_record(record_id)

    async def delete_record(self, record_id: str) -> bool:
        cursor = self.conn.execute("DELETE FROM rca_records WHERE id = ?", (record_id,))
        self.conn.commit()
        return cursor.rowcount > 0

    async def clear_records(self) -> int:
        """Delete every record. Returns the number removed."""
        cursor = self.conn.execute("DELETE FROM rca_records")
        self.conn.commit()
        return cursor.rowcount

    def _where(self, filters: Optional[Dict[str, str]]):
        conditions = []
        params = []
        for column, value in filter_columns(filters).items():
            conditions.append(f"{column} = ?")
            params.append(value)
        where_clause = "WHERE " + " AND ".join(conditions) if conditions else ""
        return where_clause, params

    async def list_records(self, filters: Optional[Dict[str, str]] = None,
                           sort_field: str = "createdAt", descending: bool = True,
                           skip: int = 0, limit: int = 10) -> List[Dict[str, Any]]:
        """List records matching equality filters, sorted and paginated."""
        where_clause, params = self._where(filters)
        direction = "DESC" if descending else "ASC"
        cursor = self.conn.execute(
            f"""
            SELECT * FROM rca_records
            {where_clause}
            ORDER BY {sort_column(sort_field)} {direction}, rowid {direction}
            LIMIT ? OFFSET ?
            """,
            params + [limit, skip],
        )
        return [self._row_to_document(row) for row in cursor.fetchall()]

    async def count_records(self, filters: Optional[Dict[str, str]] = None) -> int:
        where_clause, params = self._where(filters)
        cursor = self.conn.execute(f"SELECT COUNT(*) FROM rca_records {where_clause}", params)
        return cursor.fetchone()[0]

    async def search_text(self, query: str, category: Optional[str] = None,
                          limit: int = 20) -> List[Dict[str, Any]]:
        """Rank records against the full-text index (any query term matches)."""
        tokens = query_tokens(query)
        if not tokens:
            return []
        match = " OR ".join(f'"{token}"' for token in tokens)

        category_clause = ""
        params: List[Any] = [match]
        if category:
            category_clause = "AND r.category = ?"
            params.append(category)
        params.append(limit)

        try:
            cursor = self.conn.execute(
                f"""
                SELECT r.* FROM rca_records_fts
                JOIN rca_records r ON r.rowid = rca_records_fts.rowid
                WHERE rca_records_fts MATCH ?
                {category_clause}
                ORDER BY rca_records_fts.rank
                LIMIT ?
                """,
                params,
            )
            rows = cursor.fetchall()
        except sqlite3.OperationalError as e:
            raise TextIndexUnavailable(str(e)) from e

        return [self._row_to_document(row) for row in rows]

    async def search_substring(self, terms: List[str], fields: List[str],
                               category: Optional[str] = None,
                               limit: int = 20) -> List[Dict[str, Any]]:
        """Case-insensitive literal substring match of any term in any field."""
        terms = [term for term in terms if term]
        if not terms:
            return []

        conditions = []
        params: List[Any] = []
        for column in search_columns(fields):
            for term in terms:
                conditions.append(f"casefold({column}) LIKE ? ESCAPE '\\'")
                params.append(like_pattern(term.casefold()))

        category_clause = ""
        if category:
            category_clause = "AND category = ?"
            params.append(category)
        params.append(limit)

        cursor = self.conn.execute(
            f"""
            SELECT * FROM rca_records
            WHERE ({" OR ".join(conditions)})
            {category_clause}
            ORDER BY created_at DESC, rowid DESC
            LIMIT ?
            """,
            params,
        )
        return [self._row_to_document(row) for row in cursor.fetchall()]

    async def group_counts(self, field: str) -> List[Dict[str, Any]]:
        """Count records grouped by one enumerated field."""
        if field not in GROUPABLE_FIELDS:
            raise ValueError(f"Cannot group by {field}")
        column = FIELD_COLUMNS[field]
        cursor = self.conn.execute(
            f"SELECT {column} AS _id, COUNT(*) AS count FROM rca_records GROUP BY {column} ORDER BY count DESC"
        )
        return [dict(row) for row in cursor.fetchall()]

    async def recent_records(self, limit: int = 5, category: Optional[str] = None) -> List[Dict[str, Any]]:
        filters = {"category": category} if category else None
        return await self.list_records(filters, "createdAt", True, 0, limit)

    async def drop_text_index(self):
        """Remove the full-text index and its sync triggers."""
        self.conn.executescript(
            """
            DROP TRIGGER IF EXISTS rca_records_fts_ai;
            DROP TRIGGER IF EXISTS rca_records_fts_ad;
            DROP TRIGGER IF EXISTS rca_records_fts_au;
            DROP TABLE IF EXISTS rca_records_fts;
            """
        )
        self.conn.commit()
        logger.info("Full-text index dropped")

    async def rebuild_text_index(self):
        """Recreate the full-text index and repopulate it from the records table."""
        self.conn.executescript(TEXT_INDEX_PATH.read_text(encoding="utf-8"))
        self.conn.execute("INSERT INTO rca_records_fts(rca_records_fts) VALUES ('rebuild')")
        self.conn.commit()
        logger.info("Full-text index rebuilt")

    async def get_database_stats(self) -> Dict[str, Any]:
        """Get database statistics for health reporting."""
        cursor = self.conn.execute("SELECT COUNT(*) FROM rca_records")
        record_count = cursor.fetchone()[0]

        cursor = self.conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='rca_records_fts'"
        )
        text_index = cursor.fetchone() is not None

        return {
            "backend": "sqlite",
            "record_count": record_count,
            "text_index": text_index,
        }
