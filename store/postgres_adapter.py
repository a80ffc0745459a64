"""PostgreSQL record store for the RCA knowledge base.

Production backend built on an asyncpg pool. Full-text search uses a
trigger-maintained ``search_vector`` column with a GIN index.
"""

import logging
from typing import List, Dict, Any, Optional
from pathlib import Path

import asyncpg
from pydantic import BaseModel

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

SCHEMA_PATH = Path(__file__).parent / "schema_postgres.sql"
TEXT_INDEX_PATH = Path(__file__).parent / "text_index_postgres.sql"

_COLUMN_FIELDS = {column: field for field, column in FIELD_COLUMNS.items()}
_RECORD_COLUMNS = ", ".join(FIELD_COLUMNS.values())


class PostgresConfig(BaseModel):
    """PostgreSQL connection configuration."""
    host: str = "localhost"
    port: int = 5432
    database: str = "rca"
    user: str = "rca"
    password: str = ""
    min_connections: int = 2
    max_connections: int = 10
    command_timeout: int = 60


class PostgresRecordStore:
    """PostgreSQL record store with the same interface as the SQLite store."""

    def __init__(self, config: PostgresConfig):
        self.config = config
        self.pool: Optional[asyncpg.Pool] = None

    async def initialize(self):
        """Initialize connection pool and ensure schema and text index exist."""
        try:
            self.pool = await asyncpg.create_pool(
                host=self.config.host,
                port=self.config.port,
                database=self.config.database,
                user=self.config.user,
                password=self.config.password,
                min_size=self.config.min_connections,
                max_size=self.config.max_connections,
                command_timeout=self.config.command_timeout
            )
            async with self.pool.acquire() as conn:
                await conn.execute(SCHEMA_PATH.read_text(encoding="utf-8"))
                await conn.execute(TEXT_INDEX_PATH.read_text(encoding="utf-8"))
            logger.info("PostgreSQL record store initialized")
        except Exception as e:
            logger.error(f"Failed to initialize PostgreSQL: {e}")
            raise

    async def close(self):
        """Close connection pool."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            logger.info("PostgreSQL connection pool closed")

    def _row_to_document(self, row: asyncpg.Record) -> Dict[str, Any]:
        document = {}
        for column, value in row.items():
            if column not in _COLUMN_FIELDS:
                continue
            if column == "tags":
                value = list(value or [])
            elif column in ("created_at", "updated_at") and value is not None:
                value = value.isoformat()
            document[_COLUMN_FIELDS[column]] = value
        return document

    def _column_values(self, document: Dict[str, Any]) -> Dict[str, Any]:
        values = {}
        for field in WRITABLE_FIELDS:
            if field not in document:
                continue
            value = document[field]
            if field == "tags":
                value = list(value or [])
            values[FIELD_COLUMNS[field]] = value
        return values

    async def insert_record(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a new record and return it with id and timestamps."""
        values = self._column_values(document)
        now = utcnow()
        values.update(id=new_record_id(), created_at=now, updated_at=now)

        columns = ", ".join(values)
        placeholders = ", ".join(f"${i}" for i in range(1, len(values) + 1))
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"INSERT INTO rca_records ({columns}) VALUES ({placeholders}) RETURNING {_RECORD_COLUMNS}",
                *values.values()
            )
        return self._row_to_document(row)

    async def get_record(self, record_id: str) -> Optional[Dict[str, Any]]:
        """Get a record by its identifier."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {_RECORD_COLUMNS} FROM rca_records WHERE id = $1",
                record_id
            )
        return self._row_to_document(row) if row else None

    async def replace_record(self, record_id: str, document: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Overwrite every writable field of a record. Returns None if absent."""
        values = self._column_values(document)
        values["updated_at"] = utcnow()

        assignments = ", ".join(f"{column} = ${i}" for i, column in enumerate(values, start=1))
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE rca_records SET {assignments}
                WHERE id = ${len(values) + 1}
                RETURNING {_RECORD_COLUMNS}
                """,
                *values.values(), record_id
            )
        return self._row_to_document(row) if row else None

    async def delete_record(self, record_id: str) -> bool:
        async with self.pool.acquire() as conn:
            deleted = await conn.fetchval(
                "DELETE FROM rca_records WHERE id = $1 RETURNING id",
                record_id
            )
        return deleted is not None

    async def clear_records(self) -> int:
        """Delete every record. Returns the number removed."""
        async with self.pool.acquire() as conn:
            status = await conn.execute("DELETE FROM rca_records")
        return int(status.split()[-1])

    def _where(self, filters: Optional[Dict[str, str]], start: int = 1):
        conditions = []
        params = []
        for column, value in filter_columns(filters).items():
            params.append(value)
            conditions.append(f"{column} = ${start + len(params) - 1}")
        where_clause = "WHERE " + " AND ".join(conditions) if conditions else ""
        return where_clause, params

    async def list_records(self, filters: Optional[Dict[str, str]] = None,
                           sort_field: str = "createdAt", descending: bool = True,
                           skip: int = 0, limit: int = 10) -> List[Dict[str, Any]]:
        """List records matching equality filters, sorted and paginated."""
        where_clause, params = self._where(filters)
        direction = "DESC" if descending else "ASC"
        n = len(params)
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {_RECORD_COLUMNS} FROM rca_records
                {where_clause}
                ORDER BY {sort_column(sort_field)} {direction}, id {direction}
                LIMIT ${n + 1} OFFSET ${n + 2}
                """,
                *params, limit, skip
            )
        return [self._row_to_document(row) for row in rows]

    async def count_records(self, filters: Optional[Dict[str, str]] = None) -> int:
        where_clause, params = self._where(filters)
        async with self.pool.acquire() as conn:
            return await conn.fetchval(f"SELECT COUNT(*) FROM rca_records {where_clause}", *params)

    async def search_text(self, query: str, category: Optional[str] = None,
                          limit: int = 20) -> List[Dict[str, Any]]:
        """Rank records against the full-text index (any query term matches)."""
        tokens = query_tokens(query)
        if not tokens:
            return []
        tsquery = " | ".join(tokens)

        params: List[Any] = [tsquery]
        category_clause = ""
        if category:
            params.append(category)
            category_clause = f"AND category = ${len(params)}"
        params.append(limit)

        try:
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(
                    f"""
                    SELECT {_RECORD_COLUMNS},
                           ts_rank(search_vector, to_tsquery('english', $1)) AS score
                    FROM rca_records
                    WHERE search_vector @@ to_tsquery('english', $1)
                    {category_clause}
                    ORDER BY score DESC
                    LIMIT ${len(params)}
                    """,
                    *params
                )
        except (asyncpg.exceptions.UndefinedColumnError,
                asyncpg.exceptions.UndefinedFunctionError,
                asyncpg.exceptions.PostgresSyntaxError) as e:
            raise TextIndexUnavailable(str(e)) from e

        return [self._row_to_document(row) for row in rows]

    async def search_substring(self, terms: List[str], fields: List[str],
                               category: Optional[str] = None,
                               limit: int = 20) -> List[Dict[str, Any]]:
        """Case-insensitive literal substring match of any term in any field."""
        terms = [term for term in terms if term]
        if not terms:
            return []

        params: List[Any] = [like_pattern(term) for term in terms]
        conditions = []
        for column in search_columns(fields):
            target = "array_to_string(tags, ' ')" if column == "tags" else column
            for i in range(1, len(terms) + 1):
                conditions.append(f"{target} ILIKE ${i}")

        category_clause = ""
        if category:
            params.append(category)
            category_clause = f"AND category = ${len(params)}"
        params.append(limit)

        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {_RECORD_COLUMNS} FROM rca_records
                WHERE ({" OR ".join(conditions)})
                {category_clause}
                ORDER BY created_at DESC, id DESC
                LIMIT ${len(params)}
                """,
                *params
            )
        return [self._row_to_document(row) for row in rows]

    async def group_counts(self, field: str) -> List[Dict[str, Any]]:
        """Count records grouped by one enumerated field."""
        if field not in GROUPABLE_FIELDS:
            raise ValueError(f"Cannot group by {field}")
        column = FIELD_COLUMNS[field]
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT {column} AS _id, COUNT(*) AS count FROM rca_records GROUP BY {column} ORDER BY count DESC"
            )
        return [dict(row) for row in rows]

    async def recent_records(self, limit: int = 5, category: Optional[str] = None) -> List[Dict[str, Any]]:
        filters = {"category": category} if category else None
        return await self.list_records(filters, "createdAt", True, 0, limit)

    async def drop_text_index(self):
        """Remove the full-text index, its trigger and column."""
        async with self.pool.acquire() as conn:
            await conn.execute(
                """
                DROP TRIGGER IF EXISTS rca_records_search_vector_trg ON rca_records;
                DROP INDEX IF EXISTS idx_rca_records_search;
                ALTER TABLE rca_records DROP COLUMN IF EXISTS search_vector;
                """
            )
        logger.info("Full-text index dropped")

    async def rebuild_text_index(self):
        """Recreate the full-text index and backfill it."""
        async with self.pool.acquire() as conn:
            await conn.execute(TEXT_INDEX_PATH.read_text(encoding="utf-8"))
        logger.info("Full-text index rebuilt")

    async def get_database_stats(self) -> Dict[str, Any]:
        """Get database statistics for health reporting."""
        async with self.pool.acquire() as conn:
            stats = await conn.fetchrow(
                """
                SELECT
                    (SELECT COUNT(*) FROM rca_records) AS record_count,
                    EXISTS (
                        SELECT 1 FROM information_schema.columns
                        WHERE table_name = 'rca_records' AND column_name = 'search_vector'
                    ) AS text_index
                """
            )
        return {
            "backend": "postgresql",
            "record_count": stats["record_count"],
            "text_index": stats["text_index"],
        }
