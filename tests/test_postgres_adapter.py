"""PostgreSQL adapter queries and error mapping, against a fake asyncpg pool."""

from datetime import datetime, timezone

import asyncpg
import pytest

from services.records import KEYWORD_FIELDS, RecordService
from store.base import FIELD_COLUMNS, TextIndexUnavailable
from store.postgres_adapter import PostgresConfig, PostgresRecordStore


def make_row(**overrides):
    """A stored row as asyncpg would return it, keyed by column."""
    created = datetime(2025, 3, 4, 12, 0, tzinfo=timezone.utc)
    row = {column: "" for column in FIELD_COLUMNS.values()}
    row.update(
        id="abc123", title="Disk full on build agents", category="Server",
        symptoms="Builds fail with ENOSPC", root_cause="Docker layer cache never pruned",
        solution="Prune images nightly", severity="High", status="Resolved",
        tags=["disk", "ci"], created_by="Jane Doe", created_at=created, updated_at=created,
    )
    row.update(overrides)
    return row


class FakeConnection:
    def __init__(self, results):
        self.results = list(results)
        self.queries = []

    async def fetch(self, query, *params):
        self.queries.append((query, params))
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class FakeAcquire:
    def __init__(self, conn):
        self.conn = conn

    async def __aenter__(self):
        return self.conn

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


class FakePool:
    def __init__(self, *results):
        self.conn = FakeConnection(results)

    def acquire(self):
        return FakeAcquire(self.conn)


def store_with(pool):
    store = PostgresRecordStore(PostgresConfig())
    store.pool = pool
    return store


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [
    asyncpg.exceptions.UndefinedColumnError('column "search_vector" does not exist'),
    asyncpg.exceptions.UndefinedFunctionError("function to_tsquery(unknown, text) does not exist"),
    asyncpg.exceptions.PostgresSyntaxError("syntax error in tsquery"),
])
async def test_missing_text_index_is_reported(error):
    store = store_with(FakePool(error))
    with pytest.raises(TextIndexUnavailable):
        await store.search_text("timeout")


@pytest.mark.asyncio
async def test_other_database_errors_propagate():
    store = store_with(FakePool(asyncpg.exceptions.QueryCanceledError("canceling statement")))
    with pytest.raises(asyncpg.exceptions.QueryCanceledError):
        await store.search_text("timeout")


@pytest.mark.asyncio
async def test_search_text_query():
    pool = FakePool([make_row(score=0.5)])
    results = await store_with(pool).search_text("Disk full, disk!", category="Server", limit=5)

    query, params = pool.conn.queries[0]
    assert params == ("disk | full", "Server", 5)
    assert "to_tsquery('english', $1)" in query
    assert "AND category = $2" in query
    assert "LIMIT $3" in query
    assert results == [{
        "id": "abc123",
        "title": "Disk full on build agents",
        "category": "Server",
        "symptoms": "Builds fail with ENOSPC",
        "rootCause": "Docker layer cache never pruned",
        "solution": "Prune images nightly",
        "prevention": "",
        "severity": "High",
        "status": "Resolved",
        "tags": ["disk", "ci"],
        "createdBy": "Jane Doe",
        "createdAt": "2025-03-04T12:00:00+00:00",
        "updatedAt": "2025-03-04T12:00:00+00:00",
    }]


@pytest.mark.asyncio
async def test_search_text_without_tokens_skips_query():
    pool = FakePool()
    assert await store_with(pool).search_text("?!") == []
    assert pool.conn.queries == []


@pytest.mark.asyncio
async def test_search_substring_query():
    pool = FakePool([make_row()])
    results = await store_with(pool).search_substring(["50%", "disk"], ["title", "tags"], limit=10)

    query, params = pool.conn.queries[0]
    assert params == ("%50\\%%", "%disk%", 10)
    assert "title ILIKE $1" in query
    assert "title ILIKE $2" in query
    assert "array_to_string(tags, ' ') ILIKE $2" in query
    assert "ORDER BY created_at DESC, id DESC" in query
    assert "LIMIT $3" in query
    assert [r["id"] for r in results] == ["abc123"]


@pytest.mark.asyncio
async def test_search_substring_rejects_unknown_field():
    with pytest.raises(ValueError):
        await store_with(FakePool()).search_substring(["x"], ["password"])


@pytest.mark.asyncio
async def test_keyword_search_falls_back_to_substring():
    pool = FakePool(
        asyncpg.exceptions.UndefinedColumnError('column "search_vector" does not exist'),
        [make_row()],
    )
    results = await RecordService(store_with(pool)).search("ENOSPC", "Server")

    assert [r["id"] for r in results] == ["abc123"]
    assert results[0]["formattedDate"] == "Mar 4, 2025"
    query, params = pool.conn.queries[1]
    assert params == ("%ENOSPC%", "Server", 20)
    assert query.count("ILIKE $1") == len(KEYWORD_FIELDS)
    assert "array_to_string" not in query
