"""Shared fixtures: a temporary SQLite store and a scripted LLM gateway."""

import pytest
from fastapi.testclient import TestClient

from config.database import DatabaseConfig, DatabaseType
from config.settings import AppSettings, LLMConfig
from server.app import create_app
from services.errors import UpstreamUnavailable


def make_record(**overrides):
    """A valid record document; keyword arguments replace fields."""
    record = {
        "title": "Database connection timeout",
        "category": "Database",
        "symptoms": "Connection timeout errors, users unable to login",
        "rootCause": "Connection pool exhausted by leaked connections",
        "solution": "Release connections after each transaction and restart pods",
        "prevention": "Alert on pool utilization",
        "severity": "High",
        "status": "Resolved",
        "tags": ["database", "timeout"],
        "createdBy": "Jane Doe",
    }
    record.update(overrides)
    return record


class FakeGateway:
    """Stands in for ``LLMGateway``; replies are scripted per test."""

    def __init__(self, configured: bool = True, reply: str = "AI reply"):
        self.configured = configured
        self.reply = reply
        self.error = None
        self.calls = []
        self.closed = False

    async def complete(self, system_prompt, user_prompt, max_tokens=None, operation="complete"):
        self.calls.append({"operation": operation, "system": system_prompt,
                           "prompt": user_prompt, "max_tokens": max_tokens})
        if self.error is not None:
            raise UpstreamUnavailable(getattr(self.error, "message", str(self.error)))
        return self.reply

    async def try_complete(self, system_prompt, user_prompt, max_tokens=None, operation="complete"):
        if not self.configured:
            return None
        try:
            return await self.complete(system_prompt, user_prompt, max_tokens, operation)
        except UpstreamUnavailable:
            return None

    async def converse(self, system_prompt, messages, max_tokens=None):
        self.calls.append({"operation": "chat", "system": system_prompt, "messages": messages})
        if self.error is not None:
            raise self.error
        return self.reply

    async def close(self):
        self.closed = True


@pytest.fixture
def settings(tmp_path):
    return AppSettings(
        rate_limit_enabled=False,
        database=DatabaseConfig(type=DatabaseType.SQLITE, sqlite_path=str(tmp_path / "rca.db")),
        llm=LLMConfig(api_key=None),
    )


@pytest.fixture
def gateway():
    """Gateway with no credential: every AI feature takes its fallback path."""
    return FakeGateway(configured=False)


@pytest.fixture
def ai_gateway():
    return FakeGateway(configured=True)


@pytest.fixture
def client(settings, gateway):
    with TestClient(create_app(settings, gateway=gateway)) as test_client:
        yield test_client


@pytest.fixture
def ai_client(settings, ai_gateway):
    with TestClient(create_app(settings, gateway=ai_gateway)) as test_client:
        yield test_client


@pytest.fixture
def create_rca(client):
    def _create(**overrides):
        response = client.post("/api/rca", json=make_record(**overrides))
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _create


@pytest.fixture
def create_ai_rca(ai_client):
    def _create(**overrides):
        response = ai_client.post("/api/rca", json=make_record(**overrides))
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _create
