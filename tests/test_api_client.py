"""Python API client against the in-process app."""

import pytest

from client.api_client import RCAClient, RCAClientError

from .conftest import make_record


@pytest.fixture
def api(client):
    return RCAClient("http://testserver/api", session=client)


def test_record_lifecycle(api):
    created = api.create_rca(make_record())["data"]
    assert api.get_rca(created["id"])["data"]["title"] == created["title"]

    updated = api.update_rca(created["id"], {"status": "Closed"})["data"]
    assert updated["status"] == "Closed"

    listing = api.list_rcas(status="Closed", category=None)
    assert listing["pagination"]["total"] == 1

    assert api.search_rcas("timeout")["count"] == 1
    assert api.get_stats()["data"]["total"] == 1

    api.delete_rca(created["id"])
    with pytest.raises(RCAClientError) as exc_info:
        api.get_rca(created["id"])
    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "RCA not found"


def test_validation_error_details(api):
    with pytest.raises(RCAClientError) as exc_info:
        api.create_rca({"category": "Database"})
    assert exc_info.value.status_code == 400
    assert "title: Issue title is required" in exc_info.value.error


def test_assist_and_solver_calls(api):
    record = api.create_rca(make_record())["data"]

    assert api.find_similar(title="timeout")["data"]["source"] == "database"
    assert api.assist("title", "db down")["data"]["source"] == "default"
    assert api.validate_root_cause("it crashed")["data"]["isValid"] is False
    assert api.generate_summary(record["id"])["data"]["source"] == "basic"

    assert api.search_solutions("connection timeout")["data"]["totalMatches"] == 1
    assert api.get_guided_help(record["id"], "timeouts")["data"]["rca"]["id"] == record["id"]
    assert api.chat([{"role": "user", "content": "hi"}])["data"]["source"] == "fallback"
    assert api.submit_feedback(rcaId=record["id"], helpful=True)["data"] == {"feedbackRecorded": True}
    assert api.get_suggestions("timeout")["data"][0]["id"] == record["id"]
    assert api.health()["status"] == "ok"
