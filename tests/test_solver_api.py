"""Problem solver endpoints."""

import asyncio
import json

from services import prompts
from services.errors import LLMError

UNRELATED = {
    "title": "BGP session flapping",
    "category": "Network",
    "symptoms": "Routes withdrawn every few minutes",
    "rootCause": "Mismatched hold timer on the peer",
    "solution": "Align hold timers on both routers",
    "tags": ["bgp"],
}


class TestSearch:

    def test_requires_problem(self, client):
        r = client.post("/api/solver/search", json={"problem": ""})
        assert r.status_code == 400
        assert r.json()["message"] == "Please describe your problem"

    def test_keyword_summary_without_credential(self, client, create_rca):
        record = create_rca()
        data = client.post("/api/solver/search",
                           json={"problem": "database connection timeout"}).json()["data"]
        assert data["totalMatches"] == 1
        assert data["matchedRCAs"][0]["id"] == record["id"]
        assert data["confidence"] == "medium"
        assert data["aiAnalysis"] == prompts.keyword_match_summary(record, 1)
        assert data["searchedProblem"] == "database connection timeout"

    def test_no_match_checklist(self, client):
        data = client.post("/api/solver/search", json={"problem": "printer on fire"}).json()["data"]
        assert data == {
            "matchedRCAs": [],
            "totalMatches": 0,
            "aiAnalysis": prompts.NO_MATCH_CHECKLIST,
            "confidence": "low",
            "searchedProblem": "printer on fire",
        }

    def test_category_adds_recent_records(self, client, create_rca):
        create_rca()
        network = create_rca(**UNRELATED)
        data = client.post("/api/solver/search", json={
            "problem": "database connection timeout", "category": "Network"
        }).json()["data"]
        assert data["totalMatches"] == 2
        assert data["matchedRCAs"][1]["id"] == network["id"]

    def test_all_category_adds_nothing(self, client, create_rca):
        create_rca()
        create_rca(**UNRELATED)
        data = client.post("/api/solver/search", json={
            "problem": "database connection timeout", "category": "All"
        }).json()["data"]
        assert data["totalMatches"] == 1

    def test_fallback_matches_tags(self, client, create_rca):
        record = create_rca(title="Node memory pressure", category="Server",
                            symptoms="Workloads rescheduled repeatedly",
                            rootCause="Memory limits missing", solution="Set memory limits",
                            tags=["kubernetes"])
        create_rca(**UNRELATED)
        asyncio.run(client.app.state.store.drop_text_index())

        data = client.post("/api/solver/search",
                           json={"problem": "pods failing on Kubernetes"}).json()["data"]
        assert data["totalMatches"] == 1
        assert data["matchedRCAs"][0]["id"] == record["id"]
        assert data["confidence"] == "medium"

    def test_fallback_ignores_short_words(self, client, create_rca):
        create_rca(title="API is down", category="App")
        asyncio.run(client.app.state.store.drop_text_index())

        data = client.post("/api/solver/search", json={"problem": "api is off"}).json()["data"]
        assert data["totalMatches"] == 0
        assert data["confidence"] == "low"

        data = client.post("/api/solver/search", json={"problem": "down"}).json()["data"]
        assert data["totalMatches"] == 1

    def test_ai_analysis(self, ai_client, ai_gateway, create_ai_rca):
        create_ai_rca()
        ai_gateway.reply = "**Match Assessment: High**\nSame incident."
        data = ai_client.post("/api/solver/search", json={
            "problem": "database connection timeout", "additionalDetails": "after deploy"
        }).json()["data"]
        assert data["confidence"] == "high"
        assert data["aiAnalysis"] == ai_gateway.reply
        call = ai_gateway.calls[-1]
        assert call["operation"] == "solver_search"
        assert call["max_tokens"] == 2048
        assert "after deploy" in call["prompt"]

    def test_ai_failure_degrades_to_keyword_summary(self, ai_client, ai_gateway, create_ai_rca):
        record = create_ai_rca()
        ai_gateway.error = LLMError("overloaded", 529)
        r = ai_client.post("/api/solver/search", json={"problem": "database connection timeout"})
        assert r.status_code == 200
        data = r.json()["data"]
        assert data["confidence"] == "medium"
        assert data["aiAnalysis"] == prompts.keyword_match_summary(record, 1)

    def test_general_troubleshooting_when_nothing_matches(self, ai_client, ai_gateway):
        ai_gateway.reply = "Try turning it off and on."
        data = ai_client.post("/api/solver/search", json={"problem": "printer on fire"}).json()["data"]
        assert data["aiAnalysis"] == "Try turning it off and on."
        assert data["confidence"] == "low"
        assert ai_gateway.calls[-1]["operation"] == "solver_general"


class TestGuide:

    def test_missing_record(self, client):
        r = client.post("/api/solver/guide", json={"rcaId": "nope", "userProblem": "x"})
        assert r.status_code == 404

    def test_templated_guide(self, client, create_rca):
        record = create_rca(prevention="")
        data = client.post("/api/solver/guide", json={
            "rcaId": record["id"], "userProblem": "timeouts again"
        }).json()["data"]
        assert data["rca"]["id"] == record["id"]
        assert data["guidance"].startswith("**Guided Solution Based on Past Incident**")
        assert "Document preventive measures once resolved" in data["guidance"]

    def test_ai_guide(self, ai_client, ai_gateway, create_ai_rca):
        record = create_ai_rca()
        ai_gateway.reply = "Step 1: restart the pool."
        data = ai_client.post("/api/solver/guide", json={
            "rcaId": record["id"], "userProblem": "timeouts", "userContext": "k8s"
        }).json()["data"]
        assert data["guidance"] == "Step 1: restart the pool."


class TestChat:

    def test_requires_user_message(self, client):
        r = client.post("/api/solver/chat", json={"messages": [{"role": "assistant", "content": "hi"}]})
        assert r.status_code == 400
        assert r.json()["message"] == "Please send a message"

    def test_greeting_without_credential(self, client):
        data = client.post("/api/solver/chat", json={
            "messages": [{"role": "user", "content": "Hello there"}]
        }).json()["data"]
        assert data == {"response": prompts.CHAT_GREETING, "relevantRCAs": [], "source": "fallback"}

    def test_default_reply_without_credential(self, client):
        data = client.post("/api/solver/chat", json={
            "messages": [{"role": "user", "content": "my database is down"}]
        }).json()["data"]
        assert data["response"] == prompts.chat_default_reply("my database is down")
        assert data["source"] == "fallback"

    def test_ai_reply_with_context(self, ai_client, ai_gateway, create_ai_rca):
        record = create_ai_rca()
        ai_gateway.reply = "Sounds like pool exhaustion."
        data = ai_client.post("/api/solver/chat", json={"messages": [
            {"role": "assistant", "content": "Hi! How can I help?"},
            {"role": "user", "content": "database connection timeout"},
            {"role": "assistant", "content": "Oops", "isError": True},
            {"role": "user", "content": "database connection timeout after deploy"},
        ]}).json()["data"]

        assert data["source"] == "ai"
        assert data["response"] == "Sounds like pool exhaustion."
        assert [r["id"] for r in data["relevantRCAs"]] == [record["id"]]
        call = ai_gateway.calls[-1]
        assert call["messages"] == [{"role": "user", "content": "database connection timeout after deploy"}]
        assert record["title"] in call["system"]

    def test_small_talk_skips_search(self, ai_client, ai_gateway, create_ai_rca):
        create_ai_rca()
        data = ai_client.post("/api/solver/chat", json={
            "messages": [{"role": "user", "content": "thanks, database timeout fixed"}]
        }).json()["data"]
        assert data["relevantRCAs"] == []
        assert data["source"] == "ai"

    def test_provider_error_becomes_apology(self, ai_client, ai_gateway):
        ai_gateway.error = LLMError("rate limit exceeded", 429)
        r = ai_client.post("/api/solver/chat", json={
            "messages": [{"role": "user", "content": "help me please"}]
        })
        assert r.status_code == 200
        data = r.json()["data"]
        assert data["source"] == "error"
        assert data["relevantRCAs"] == []
        assert data["response"].startswith(prompts.CHAT_BUSY_APOLOGY)
        assert data["response"].endswith("_Error details: rate limit exceeded_")


class TestFeedback:

    def test_helpful_feedback(self, client, create_rca):
        record = create_rca()
        r = client.post("/api/solver/feedback", json={"rcaId": record["id"], "helpful": True})
        assert r.status_code == 200
        assert r.json() == {
            "success": True,
            "message": "Thank you for your feedback!",
            "data": {"feedbackRecorded": True},
        }

    def test_new_record_from_defaults(self, client):
        problem = "Nightly export job hangs " * 10
        r = client.post("/api/solver/feedback", json={
            "problemDescription": problem,
            "actualSolution": "Raised the worker timeout",
            "createNewRCA": True,
        })
        assert r.status_code == 201
        body = r.json()
        assert body["message"] == "Thank you for your feedback! A new RCA has been created."
        record = body["data"]["newRCA"]
        assert record["title"] == problem.strip()[:100].strip()
        assert record["category"] == "Other"
        assert record["rootCause"] == "To be determined"
        assert record["tags"] == ["auto-generated", "from-solver"]
        assert record["createdBy"] == "Problem Solver"
        assert client.get(f"/api/rca/{record['id']}").status_code == 200

    def test_new_record_needs_problem_and_solution(self, client):
        r = client.post("/api/solver/feedback", json={"problemDescription": "x", "createNewRCA": True})
        assert r.status_code == 200
        assert "newRCA" not in r.json()["data"]
        assert client.get("/api/rca").json()["pagination"]["total"] == 0

    def test_ai_structured_record(self, ai_client, ai_gateway):
        ai_gateway.reply = "Sure:\n" + json.dumps({
            "title": "Export job hangs",
            "category": "App",
            "symptoms": "Nightly export never finishes",
            "rootCause": "Worker timeout too low for large tenants",
            "solution": "Raised the worker timeout",
            "prevention": "Alert on job duration",
            "severity": "Catastrophic",
            "status": "Open",
            "tags": ["export", "jobs"],
            "createdBy": "The model",
        })
        record = ai_client.post("/api/solver/feedback", json={
            "problemDescription": "Nightly export job hangs",
            "actualSolution": "Raised the worker timeout",
            "createNewRCA": True,
        }).json()["data"]["newRCA"]

        assert record["title"] == "Export job hangs"
        assert record["category"] == "App"
        assert record["rootCause"] == "Worker timeout too low for large tenants"
        assert record["severity"] == "Medium"
        assert record["status"] == "Resolved"
        assert record["createdBy"] == "Problem Solver"
        assert record["tags"] == ["export", "jobs"]

    def test_unparseable_ai_reply_uses_defaults(self, ai_client, ai_gateway):
        ai_gateway.reply = "I cannot do that."
        record = ai_client.post("/api/solver/feedback", json={
            "problemDescription": "Queue backlog",
            "actualSolution": "Scaled consumers",
            "createNewRCA": True,
        }).json()["data"]["newRCA"]
        assert record["title"] == "Queue backlog"
        assert record["category"] == "Other"


class TestSuggest:

    def test_short_query(self, client, create_rca):
        create_rca()
        assert client.get("/api/solver/suggest", params={"q": "da"}).json()["data"] == []
        assert client.get("/api/solver/suggest").json()["data"] == []

    def test_suggestions(self, client, create_rca):
        record = create_rca()
        create_rca(**UNRELATED)
        data = client.get("/api/solver/suggest", params={"q": "timeout"}).json()["data"]
        assert data == [{
            "id": record["id"],
            "title": record["title"],
            "preview": record["symptoms"][:100] + "...",
            "category": "Database",
        }]

    def test_suggestions_fold_non_ascii_case(self, client, create_rca):
        record = create_rca(title="Ошибка сервера", category="Server")
        data = client.get("/api/solver/suggest", params={"q": "ОШИБ"}).json()["data"]
        assert [s["id"] for s in data] == [record["id"]]
