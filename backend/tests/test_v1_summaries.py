from fastapi.testclient import TestClient

from notes_summarizer.app import create_app
from notes_summarizer.errors import ProviderError

from .conftest import FakeGroq, FakeMailer, LoopAwareStore

PAYLOAD = {
    "original_text": "Alice will prepare the launch checklist. The team reviewed open bugs in detail.",
    "custom_prompt": "Summarize the action items",
    "title": "Launch sync",
    "tags": ["launch", " ", "q3"],
}


def _create(client, **overrides):
    body = {**PAYLOAD, **overrides}
    r = client.post("/api/summarize", json=body)
    assert r.status_code == 201, r.text
    return r.json()["data"]


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_create_summary_persists_provider_output(client, groq):
    data = _create(client)
    assert data["generated_summary"] == "Generated summary."
    assert data["final_summary"] == "Generated summary."
    assert data["source"] == "groq"
    assert data["tags"] == ["launch", "q3"]
    assert len(groq.calls) == 1

    r = client.get(f"/api/summarize/{data['id']}")
    assert r.status_code == 200
    full = r.json()["data"]
    assert full["original_text"] == PAYLOAD["original_text"]
    assert full["custom_prompt"] == PAYLOAD["custom_prompt"]
    assert full["edited_summary"] is None
    assert full["shared_with"] == []


def test_create_summary_uses_fallback_on_provider_error(settings, mailer):
    app = create_app(settings, ai_client=FakeGroq(error=ProviderError("HTTP 500")), mailer=mailer)
    client = TestClient(app)
    data = _create(client)
    assert data["source"] == "fallback"
    assert data["generated_summary"] == (
        'Summary based on: "Summarize the action items"\n\n'
        "Action Items:\n• Alice will prepare the launch checklist"
    )


def test_create_summary_without_api_key_is_server_error(settings):
    app = create_app(settings, ai_client=FakeGroq(api_key=""), mailer=FakeMailer())
    client = TestClient(app)
    r = client.post("/api/summarize", json=PAYLOAD)
    assert r.status_code == 500
    body = r.json()
    assert body["ok"] is False
    assert body["error"] == "Failed to generate summary"
    assert "GROQ_API_KEY" in body["message"]
    assert client.get("/api/summarize").json()["pagination"]["total"] == 0


def test_create_summary_validation(client):
    r = client.post("/api/summarize", json={**PAYLOAD, "original_text": "too short"})
    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "Validation failed"
    assert body["details"][0]["field"] == "original_text"

    r = client.post("/api/summarize", json={**PAYLOAD, "custom_prompt": "x" * 1001})
    assert r.status_code == 400

    r = client.post("/api/summarize", json={k: v for k, v in PAYLOAD.items() if k != "title"})
    assert r.status_code == 400


def test_update_summary(client):
    created = _create(client)
    r = client.put(
        f"/api/summarize/{created['id']}",
        json={"edited_summary": "Hand-edited notes", "tags": ["edited"]},
    )
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["edited_summary"] == "Hand-edited notes"
    assert data["final_summary"] == "Hand-edited notes"
    assert data["title"] == "Launch sync"
    assert data["tags"] == ["edited"]

    r = client.put(f"/api/summarize/{'0' * 24}", json={"edited_summary": "x"})
    assert r.status_code == 404
    assert r.json()["error"] == "Summary not found"


def test_list_summaries_paginates(client):
    for i in range(3):
        _create(client, title=f"Meeting {i}")
    r = client.get("/api/summarize", params={"page": 2, "limit": 2})
    assert r.status_code == 200
    body = r.json()
    assert body["pagination"] == {"page": 2, "limit": 2, "total": 3, "pages": 2}
    assert [it["title"] for it in body["data"]] == ["Meeting 0"]
    assert "original_text" not in body["data"][0]


def test_delete_summary(client):
    created = _create(client)
    r = client.delete(f"/api/summarize/{created['id']}")
    assert r.status_code == 200
    assert r.json()["message"] == "Summary deleted successfully"
    assert client.get(f"/api/summarize/{created['id']}").status_code == 404
    assert client.delete(f"/api/summarize/{created['id']}").status_code == 404


def test_check_ai_endpoint(client, settings):
    r = client.post("/api/summarize/test-ai")
    assert r.status_code == 200
    assert r.json()["response"] == "Generated summary."

    app = create_app(settings, ai_client=FakeGroq(error=ProviderError("down")), mailer=FakeMailer())
    r = TestClient(app).post("/api/summarize/test-ai")
    assert r.status_code == 500
    assert r.json()["details"] == "down"


def test_store_calls_run_off_the_event_loop(settings):
    app = create_app(settings, ai_client=FakeGroq(), mailer=FakeMailer())
    spy = LoopAwareStore(app.state.state.store.db_path)
    app.state.state.store = spy
    client = TestClient(app)

    sid = _create(client)["id"]
    assert client.get(f"/api/summarize/{sid}").status_code == 200

    assert {name for name, _ in spy.calls} >= {"create", "get"}
    assert all(where == "worker-thread" for _, where in spy.calls), spy.calls
