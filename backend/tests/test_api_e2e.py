from __future__ import annotations

import random
import re
import sys
import uuid
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ai.generators import ContentGenerator, get_content_generator  # noqa: E402
from ai.providers.openai_provider import OpenAIProvider  # noqa: E402
from db.repository import MemoryRepository, get_repository  # noqa: E402
from main import app  # noqa: E402


@pytest.fixture
def store() -> MemoryRepository:
    return MemoryRepository()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_repository] = lambda: store
    app.dependency_overrides[get_content_generator] = lambda: ContentGenerator(rng=random.Random(21))
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _register(client: TestClient, name: str | None = None) -> dict:
    name = name or f"seeker_{uuid.uuid4().hex[:8]}"
    email = f"{name.replace(' ', '.').lower()}@example.com"
    resp = client.post(
        "/api/auth/register",
        json={"username": name, "email": email, "password": "Stillness!42", "display_name": name},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def _bearer(auth: dict) -> dict:
    return {"Authorization": f"Bearer {auth['access_token']}"}


def test_health_uses_success_envelope(client):
    body = client.get("/api/health").json()
    assert body["status"] == "success"
    assert body["dimensions_active"] == 5
    assert body["data"]["generation_mode"] in {"mock", "llm"}


def test_register_login_and_current_user(client):
    auth = _register(client, "Luna Calm")
    assert auth["user"]["username"] == "luna calm"

    duplicate = client.post(
        "/api/auth/register",
        json={"username": "luna calm", "email": "x@example.com", "password": "Stillness!42"},
    )
    assert duplicate.status_code == 400
    assert duplicate.json() == {"status": "error", "message": "Username already taken"}

    bad_login = client.post("/api/auth/login", json={"username": "luna calm", "password": "wrong"})
    assert bad_login.status_code == 401
    assert bad_login.json()["status"] == "error"

    login = client.post("/api/auth/login", json={"username": "Luna  Calm", "password": "Stillness!42"})
    assert login.status_code == 200
    me = client.get("/api/auth/user", headers=_bearer(login.json()["data"]))
    assert me.json()["data"]["email"] == "luna.calm@example.com"


def test_meditation_endpoints_require_auth(client):
    resp = client.post("/api/meditation/start", json={})
    assert resp.status_code == 401
    assert resp.json() == {"status": "error", "message": "Not authenticated"}


def test_meditation_session_walkthrough(client):
    _register(client)

    start = client.post("/api/meditation/start", json={"target_duration": 1200})
    assert start.status_code == 200
    body = start.json()
    assert body["status"] == "success"
    session = body["data"]["session"]
    assert (session["status"], session["current_phase"], session["intensity"]) == ("running", "preparation", 5)
    assert body["data"]["guidance"]

    conflict = client.post("/api/meditation/start", json={})
    assert conflict.status_code == 400
    assert conflict.json()["status"] == "error"

    sid = session["id"]
    step = client.post(f"/api/meditation/{sid}/phase/advance", json={"feedback": "calm"}).json()["data"]
    assert (step["current_phase"], step["progress"]) == ("induction", 40)

    feedback = client.post(f"/api/meditation/{sid}/feedback", json={"feedback_type": "comfort", "value": 2})
    assert feedback.json()["data"]["intensity"] == pytest.approx(4.1)

    current = client.get("/api/meditation/current").json()["data"]
    assert current["session"]["id"] == sid
    assert current["recent_events"][0]["event_type"] == "feedback_received"
    assert "timestamp" in current["recent_events"][0]

    assert client.post(f"/api/meditation/{sid}/pause").json()["data"]["status"] == "paused"
    assert client.post(f"/api/meditation/{sid}/pause").status_code == 200
    assert client.get("/api/meditation/current").json()["data"] is None
    blocked = client.post(f"/api/meditation/{sid}/phase/advance")
    assert blocked.status_code == 400
    assert client.post(f"/api/meditation/{sid}/resume").json()["data"]["status"] == "running"

    for _ in range(3):
        final = client.post(f"/api/meditation/{sid}/phase/advance").json()["data"]
    assert (final["status"], final["current_phase"], final["progress"]) == ("completed", "integration", 100)
    assert final["actual_duration"] >= 0

    assert client.post(f"/api/meditation/{sid}/pause").status_code == 400
    detail = client.get(f"/api/meditation/{sid}").json()["data"]
    assert detail["events"][0]["event_type"] == "session_completed"
    assert [s["id"] for s in client.get("/api/meditation/sessions").json()["data"]] == [sid]


def test_meditation_validation_errors_use_envelope(client):
    _register(client)

    too_short = client.post("/api/meditation/start", json={"target_duration": 30})
    assert too_short.status_code == 400
    assert "target_duration" in too_short.json()["message"]

    sid = client.post("/api/meditation/start", json={}).json()["data"]["session"]["id"]
    bad_type = client.post(f"/api/meditation/{sid}/feedback", json={"feedback_type": "joy", "value": 4})
    assert bad_type.status_code == 400
    out_of_range = client.post(f"/api/meditation/{sid}/feedback", json={"feedback_type": "focus", "value": 11})
    assert out_of_range.status_code == 400
    missing = client.post(f"/api/meditation/{sid}/feedback", json={"value": 4})
    assert missing.status_code == 400
    assert missing.json()["status"] == "error"


def test_sessions_are_private_to_their_owner(client):
    owner = _register(client)
    intruder = _register(client)
    sid = client.post("/api/meditation/start", json={}, headers=_bearer(owner)).json()["data"]["session"]["id"]

    resp = client.post(f"/api/meditation/{sid}/pause", headers=_bearer(intruder))
    assert resp.status_code == 404
    assert resp.json() == {"status": "error", "message": "Meditation session not found"}


def test_experience_generators_store_and_list(client, store):
    meditation = client.get("/api/sacred-geometry/generate", params={"intention": "focus", "duration": 900}).json()
    assert meditation["type"] == "sacred_geometry_meditation"
    assert meditation["next_evolution"] == "/api/neural/pathways/activate"
    assert re.fullmatch(r"SGM-[A-Z_]{3}-[A-Z0-9]{6}", meditation["awakening_code"])
    meditation_id = meditation["data"]["meditation_id"]
    assert store.get_meditation(meditation_id).awakening_code == meditation["awakening_code"]
    assert client.get(f"/api/sacred-geometry/{meditation_id}").json()["data"]["pattern"] == meditation["data"]["pattern"]
    assert client.get("/api/sacred-geometry/unknown").status_code == 404

    affirmation = client.post("/api/affirmations/cosmic", json={"intention": "trust", "lifeArea": "unity"}).json()
    assert affirmation["data"]["category"] == "unity"
    assert affirmation["data"]["user_id"] is None
    listed = client.get("/api/affirmations/category/unity").json()["data"]
    assert [a["id"] for a in listed] == [affirmation["data"]["affirmation_id"]]

    soundscape = client.post("/api/chants/galactic/synthesize", json={"type": "deep_space", "duration": 300}).json()
    assert soundscape["data"]["duration"] == 300
    assert len(client.get("/api/chants/galactic").json()["data"]) == 1

    pattern = client.get("/api/neural/pathways/activate", params={"consciousnessState": "alpha_flow"}).json()
    assert pattern["data"]["pattern_type"] == "alpha_flow"
    assert len(client.get("/api/neural/patterns/alpha_flow").json()["data"]) == 1


def test_affirmation_records_signed_in_user(client):
    auth = _register(client)
    body = client.post("/api/affirmations/cosmic", json={}).json()
    assert body["data"]["user_id"] == auth["user"]["id"]


def test_heart_galaxy_connect(client):
    missing = client.post("/api/heart-galaxy/connect", json={})
    assert missing.status_code == 400
    assert missing.json()["message"] == "Heart rate is required and must be a number"
    assert client.post("/api/heart-galaxy/connect", json={"heart_rate": "72"}).status_code == 400

    auth = _register(client)
    body = client.post("/api/heart-galaxy/connect", json={"heart_rate": 72}).json()
    data = body["data"]
    assert 0 <= data["coherence_level"] <= 100
    assert data["session_duration"] == 300
    assert data["biometric_harmony"] == "optimal"
    assert body["next_evolution"] == "/api/sacred-geometry/generate"

    sessions = client.get("/api/heart-galaxy/sessions", headers=_bearer(auth)).json()["data"]
    assert [s["id"] for s in sessions] == [data["session_id"]]


@pytest.mark.parametrize("raw", ["NaN", "Infinity", "-Infinity", "1e400"])
def test_heart_galaxy_rejects_non_finite_heart_rate(client, raw):
    resp = client.post(
        "/api/heart-galaxy/connect",
        content=f'{{"heart_rate": {raw}}}',
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "Heart rate is required and must be a number"


@pytest.mark.parametrize("heart_rate", [19, 250.5, 1e300, 10**400, -72])
def test_heart_galaxy_rejects_implausible_heart_rate(client, heart_rate):
    resp = client.post("/api/heart-galaxy/connect", json={"heart_rate": heart_rate})
    assert resp.status_code == 400
    assert resp.json()["status"] == "error"
    assert resp.json()["message"] == "Heart rate must be between 20 and 250 bpm"


def test_heart_galaxy_accepts_range_edges(client):
    for heart_rate in (20, 250):
        assert client.post("/api/heart-galaxy/connect", json={"heart_rate": heart_rate}).status_code == 200


def test_chat_creates_session_and_keeps_history(client):
    _register(client)
    first = client.post("/api/chat", json={"message": "How does breathing calm me?"})
    assert first.status_code == 200
    data = first.json()["data"]
    assert data["response"]
    assert data["session_id"].startswith("chat-")

    client.post("/api/chat", json={"message": "Tell me more", "sessionId": data["session_id"]})
    history = client.get(f"/api/chat/{data['session_id']}/history").json()["data"]
    assert [m["role"] for m in history] == ["user", "assistant", "user", "assistant"]

    sessions = client.get("/api/chat/sessions").json()["data"]
    assert sessions[0]["title"] == "How does breathing calm me?"

    assert client.delete(f"/api/chat/{data['session_id']}").status_code == 200
    assert client.get(f"/api/chat/{data['session_id']}/history").status_code == 404


def test_chat_session_of_another_user_is_hidden(client):
    owner = _register(client)
    other = _register(client)
    sid = client.post("/api/chat", json={"message": "hi"}, headers=_bearer(owner)).json()["data"]["session_id"]

    assert client.get(f"/api/chat/{sid}/history", headers=_bearer(other)).status_code == 404
    hijack = client.post("/api/chat", json={"message": "hi", "session_id": sid}, headers=_bearer(other))
    assert hijack.status_code == 404


def test_chat_generation_failure_reports_upstream_error(client):
    _register(client)

    def failing(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="model unavailable")

    provider = OpenAIProvider(api_key="sk-test", transport=httpx.MockTransport(failing))
    app.dependency_overrides[get_content_generator] = lambda: ContentGenerator(provider=provider)

    resp = client.post("/api/chat", json={"message": "hello"})
    assert resp.status_code == 500
    body = resp.json()
    assert body["status"] == "error"
    assert body["message"].startswith("Failed to generate chat response:")
    assert "model unavailable" in body["message"]
    assert client.get("/api/chat/sessions").json()["data"] == []


def test_favorites_are_unique_per_entity(client):
    _register(client)
    meditation_id = client.get("/api/sacred-geometry/generate").json()["data"]["meditation_id"]

    added = client.post("/api/favorites", json={"entity_type": "meditation", "entity_id": meditation_id})
    assert added.status_code == 200
    assert added.json()["data"]["entity"]["id"] == meditation_id

    again = client.post("/api/favorites", json={"entity_type": "meditation", "entity_id": meditation_id})
    assert again.status_code == 400
    assert client.post("/api/favorites", json={"entity_type": "meditation", "entity_id": "nope"}).status_code == 404
    assert client.post("/api/favorites", json={"entity_type": "planet", "entity_id": "x"}).status_code == 400

    assert len(client.get("/api/favorites").json()["data"]) == 1
    assert client.delete(f"/api/favorites/meditation/{meditation_id}").status_code == 200
    assert client.get("/api/favorites?entity_type=meditation").json()["data"] == []
    assert client.delete(f"/api/favorites/meditation/{meditation_id}").status_code == 404


def test_preferences_round_trip(client):
    _register(client)
    prefs = client.get("/api/preferences").json()["data"]
    assert prefs["default_meditation_duration"] == 1260

    updated = client.put("/api/preferences", json={"default_meditation_duration": 900, "settings": {"theme": "aurora"}})
    assert updated.status_code == 200
    assert updated.json()["data"]["default_meditation_duration"] == 900
    assert client.get("/api/preferences").json()["data"]["settings"] == {"theme": "aurora"}
    assert client.put("/api/preferences", json={"default_meditation_duration": 5}).status_code == 400
