import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routes import get_controller, router

STRONG = (
    "For example, on a project with my team of 5 engineers my approach was to first profile the system, "
    "then we rewrote the slow database queries. I learned a lot and we improved throughput by 40 percent."
)


@pytest.fixture
def client(controller):
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_controller] = lambda: controller
    return TestClient(app)


def _answer(client, session_id, turn_id, text=STRONG, **extra):
    return client.post(f"/api/sessions/{session_id}/answers", json={"turn_id": turn_id, "answer_text": text, **extra})


def test_free_session_flow(client, make_session):
    session = make_session(plan_tier="free")

    start = client.post(f"/api/sessions/{session.id}/start")
    assert start.status_code == 200
    body = start.json()
    assert body["error"] is None
    turn_id = body["data"]["turn_id"]
    assert body["data"]["turn_type"] == "question"

    for _ in range(2):
        resp = _answer(client, session.id, turn_id, reveal_count=1)
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["done"] is False
        turn_id = data["turn_id"]

    saved = client.post(f"/api/sessions/{session.id}/autosave").json()["data"]
    assert saved["saved"] is True
    assert saved["progress_state"]["current_turn_id"] == turn_id

    resume = client.get(f"/api/sessions/{session.id}/resume").json()["data"]
    assert resume["can_resume"] is True
    assert resume["resume_turn_id"] == turn_id

    final = _answer(client, session.id, turn_id).json()["data"]
    assert final["done"] is True

    state = client.get(f"/api/sessions/{session.id}/state").json()["data"]
    assert state["is_complete"] is True
    assert state["session"]["status"] == "feedback"
    assert len(state["turns"]) == 3

    debug = client.get(f"/api/sessions/{session.id}/debug").json()["data"]
    assert debug["total_reveals"] == 2


def test_paid_start_returns_small_talk(client, make_session):
    session = make_session(plan_tier="paid", stages_planned=1)
    data = client.post(f"/api/sessions/{session.id}/start").json()["data"]
    assert data["turn_type"] == "confirmation"
    assert len(data["small_talk_turn_ids"]) == 2
    assert data["intro"]


def test_duplicate_submission_is_flagged(client, make_session):
    session = make_session(plan_tier="free")
    turn_id = client.post(f"/api/sessions/{session.id}/start").json()["data"]["turn_id"]
    first = _answer(client, session.id, turn_id).json()["data"]
    again = _answer(client, session.id, turn_id).json()["data"]
    assert again["duplicate"] is True
    assert again["turn_id"] == first["turn_id"]


def test_missing_session_is_404(client):
    resp = client.post("/api/sessions/nope/start")
    assert resp.status_code == 404
    body = resp.json()
    assert body["data"] is None
    assert body["error"]["code"] == "not_found"


def test_invalid_state_is_409(client, make_session):
    session = make_session(plan_tier="free", question_cap=1)
    turn_id = client.post(f"/api/sessions/{session.id}/start").json()["data"]["turn_id"]
    _answer(client, session.id, turn_id)
    resp = client.post(f"/api/sessions/{session.id}/start")
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "invalid_state"


def test_generation_failure_is_502(client, fake_generator, make_session):
    session = make_session(plan_tier="free")
    fake_generator.fail_json = True
    resp = client.post(f"/api/sessions/{session.id}/start")
    assert resp.status_code == 502
    assert resp.json()["error"]["code"] == "generation_failed"


def test_invalid_payload_is_rejected(client, make_session):
    session = make_session(plan_tier="free")
    resp = client.post(f"/api/sessions/{session.id}/answers", json={"turn_id": "t1", "answer_text": "x", "reveal_count": -1})
    assert resp.status_code == 422


def test_fresh_start_resets(client, make_session):
    session = make_session(plan_tier="free")
    turn_id = client.post(f"/api/sessions/{session.id}/start").json()["data"]["turn_id"]
    _answer(client, session.id, turn_id)
    fresh = client.post(f"/api/sessions/{session.id}/fresh").json()["data"]
    assert fresh["status"] == "ready"
    state = client.get(f"/api/sessions/{session.id}/state").json()["data"]
    assert state["turns"] == []


def test_feedback_endpoint_completes_session(client, make_session):
    session = make_session(plan_tier="free")
    turn_id = client.post(f"/api/sessions/{session.id}/start").json()["data"]["turn_id"]

    early = client.post(f"/api/sessions/{session.id}/feedback")
    assert early.status_code == 409
    assert client.get(f"/api/sessions/{session.id}/feedback").status_code == 404

    for _ in range(3):
        data = _answer(client, session.id, turn_id).json()["data"]
        turn_id = data["turn_id"]
    assert data["done"] is True

    resp = client.post(f"/api/sessions/{session.id}/feedback")
    assert resp.status_code == 200
    report = resp.json()["data"]
    assert report["overall"]["grade"] == "B"
    assert set(report["dimensions"]) == {"technical_competency", "communication", "problem_solving", "cultural_fit"}

    fetched = client.get(f"/api/sessions/{session.id}/feedback").json()["data"]
    assert fetched == report
    state = client.get(f"/api/sessions/{session.id}/state").json()["data"]
    assert state["session"]["status"] == "complete"


def test_feedback_generation_failure_is_502(client, fake_generator, make_session):
    session = make_session(plan_tier="free", question_cap=1)
    turn_id = client.post(f"/api/sessions/{session.id}/start").json()["data"]["turn_id"]
    assert _answer(client, session.id, turn_id).json()["data"]["done"] is True
    fake_generator.fail_json = True
    resp = client.post(f"/api/sessions/{session.id}/feedback")
    assert resp.status_code == 502
    assert resp.json()["error"]["code"] == "generation_failed"
