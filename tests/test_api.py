from copy import deepcopy

import pytest
from fastapi.testclient import TestClient

import api.app as api_app
from api.app import app
from catalog.constants import AI_CREATOR
from conftest import DORM_BUNDLE, VALID_PLACEMENTS
from suggest.sources import StaticSource

HEADERS = {"X-API-Key": "testkey"}


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(api_app, "_boards", {})
    monkeypatch.setattr(api_app, "_request_counts", {})
    monkeypatch.setattr(api_app, "source_from_env", lambda: None)
    return TestClient(app)


def create_board(client, board_id="DORM_EC_301"):
    payload = deepcopy(DORM_BUNDLE)
    payload["board_id"] = board_id
    resp = client.post("/boards", json=payload, headers=HEADERS)
    assert resp.status_code == 200
    return resp.json()


def test_requires_api_key(client):
    resp = client.post("/boards", json=DORM_BUNDLE)
    assert resp.status_code == 401
    data = resp.json()
    assert data["code"] == "unauthorized"
    assert "processing_time" in data["metadata"]


def test_create_and_fetch_board(client):
    summary = create_board(client)
    assert summary["room_id"] == "EC_Dbl_12x15"
    assert summary["share_link"].endswith("/board/DORM_EC_301")
    resp = client.get("/boards/DORM_EC_301", headers=HEADERS)
    assert resp.json() == summary
    dup = client.post("/boards", json={**DORM_BUNDLE, "board_id": "DORM_EC_301"}, headers=HEADERS)
    assert dup.status_code == 409


def test_invalid_bundle_is_validation_error(client):
    payload = deepcopy(DORM_BUNDLE)
    payload["room"]["noGoZones"][0]["xMax"] = -1
    resp = client.post("/boards", json=payload, headers=HEADERS)
    assert resp.status_code == 422
    assert resp.json()["code"] == "validation_error"


def test_unknown_board_is_404(client):
    resp = client.get("/boards/nope/layouts", headers=HEADERS)
    assert resp.status_code == 404
    assert resp.json()["code"] == "not_found"


def test_submit_valid_and_invalid_layouts(client):
    create_board(client)
    ok = client.post(
        "/boards/DORM_EC_301/layouts",
        json={"creator": "Selena", "placements": VALID_PLACEMENTS},
        headers=HEADERS,
    )
    assert ok.status_code == 200
    assert ok.json()["layoutId"] == "L1"

    bad_placements = deepcopy(VALID_PLACEMENTS)
    bad_placements[4] = {"furnitureId": "desk_mit", "x": 1.5, "y": 1.5, "rotation": 0}
    bad = client.post(
        "/boards/DORM_EC_301/layouts",
        json={"creator": "Alex", "placements": bad_placements},
        headers=HEADERS,
    )
    assert bad.status_code == 422
    body = bad.json()
    assert body["code"] == "forbidden_zone"
    assert body["details"] == {"placementIndex": 4, "zoneId": "door_swing"}

    listed = client.get("/boards/DORM_EC_301/layouts", headers=HEADERS).json()
    assert [l["layoutId"] for l in listed] == ["L1"]


def test_users_and_comments(client):
    create_board(client)
    resp = client.post("/boards/DORM_EC_301/users", json={"name": "Selena"}, headers=HEADERS)
    assert resp.json()["users"] == ["Selena"]
    resp = client.post(
        "/boards/DORM_EC_301/comments",
        json={"user": "Selena", "text": "Desk by the window"},
        headers=HEADERS,
    )
    assert resp.status_code == 200
    assert resp.json()["user"] == {"name": "Selena"}
    assert client.get("/boards/DORM_EC_301", headers=HEADERS).json()["comment_count"] == 1


def test_suggest_without_layouts_is_conflict(client):
    create_board(client)
    resp = client.post("/boards/DORM_EC_301/suggest", headers=HEADERS)
    assert resp.status_code == 409
    assert resp.json()["code"] == "no_context"


def test_suggest_accepts_valid_ai_layout(client, monkeypatch, ai_response):
    source = StaticSource(ai_response(VALID_PLACEMENTS, rationale="Split the window wall."))
    monkeypatch.setattr(api_app, "source_from_env", lambda: source)
    create_board(client)
    client.post(
        "/boards/DORM_EC_301/layouts",
        json={"creator": "Selena", "placements": VALID_PLACEMENTS},
        headers=HEADERS,
    )
    resp = client.post("/boards/DORM_EC_301/suggest", headers=HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["rationale"] == "Split the window wall."
    assert data["layout"]["layoutId"] == "L2"
    assert data["layout"]["creator"] == AI_CREATOR
    assert len(source.calls) == 1


def test_suggest_reports_malformed_response(client, monkeypatch):
    monkeypatch.setattr(api_app, "source_from_env", lambda: StaticSource("no layout today"))
    create_board(client)
    client.post(
        "/boards/DORM_EC_301/layouts",
        json={"creator": "Selena", "placements": VALID_PLACEMENTS},
        headers=HEADERS,
    )
    resp = client.post("/boards/DORM_EC_301/suggest", headers=HEADERS)
    assert resp.status_code == 422
    body = resp.json()
    assert body["code"] == "malformed_suggestion"
    assert body["details"]["raw_response"] == "no layout today"
    listed = client.get("/boards/DORM_EC_301/layouts", headers=HEADERS).json()
    assert len(listed) == 1


def test_suggest_without_source_is_bad_gateway(client):
    create_board(client)
    client.post(
        "/boards/DORM_EC_301/layouts",
        json={"creator": "Selena", "placements": VALID_PLACEMENTS},
        headers=HEADERS,
    )
    resp = client.post("/boards/DORM_EC_301/suggest", headers=HEADERS)
    assert resp.status_code == 502
    assert resp.json()["code"] == "source_unavailable"


def test_stateless_validate_reports_all_violations(client):
    placements = deepcopy(VALID_PLACEMENTS)[1:]
    placements.append({"furnitureId": "lamp", "x": 5, "y": 12})
    resp = client.post("/validate", json={**DORM_BUNDLE, "placements": placements}, headers=HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["valid"] is False
    assert [v["code"] for v in data["violations"]] == ["unknown_item", "quantity_mismatch"]


def test_rate_limit(client, monkeypatch):
    monkeypatch.setattr(api_app, "RATE_LIMIT", 2)
    for _ in range(2):
        assert client.get("/boards/x", headers=HEADERS).status_code == 404
    resp = client.get("/boards/x", headers=HEADERS)
    assert resp.status_code == 429
    assert resp.json()["code"] == "rate_limit_exceeded"


def test_metrics_exposes_layout_outcomes(client):
    create_board(client)
    client.post(
        "/boards/DORM_EC_301/layouts",
        json={"creator": "Selena", "placements": VALID_PLACEMENTS},
        headers=HEADERS,
    )
    text = client.get("/metrics").text
    assert 'layout_outcomes_total{origin="human",result="accepted"}' in text
    assert client.get("/health").json() == {"ok": True}
