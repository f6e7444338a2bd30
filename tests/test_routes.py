import pytest
from fastapi.testclient import TestClient

from conftest import T0, FakeSubwayExplorer, subway, walk
from transit_explorer.config import Settings
from transit_explorer.main import app, app_state


@pytest.fixture
def client(monkeypatch):
    fake = FakeSubwayExplorer(ride_seconds={"A": 600})
    monkeypatch.setitem(app_state, "settings", Settings())
    monkeypatch.setitem(app_state, "explorer", fake)
    return TestClient(app), fake


def test_health(client):
    http, _ = client
    assert http.get("/api/health").json()["status"] == "ok"


def test_explore_returns_timeline(client):
    http, fake = client
    resp = http.post("/api/explore", json={
        "route": {"legs": [walk(300), subway("A", 600), walk(180)]},
        "seed_timestamps": ["2018-02-20T06:00"],
    })

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    legs = body["timeline"]["legs"]
    assert [leg["travel_mode"] for leg in legs] == ["WALKING", "TRANSIT", "WALKING"]
    assert legs[2]["travel_segment_user_arrival_times"] == [T0 + 660]
    assert legs[1]["travel_status"] == ["OK"]
    assert body["timeline"]["heading"] == "N"
    assert len(fake.polls()) == 1


def test_explore_reports_rejection(client):
    http, _ = client
    resp = http.post("/api/explore", json={
        "route": {"legs": [walk(300), subway("M15", 600, vehicle="BUS")]},
    })

    assert resp.status_code == 200
    assert resp.json()["status"] == "rejected"


def test_explore_reports_chain_break_with_leg_index(client):
    http, fake = client
    fake.fail_poll.add("A")
    resp = http.post("/api/explore", json={
        "route": {"legs": [walk(300), subway("A", 600)]},
        "seed_timestamps": [T0],
    })

    assert resp.status_code == 502
    detail = resp.json()["detail"]
    assert detail["error"] == "ChainBrokenError"
    assert detail["leg_index"] == 1


def test_explore_malformed_route_is_unprocessable(client):
    http, _ = client
    broken = subway("A", 600)
    del broken["transit_details"]
    resp = http.post("/api/explore", json={"route": {"legs": [broken]}})

    assert resp.status_code == 422
    assert resp.json()["detail"]["leg_index"] == 0


def test_explore_rejects_bad_seed_format(client):
    http, _ = client
    resp = http.post("/api/explore", json={
        "route": {"legs": [walk(60)]},
        "seed_timestamps": ["yesterday"],
    })
    assert resp.status_code == 422
