"""
HTTP surface tests (TestClient with the engine dependency overridden).

The lifespan is not entered, so no background timer runs.
"""
import pytest
from fastapi.testclient import TestClient

from api.deps import get_engine
from main import app


@pytest.fixture
def client(engine):
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seeded(client):
    client.post("/api/teams", json={"name": "A", "leader": "Alice"})
    client.post("/api/teams", json={"name": "B", "leader": "Bob"})
    client.post("/api/candidates", json={"name": "Amy", "admission_number": "A001", "class_label": "1"})
    client.post("/api/candidates", json={"name": "Ben", "admission_number": "A002", "class_label": "1"})
    return client


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_full_auction_flow(seeded):
    client = seeded

    assert client.post("/api/auction/start").status_code == 200
    state = client.get("/api/auction/state").json()
    assert state["phase"] == "awaiting_turn_order"

    response = client.post("/api/auction/turn-order", json={"order_text": "A, B"})
    assert response.status_code == 200

    response = client.post("/api/auction/requests", json={"team": "B", "admission_number": "A001"})
    assert response.status_code == 409

    response = client.post("/api/auction/requests", json={"team": "A", "admission_number": "A001"})
    assert response.status_code == 200
    assert client.get("/api/auction/state").json()["phase"] == "pending_request"

    client.post("/api/auction/requests/accept")
    state = client.get("/api/auction/state").json()
    assert state["current_team"] == "B"
    assert state["remaining_seconds"] == 30

    client.post("/api/auction/requests", json={"team": "B", "admission_number": "A002"})
    client.post("/api/auction/requests/accept")

    state = client.get("/api/auction/state").json()
    assert state["phase"] == "completed"
    assert state["state"]["auction"]["status"] == "completed"

    history = client.get("/api/teams/A/history").json()
    assert history["history"][0]["candidate"] == "Amy"

    export = client.get("/api/results/export")
    assert export.status_code == 200
    assert export.headers["content-type"].startswith("text/csv")
    assert export.text.splitlines() == ["Candidate,Class,Team", "Amy,1,A", "Ben,1,B"]


def test_short_polling_omits_unchanged_state(seeded):
    first = seeded.get("/api/auction/state").json()
    assert first["changed"] is True
    assert first["state"] is not None

    again = seeded.get("/api/auction/state", params={"known_version": first["state_version"]}).json()
    assert again["changed"] is False
    assert again["state"] is None


def test_invalid_turn_order_is_bad_request(seeded):
    seeded.post("/api/auction/start")

    response = seeded.post("/api/auction/turn-order", json={"order": ["A", "A"]})

    assert response.status_code == 400


def test_start_validation_error(client):
    response = client.post("/api/auction/start")

    assert response.status_code == 400


def test_roster_locked_during_auction(seeded):
    seeded.post("/api/auction/start")

    assert seeded.delete("/api/teams/A").status_code == 409
    assert seeded.delete("/api/candidates/A001").status_code == 409


def test_unknown_candidate_and_team(client):
    assert client.delete("/api/candidates/Z999").status_code == 404
    assert client.delete("/api/teams/Nobody").status_code == 404
    assert client.get("/api/teams/Nobody/history").status_code == 404


def test_csv_import_upload(client):
    content = b"Amy,A001,1\nBen,A002,11\n"

    response = client.post(
        "/api/candidates/import",
        files={"file": ("students.csv", content, "text/csv")}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["processed"] == 2
    assert body["added"] == 1
    assert len(body["errors"]) == 1
    assert [c["admission_number"] for c in client.get("/api/candidates").json()["candidates"]] == ["A001"]


def test_export_without_results(client):
    assert client.get("/api/results/export").status_code == 404


def test_skip_turn_and_timer(seeded):
    seeded.post("/api/auction/start")
    seeded.post("/api/auction/turn-order", json={"order": ["B", "A"]})

    timer = seeded.get("/api/auction/timer").json()
    assert timer == {"active": True, "remaining_seconds": 30, "duration": 30}

    assert seeded.post("/api/auction/turn/skip").status_code == 200
    assert seeded.get("/api/auction/state").json()["current_team"] == "A"


def test_reset_system(seeded):
    version = seeded.get("/api/auction/state").json()["state_version"]

    response = seeded.post("/api/system/reset")

    assert response.json()["state_version"] == version + 1
    assert seeded.get("/api/teams").json() == {"teams": []}


def test_action_reports_version_of_its_own_write(seeded):
    seeded.post("/api/auction/start")
    order = seeded.post("/api/auction/turn-order", json={"order": ["A", "B"]}).json()
    request = seeded.post("/api/auction/requests", json={"team": "A", "admission_number": "A001"}).json()

    assert request["state_version"] == order["state_version"] + 1
    assert seeded.get("/api/auction/state").json()["state_version"] == request["state_version"]


def test_team_with_picks_cannot_be_deleted(seeded):
    seeded.post("/api/auction/start")
    seeded.post("/api/auction/turn-order", json={"order": ["A", "B"]})
    seeded.post("/api/auction/requests", json={"team": "A", "admission_number": "A001"})
    seeded.post("/api/auction/requests/accept")
    seeded.post("/api/auction/stop")

    assert seeded.delete("/api/teams/A").status_code == 409

    rows = seeded.get("/api/results").json()
    assert [row["candidate"] for row in rows["rows"]] == ["Amy", "Ben"]
