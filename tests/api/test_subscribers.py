import dataclasses

from fastapi.testclient import TestClient

from apps.api.main import create_app
from apps.api.services import build_services
from packages.core.config import load_settings


def _client(tmp_path):
    settings = dataclasses.replace(
        load_settings(), db_path=str(tmp_path / "feedletter.db"), scheduler_enabled=False
    )
    return TestClient(create_app(build_services(settings)))


def test_subscribers_crud(tmp_path):
    client = _client(tmp_path)

    create_resp = client.post("/subscribers", json={"email": "  Reader@Example.com "})
    assert create_resp.status_code == 201
    subscriber = create_resp.json()
    assert subscriber["email"] == "reader@example.com"
    assert subscriber["active"] is True

    get_resp = client.get(f"/subscribers/{subscriber['id']}")
    assert get_resp.status_code == 200

    update_resp = client.put(f"/subscribers/{subscriber['id']}", json={"active": False})
    assert update_resp.status_code == 200
    assert update_resp.json()["active"] is False

    assert client.get("/subscribers", params={"active_only": True}).json() == []
    assert len(client.get("/subscribers").json()) == 1

    delete_resp = client.delete(f"/subscribers/{subscriber['id']}")
    assert delete_resp.status_code == 200
    assert client.delete(f"/subscribers/{subscriber['id']}").status_code == 404


def test_subscribe_validation_and_conflict(tmp_path):
    client = _client(tmp_path)

    missing = client.post("/subscribers", json={})
    assert missing.status_code == 400
    assert missing.json()["message"] == "Email is required"

    invalid = client.post("/subscribers", json={"email": "not-an-email"})
    assert invalid.status_code == 400

    client.post("/subscribers", json={"email": "a@x.com"})
    duplicate = client.post("/subscribers", json={"email": "A@x.com"})
    assert duplicate.status_code == 409
    assert duplicate.json()["message"] == "Email already subscribed"


def test_unsubscribe_is_soft_delete(tmp_path):
    client = _client(tmp_path)
    subscriber = client.post("/subscribers", json={"email": "a@x.com"}).json()

    response = client.post("/subscribers/unsubscribe", json={"email": "A@X.com"})
    assert response.status_code == 200
    assert response.json()["message"] == "Successfully unsubscribed"
    assert client.get(f"/subscribers/{subscriber['id']}").json()["active"] is False

    unknown = client.post("/subscribers/unsubscribe", json={"email": "b@x.com"})
    assert unknown.status_code == 404


def test_malformed_body_is_a_400(tmp_path):
    client = _client(tmp_path)

    response = client.put("/subscribers/some-id", json={"active": "sometimes"})

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid request"
