import dataclasses

from fastapi.testclient import TestClient

from apps.api.main import create_app
from apps.api.services import build_services
from packages.core.config import load_settings


class FakeEmailClient:
    def __init__(self):
        self.sent = []

    def send(self, from_email, to_email, subject, html_body, text_body):
        self.sent.append((from_email, to_email, subject))
        return "msg-1"


def _client(tmp_path, debug=True, email_client=None):
    settings = dataclasses.replace(
        load_settings(),
        db_path=str(tmp_path / "feedletter.db"),
        email_from="news@example.com",
        scheduler_enabled=False,
        debug=debug,
    )
    services = build_services(settings, email_client=email_client or FakeEmailClient())
    return TestClient(create_app(services))


def test_diagnostics_hidden_unless_debug(tmp_path):
    client = _client(tmp_path, debug=False)

    response = client.get("/api/diagnostics/status")

    assert response.status_code == 404


def test_status_reports_counts(tmp_path):
    client = _client(tmp_path)
    client.post("/feeds", json={"name": "Tech", "url": "https://example.com/rss"})
    client.post("/subscribers", json={"email": "a@x.com"})

    payload = client.get("/api/diagnostics/status").json()

    assert payload["database"]["feeds"] == 1
    assert payload["database"]["active_subscribers"] == 1
    assert payload["jobs"]["fetch_feeds"]["running"] is False
    assert payload["email"]["from_configured"] is True


def test_feed_status_lists_feeds(tmp_path):
    client = _client(tmp_path)
    client.post("/feeds", json={"name": "Tech", "url": "https://example.com/rss"})

    payload = client.get("/api/diagnostics/feed-status").json()

    assert payload["feed_count"] == 1
    assert payload["feeds"][0]["last_fetched_at"] is None
    assert payload["article_count"] == 0


def test_template_check(tmp_path):
    client = _client(tmp_path)

    payload = client.get("/api/diagnostics/template").json()

    assert payload["success"] is True
    assert payload["contains_article"] is True


def test_test_email_defaults_to_sender(tmp_path):
    email_client = FakeEmailClient()
    client = _client(tmp_path, email_client=email_client)

    response = client.post("/api/diagnostics/test-email", json={})

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert email_client.sent[0][1] == "news@example.com"
