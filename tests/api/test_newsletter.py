import dataclasses
import datetime as dt

from fastapi.testclient import TestClient

from apps.api.main import create_app
from apps.api.services import build_services
from packages.core.clock import to_iso, utc_now
from packages.core.config import load_settings
from packages.core.errors import DeliveryError


class FakeLLM:
    def __init__(self, reply="<h1>Daily</h1><p>All the news.</p>"):
        self.reply = reply
        self.calls = 0

    def complete(self, messages, temperature=0.7, max_tokens=1000):
        self.calls += 1
        return self.reply


class FakeEmailClient:
    def __init__(self, reject=()):
        self.reject = set(reject)
        self.sent = []

    def send(self, from_email, to_email, subject, html_body, text_body):
        if to_email in self.reject:
            raise DeliveryError("Address blocked", kind="rejected")
        self.sent.append(to_email)
        return "ok"


def _setup(tmp_path, llm=None, email_client=None):
    settings = dataclasses.replace(
        load_settings(),
        db_path=str(tmp_path / "feedletter.db"),
        email_from="news@example.com",
        scheduler_enabled=False,
    )
    services = build_services(
        settings,
        llm=llm or FakeLLM(),
        email_client=email_client or FakeEmailClient(),
        sleep=lambda _: None,
    )
    return services, TestClient(create_app(services))


def _seed_articles(store, count):
    feed = store.create_feed("Tech", "https://example.com/rss")
    for idx in range(count):
        store.upsert_article(
            feed.id,
            f"Story {idx}",
            "body",
            f"https://example.com/{idx}",
            to_iso(utc_now() - dt.timedelta(hours=1)),
        )


def test_send_with_partial_failure_marks_articles(tmp_path):
    email_client = FakeEmailClient(reject=["b@x.com"])
    services, client = _setup(tmp_path, email_client=email_client)
    _seed_articles(services.store, 2)
    client.post("/subscribers", json={"email": "a@x.com"})
    client.post("/subscribers", json={"email": "b@x.com"})

    response = client.post("/newsletter/send")

    assert response.status_code == 200
    assert response.json() == {
        "status": "sent",
        "article_count": 2,
        "succeeded": ["a@x.com"],
        "failed": [{"email": "b@x.com", "reason": "Address blocked"}],
    }
    assert email_client.sent == ["a@x.com"]
    assert all(article.processed for article in services.store.list_articles())


def test_send_without_subscribers_is_a_no_op(tmp_path):
    llm = FakeLLM()
    services, client = _setup(tmp_path, llm=llm)
    _seed_articles(services.store, 5)

    response = client.post("/newsletter/send")

    assert response.status_code == 200
    assert response.json()["status"] == "no_subscribers"
    assert llm.calls == 0
    assert not any(article.processed for article in services.store.list_articles())


def test_send_generation_failure_keeps_articles(tmp_path):
    services, client = _setup(tmp_path, llm=FakeLLM(reply=""))
    _seed_articles(services.store, 1)
    client.post("/subscribers", json={"email": "a@x.com"})

    response = client.post("/newsletter/send")

    assert response.status_code == 502
    assert response.json()["message"] == "Failed to generate newsletter content"
    assert not services.store.list_articles()[0].processed


def test_preview_generates_without_marking(tmp_path):
    services, client = _setup(tmp_path)

    assert client.post("/newsletter/preview", json={}).status_code == 404

    _seed_articles(services.store, 3)
    response = client.post("/newsletter/preview", json={"limit": 2})

    assert response.status_code == 200
    payload = response.json()
    assert payload["article_count"] == 2
    assert payload["sources"] == ["Tech"]
    assert payload["content"].startswith("<h1>Daily</h1>")
    assert not any(article.processed for article in services.store.list_articles())


def test_health(tmp_path):
    _, client = _setup(tmp_path)

    assert client.get("/health").json() == {"status": "ok"}
