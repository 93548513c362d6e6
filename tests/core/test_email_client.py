import smtplib

import httpx
import pytest

from packages.core.config import load_settings
from packages.core.delivery import email_client as email_client_module
from packages.core.delivery.email_client import (
    HttpEmailClient,
    SmtpEmailClient,
    UnconfiguredEmailClient,
    build_email_client,
)
from packages.core.errors import DeliveryError, TransientProviderError


def _fake_post(status_code, body=None, error=None):
    calls = []

    def post(url, json=None, headers=None, timeout=None):
        calls.append({"url": url, "json": json, "headers": headers})
        if error is not None:
            raise error
        return httpx.Response(
            status_code, json=body or {}, request=httpx.Request("POST", url)
        )

    return post, calls


def _send(client):
    return client.send("news@example.com", "a@x.com", "Subject", "<p>hi</p>", "hi")


def test_http_client_posts_message(monkeypatch):
    post, calls = _fake_post(200, {"id": "msg-1"})
    monkeypatch.setattr(email_client_module.httpx, "post", post)
    client = HttpEmailClient("https://mail.example.com/emails", api_key="secret")

    assert _send(client) == "msg-1"
    assert calls[0]["json"]["to"] == ["a@x.com"]
    assert calls[0]["headers"]["Authorization"] == "Bearer secret"


@pytest.mark.parametrize(
    "status_code,kind",
    [(429, "throttling"), (503, "service_unavailable"), (504, "timeout")],
)
def test_http_client_transient_statuses(monkeypatch, status_code, kind):
    post, _ = _fake_post(status_code)
    monkeypatch.setattr(email_client_module.httpx, "post", post)

    with pytest.raises(TransientProviderError) as excinfo:
        _send(HttpEmailClient("https://mail.example.com/emails", api_key=None))
    assert excinfo.value.kind == kind


def test_http_client_rejection_is_permanent(monkeypatch):
    post, _ = _fake_post(422, {"message": "invalid recipient"})
    monkeypatch.setattr(email_client_module.httpx, "post", post)

    with pytest.raises(DeliveryError) as excinfo:
        _send(HttpEmailClient("https://mail.example.com/emails", api_key=None))
    assert not isinstance(excinfo.value, TransientProviderError)
    assert excinfo.value.kind == "rejected"


def test_http_client_timeout_is_transient(monkeypatch):
    post, _ = _fake_post(200, error=httpx.ReadTimeout("timed out"))
    monkeypatch.setattr(email_client_module.httpx, "post", post)

    with pytest.raises(TransientProviderError) as excinfo:
        _send(HttpEmailClient("https://mail.example.com/emails", api_key=None))
    assert excinfo.value.kind == "timeout"


class FakeSMTP:
    error = None
    sent = []

    def __init__(self, host, port, timeout=None):
        self.host = host

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        pass

    def send_message(self, message):
        if FakeSMTP.error is not None:
            raise FakeSMTP.error
        FakeSMTP.sent.append(message)


def test_smtp_client_maps_busy_reply_to_transient(monkeypatch):
    monkeypatch.setattr(email_client_module.smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(FakeSMTP, "error", smtplib.SMTPDataError(451, b"try later"))

    with pytest.raises(TransientProviderError):
        _send(SmtpEmailClient("smtp.example.com"))


def test_smtp_client_sends_multipart(monkeypatch):
    monkeypatch.setattr(email_client_module.smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(FakeSMTP, "error", None)
    monkeypatch.setattr(FakeSMTP, "sent", [])

    _send(SmtpEmailClient("smtp.example.com", user="bot", password="pw"))

    message = FakeSMTP.sent[0]
    assert message["To"] == "a@x.com"
    assert message.is_multipart()


def test_build_email_client_without_configuration(monkeypatch):
    monkeypatch.delenv("EMAIL_API_URL", raising=False)
    monkeypatch.setenv("EMAIL_PROVIDER", "http")
    client = build_email_client(load_settings())

    assert isinstance(client, UnconfiguredEmailClient)
    with pytest.raises(DeliveryError) as excinfo:
        _send(client)
    assert excinfo.value.kind == "not_configured"
