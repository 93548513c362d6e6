from __future__ import annotations

import smtplib
import socket
from email.message import EmailMessage
from typing import Optional, Protocol

import httpx

from ..config import Settings
from ..errors import DeliveryError, delivery_error


class EmailClient(Protocol):
    def send(
        self,
        from_email: str,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> str:
        """Send one message. Returns the provider message id or raises DeliveryError."""


_HTTP_KINDS = {
    408: "timeout",
    429: "throttling",
    502: "service_unavailable",
    503: "service_unavailable",
    504: "timeout",
}


class HttpEmailClient:
    """Transactional email over a JSON HTTP API (POST {api_url} with a bearer key)."""

    def __init__(self, api_url: str, api_key: Optional[str], timeout: int = 15) -> None:
        self._api_url = api_url
        self._api_key = api_key
        self._timeout = timeout

    def send(
        self,
        from_email: str,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> str:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        payload = {
            "from": from_email,
            "to": [to_email],
            "subject": subject,
            "html": html_body,
            "text": text_body,
        }
        try:
            response = httpx.post(
                self._api_url, json=payload, headers=headers, timeout=self._timeout
            )
        except httpx.TimeoutException as exc:
            raise delivery_error(f"Email API timed out: {exc}", "timeout") from exc
        except httpx.TransportError as exc:
            raise delivery_error(
                f"Email API unreachable: {exc}", "service_unavailable"
            ) from exc

        if response.status_code >= 400:
            kind = _HTTP_KINDS.get(response.status_code)
            if kind is None:
                kind = "rejected" if response.status_code < 500 else "provider_error"
            raise delivery_error(
                f"Email API HTTP {response.status_code}: {response.text[:200]}", kind
            )
        try:
            body = response.json()
        except ValueError:
            body = {}
        return str(body.get("id") or body.get("MessageId") or "")


_SMTP_KINDS = {
    421: "service_unavailable",
    450: "throttling",
    451: "service_unavailable",
    452: "throttling",
}


class SmtpEmailClient:
    def __init__(
        self,
        host: str,
        port: int = 587,
        user: Optional[str] = None,
        password: str = "",
        use_tls: bool = True,
        timeout: int = 15,
    ) -> None:
        self._host = host
        self._port = port
        self._user = user
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout

    def send(
        self,
        from_email: str,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> str:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = from_email
        message["To"] = to_email
        message.set_content(text_body)
        message.add_alternative(html_body, subtype="html")

        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as server:
                if self._use_tls:
                    server.starttls()
                if self._user:
                    server.login(self._user, self._password)
                server.send_message(message)
        except smtplib.SMTPRecipientsRefused as exc:
            raise delivery_error(f"Recipient refused: {to_email}", "rejected") from exc
        except smtplib.SMTPResponseException as exc:
            kind = _SMTP_KINDS.get(exc.smtp_code, "rejected")
            raise delivery_error(f"SMTP {exc.smtp_code}: {exc.smtp_error!r}", kind) from exc
        except smtplib.SMTPServerDisconnected as exc:
            raise delivery_error(f"SMTP disconnected: {exc}", "service_unavailable") from exc
        except socket.timeout as exc:
            raise delivery_error("SMTP timed out", "timeout") from exc
        except (smtplib.SMTPException, OSError) as exc:
            raise delivery_error(f"SMTP failure: {exc}", "service_unavailable") from exc
        return message.get("Message-ID", "")


class UnconfiguredEmailClient:
    def __init__(self, reason: str) -> None:
        self._reason = reason

    def send(
        self,
        from_email: str,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str,
    ) -> str:
        raise DeliveryError(self._reason, kind="not_configured")


def build_email_client(settings: Settings) -> EmailClient:
    if settings.email_provider == "smtp":
        if not settings.smtp_host:
            return UnconfiguredEmailClient("SMTP is not configured. Set SMTP_HOST.")
        return SmtpEmailClient(
            host=settings.smtp_host,
            port=settings.smtp_port,
            user=settings.smtp_user,
            password=settings.smtp_password or "",
            use_tls=settings.smtp_use_tls,
            timeout=settings.email_timeout_seconds,
        )
    if not settings.email_api_url:
        return UnconfiguredEmailClient("Email API is not configured. Set EMAIL_API_URL.")
    return HttpEmailClient(
        api_url=settings.email_api_url,
        api_key=settings.email_api_key,
        timeout=settings.email_timeout_seconds,
    )
