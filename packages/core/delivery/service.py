from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Sequence, Set, Tuple

from ..clock import utc_now
from ..errors import DeliveryError, TransientProviderError, ValidationError
from ..storage.base import ArticleState, SubscriberState
from .email_client import EmailClient
from .renderer import NewsletterRenderer


logger = logging.getLogger("feedletter.delivery")


@dataclass
class DeliveryResult:
    succeeded: Set[str] = field(default_factory=set)
    failed: Set[Tuple[str, str]] = field(default_factory=set)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "succeeded": sorted(self.succeeded),
            "failed": [
                {"email": email, "reason": reason} for email, reason in sorted(self.failed)
            ],
        }


class DeliveryService:
    """Renders the newsletter once and sends it to each active subscriber."""

    def __init__(
        self,
        email_client: EmailClient,
        from_email: Optional[str],
        renderer: Optional[NewsletterRenderer] = None,
        unsubscribe_url: str = "#",
        max_retries: int = 3,
        retry_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._email_client = email_client
        self._from_email = from_email
        self._renderer = renderer or NewsletterRenderer()
        self._unsubscribe_url = unsubscribe_url
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._sleep = sleep

    @property
    def renderer(self) -> NewsletterRenderer:
        return self._renderer

    def send_with_retry(
        self, to_email: str, subject: str, html_body: str, text_body: str
    ) -> str:
        retries = 0
        while True:
            try:
                return self._email_client.send(
                    from_email=self._from_email,
                    to_email=to_email,
                    subject=subject,
                    html_body=html_body,
                    text_body=text_body,
                )
            except TransientProviderError as exc:
                if retries >= self._max_retries:
                    raise
                delay = self._retry_delay * (2 ** retries)
                retries += 1
                logger.warning(
                    "email_send_retry to=%s kind=%s attempt=%s/%s delay=%s",
                    to_email,
                    exc.kind,
                    retries,
                    self._max_retries,
                    delay,
                )
                self._sleep(delay)

    def send_newsletter(
        self,
        subscribers: Sequence[SubscriberState],
        content: str,
        articles: Sequence[ArticleState],
    ) -> DeliveryResult:
        if not self._from_email:
            raise ValidationError("EMAIL_FROM environment variable not set", error="email_from")

        # Raises TemplateError before any recipient is contacted.
        self._renderer.self_check()

        date = utc_now().strftime("%Y-%m-%d")
        subject = f"Daily Newsletter - {date}"
        html_body = self._renderer.render(
            content=content,
            articles=articles,
            date=date,
            unsubscribe_link=self._unsubscribe_url,
        )
        text_body = self._renderer.render_text(content, articles)

        result = DeliveryResult()
        recipients = [subscriber for subscriber in subscribers if subscriber.active]
        logger.info("newsletter_send_started recipients=%s", len(recipients))
        for subscriber in recipients:
            try:
                self.send_with_retry(subscriber.email, subject, html_body, text_body)
            except DeliveryError as exc:
                logger.error(
                    "newsletter_send_failed to=%s kind=%s error=%s",
                    subscriber.email,
                    exc.kind,
                    exc.message,
                )
                result.failed.add((subscriber.email, exc.message))
                continue
            except Exception as exc:
                logger.exception("newsletter_send_failed to=%s kind=unexpected", subscriber.email)
                result.failed.add((subscriber.email, str(exc) or type(exc).__name__))
                continue
            logger.info("newsletter_sent to=%s", subscriber.email)
            result.succeeded.add(subscriber.email)
        logger.info(
            "newsletter_send_finished succeeded=%s failed=%s",
            len(result.succeeded),
            len(result.failed),
        )
        return result

    def send_test_email(self, to_email: Optional[str] = None) -> Dict[str, Any]:
        """Send a plain message to to_email (or EMAIL_FROM) to check provider setup."""
        if not self._from_email:
            raise ValidationError("EMAIL_FROM environment variable not set", error="email_from")
        recipient = to_email or self._from_email
        try:
            message_id = self.send_with_retry(
                recipient,
                "Newsletter Test Email",
                "<p>If you receive this, email delivery is configured correctly.</p>",
                "If you receive this, email delivery is configured correctly.",
            )
        except DeliveryError as exc:
            return {
                "success": False,
                "message": "Email configuration test failed",
                "error": exc.message,
                "kind": exc.kind,
            }
        return {
            "success": True,
            "message": "Email configuration is valid",
            "to": recipient,
            "message_id": message_id,
        }
