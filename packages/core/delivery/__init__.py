from __future__ import annotations

__all__ = [
    "DeliveryResult",
    "DeliveryService",
    "EmailClient",
    "HttpEmailClient",
    "NewsletterRenderer",
    "SmtpEmailClient",
    "build_email_client",
]

from .email_client import EmailClient, HttpEmailClient, SmtpEmailClient, build_email_client
from .renderer import NewsletterRenderer
from .service import DeliveryResult, DeliveryService
