from __future__ import annotations

from typing import Optional


class FeedletterError(Exception):
    """Base class for errors raised by the core services."""

    def __init__(self, message: str, error: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.error = error


class ValidationError(FeedletterError):
    pass


class NotFoundError(FeedletterError):
    pass


class ConflictError(FeedletterError):
    pass


class FetchError(FeedletterError):
    """A single feed could not be downloaded or parsed."""


class GenerationError(FeedletterError):
    """The summarization call failed or returned nothing usable."""


class TemplateError(FeedletterError):
    """The newsletter template failed its render self-check."""


class DeliveryError(FeedletterError):
    """A send to one recipient failed.

    ``kind`` names the provider failure (``throttling``, ``timeout``,
    ``service_unavailable``, ``rejected``, ...).
    """

    def __init__(self, message: str, kind: str = "provider_error") -> None:
        super().__init__(message, error=kind)
        self.kind = kind


class TransientProviderError(DeliveryError):
    pass


TRANSIENT_KINDS = frozenset({"throttling", "timeout", "service_unavailable"})


def delivery_error(message: str, kind: str) -> DeliveryError:
    if kind in TRANSIENT_KINDS:
        return TransientProviderError(message, kind=kind)
    return DeliveryError(message, kind=kind)
