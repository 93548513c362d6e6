from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from ..clock import to_iso, utc_now
from ..delivery.service import DeliveryResult
from ..storage.base import ArticleState, ArticleStore, SubscriberState, SubscriberStore


logger = logging.getLogger("feedletter.workflow")

STATUS_NO_ARTICLES = "no_articles"
STATUS_NO_SUBSCRIBERS = "no_subscribers"
STATUS_SENT = "sent"


class Generator(Protocol):
    def generate(self, articles: Sequence[ArticleState]) -> str:
        """Return newsletter HTML for the batch."""


class Deliverer(Protocol):
    def send_newsletter(
        self,
        subscribers: Sequence[SubscriberState],
        content: str,
        articles: Sequence[ArticleState],
    ) -> DeliveryResult:
        """Send to every active subscriber, collecting per-recipient failures."""


class WorkflowStore(ArticleStore, SubscriberStore, Protocol):
    pass


@dataclass(frozen=True)
class WorkflowResult:
    status: str
    article_count: int
    delivery: Optional[DeliveryResult] = None

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "status": self.status,
            "article_count": self.article_count,
        }
        if self.delivery is not None:
            payload.update(self.delivery.as_dict())
        return payload


class NewsletterWorkflow:
    """Collect -> gate -> generate -> deliver -> mark processed.

    Any exception before delivery returns leaves the batch unprocessed so the
    next run picks it up again.
    """

    def __init__(
        self,
        store: WorkflowStore,
        generator: Generator,
        delivery: Deliverer,
        window_hours: int = 24,
        clock: Callable[[], dt.datetime] = utc_now,
    ) -> None:
        self._store = store
        self._generator = generator
        self._delivery = delivery
        self._window = dt.timedelta(hours=window_hours)
        self._clock = clock

    def collect(self) -> List[ArticleState]:
        since = to_iso(self._clock() - self._window)
        return self._store.list_unprocessed_articles(since)

    def run(self) -> WorkflowResult:
        articles = self.collect()
        logger.info("newsletter_workflow_started articles=%s", len(articles))
        if not articles:
            logger.info("newsletter_workflow_skipped reason=no_articles")
            return WorkflowResult(status=STATUS_NO_ARTICLES, article_count=0)

        subscribers = self._store.list_subscribers(active_only=True)
        if not subscribers:
            logger.info("newsletter_workflow_skipped reason=no_subscribers")
            return WorkflowResult(status=STATUS_NO_SUBSCRIBERS, article_count=len(articles))

        content = self._generator.generate(articles)
        delivery = self._delivery.send_newsletter(subscribers, content, articles)

        marked = self._store.mark_articles_processed(article.id for article in articles)
        logger.info(
            "newsletter_workflow_finished articles=%s marked=%s succeeded=%s failed=%s",
            len(articles),
            marked,
            len(delivery.succeeded),
            len(delivery.failed),
        )
        return WorkflowResult(
            status=STATUS_SENT, article_count=len(articles), delivery=delivery
        )
