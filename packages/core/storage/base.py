from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol, runtime_checkable


UNKNOWN_SOURCE = "Unknown source"


@dataclass(frozen=True)
class FeedState:
    id: str
    name: str
    url: str
    last_fetched_at: Optional[str]
    created_at: str
    updated_at: str


@dataclass(frozen=True)
class ArticleState:
    id: str
    title: str
    content: Optional[str]
    url: str
    feed_id: str
    publish_date: str
    processed: bool
    created_at: str
    updated_at: str
    # Only populated by reads that join the owning feed.
    feed_name: Optional[str] = None

    @property
    def source(self) -> str:
        return self.feed_name or UNKNOWN_SOURCE


@dataclass(frozen=True)
class SubscriberState:
    id: str
    email: str
    active: bool
    created_at: str
    updated_at: str


@runtime_checkable
class FeedStore(Protocol):
    def create_feed(self, name: str, url: str) -> FeedState:
        """Persist a new feed. Raises ConflictError if the url exists."""

    def get_feed(self, feed_id: str) -> Optional[FeedState]:
        """Return a feed by id."""

    def list_feeds(self) -> List[FeedState]:
        """List feeds in creation order."""

    def update_feed(self, feed: FeedState) -> None:
        """Update name/url of an existing feed. Raises ConflictError on url clash."""

    def delete_feed(self, feed_id: str) -> bool:
        """Delete a feed and its articles. Returns True if deleted."""

    def touch_feed_fetched(self, feed_id: str, fetched_at: str) -> None:
        """Record the last successful fetch time."""


@runtime_checkable
class ArticleStore(Protocol):
    def upsert_article(
        self,
        feed_id: str,
        title: str,
        content: Optional[str],
        url: str,
        publish_date: str,
    ) -> ArticleState:
        """Insert or update an article keyed on url. Never touches processed."""

    def get_article_by_url(self, url: str) -> Optional[ArticleState]:
        """Return an article by its canonical url."""

    def list_articles(
        self, feed_id: Optional[str] = None, limit: Optional[int] = None
    ) -> List[ArticleState]:
        """List articles newest first, joined with their feed name."""

    def list_unprocessed_articles(self, since_iso: str) -> List[ArticleState]:
        """Unprocessed articles published at or after since_iso, newest first."""

    def mark_articles_processed(self, article_ids: Iterable[str]) -> int:
        """Set processed=true. Returns number of rows touched."""

    def count_articles(self) -> int:
        """Return total number of stored articles."""


@runtime_checkable
class SubscriberStore(Protocol):
    def create_subscriber(self, email: str, active: bool = True) -> SubscriberState:
        """Persist a new subscriber. Raises ConflictError if the email exists."""

    def get_subscriber(self, subscriber_id: str) -> Optional[SubscriberState]:
        """Return a subscriber by id."""

    def get_subscriber_by_email(self, email: str) -> Optional[SubscriberState]:
        """Return a subscriber by normalized email."""

    def list_subscribers(self, active_only: bool = False) -> List[SubscriberState]:
        """List subscribers in creation order."""

    def update_subscriber(self, subscriber: SubscriberState) -> None:
        """Update an existing subscriber. Raises ConflictError on email clash."""

    def delete_subscriber(self, subscriber_id: str) -> bool:
        """Hard delete. Returns True if deleted."""


@runtime_checkable
class NewsletterStore(FeedStore, ArticleStore, SubscriberStore, Protocol):
    pass
