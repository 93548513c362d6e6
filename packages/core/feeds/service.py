from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Protocol
from urllib.parse import urlparse

from ..clock import to_iso, utc_now
from ..errors import FetchError, NotFoundError, ValidationError
from ..storage.base import FeedState, FeedStore, ArticleStore
from .parser import FeedItem, FeedParser


logger = logging.getLogger("feedletter.feeds")


class FeedSource(Protocol):
    def parse(self, url: str) -> List[FeedItem]:
        """Return the feed's current items, or raise FetchError."""


class FetcherStore(FeedStore, ArticleStore, Protocol):
    pass


@dataclass
class FetchSummary:
    feeds: int = 0
    upserted: Dict[str, int] = field(default_factory=dict)
    failed: Dict[str, str] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, object]:
        return {
            "feeds": self.feeds,
            "succeeded": len(self.upserted),
            "failed": len(self.failed),
            "articles_upserted": sum(self.upserted.values()),
            "errors": dict(self.failed),
        }


class FeedFetcher:
    """Pulls every feed and upserts its items into the article store."""

    def __init__(
        self,
        store: FetcherStore,
        source: Optional[FeedSource] = None,
        clock: Callable[[], dt.datetime] = utc_now,
    ) -> None:
        self._store = store
        self._source = source or FeedParser()
        self._clock = clock

    def fetch_all(self) -> FetchSummary:
        feeds = self._store.list_feeds()
        logger.info("feed_fetch_all_started feeds=%s", len(feeds))
        summary = FetchSummary(feeds=len(feeds))
        for feed in feeds:
            try:
                summary.upserted[feed.id] = self.fetch_one(feed)
            except FetchError as exc:
                logger.warning("feed_fetch_failed feed_id=%s error=%s", feed.id, exc.message)
                summary.failed[feed.id] = exc.message
            except Exception as exc:
                logger.exception("feed_fetch_failed feed_id=%s name=%s", feed.id, feed.name)
                summary.failed[feed.id] = str(exc)
        logger.info(
            "feed_fetch_all_finished succeeded=%s failed=%s",
            len(summary.upserted),
            len(summary.failed),
        )
        return summary

    def fetch_one(self, feed: FeedState) -> int:
        logger.info("feed_fetch_started feed_id=%s url=%s", feed.id, feed.url)
        fetched_at = self._clock()
        try:
            items = self._source.parse(feed.url)
        except FetchError:
            raise
        except Exception as exc:
            raise FetchError(f"Failed to fetch feed {feed.name}: {exc}", error=feed.url) from exc

        for item in items:
            self._store.upsert_article(
                feed_id=feed.id,
                title=item.title,
                content=item.content,
                url=item.link,
                publish_date=to_iso(item.publish_date or fetched_at),
            )
        self._store.touch_feed_fetched(feed.id, to_iso(self._clock()))
        logger.info("feed_fetch_finished feed_id=%s items=%s", feed.id, len(items))
        return len(items)


def _clean_name(name: Optional[str]) -> str:
    cleaned = " ".join((name or "").split())
    if not cleaned:
        raise ValidationError("Name and URL are required", error="name")
    return cleaned


def _clean_url(url: Optional[str]) -> str:
    cleaned = (url or "").strip()
    if not cleaned:
        raise ValidationError("Name and URL are required", error="url")
    parsed = urlparse(cleaned)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError("Feed URL must be an http(s) URL", error="url")
    return cleaned


def create_feed(store: FeedStore, name: Optional[str], url: Optional[str]) -> FeedState:
    return store.create_feed(name=_clean_name(name), url=_clean_url(url))


def get_feed(store: FeedStore, feed_id: str) -> FeedState:
    feed = store.get_feed(feed_id)
    if feed is None:
        raise NotFoundError("Feed not found", error=feed_id)
    return feed


def update_feed(
    store: FeedStore,
    feed_id: str,
    name: Optional[str] = None,
    url: Optional[str] = None,
) -> FeedState:
    feed = get_feed(store, feed_id)
    updated = replace(
        feed,
        name=_clean_name(name) if name is not None else feed.name,
        url=_clean_url(url) if url is not None else feed.url,
        updated_at=to_iso(utc_now()),
    )
    store.update_feed(updated)
    return updated


def delete_feed(store: FeedStore, feed_id: str) -> None:
    if not store.delete_feed(feed_id):
        raise NotFoundError("Feed not found", error=feed_id)
