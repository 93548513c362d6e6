from __future__ import annotations

import calendar
import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

import feedparser
import httpx

from ..errors import FetchError


logger = logging.getLogger("feedletter.feeds")

USER_AGENT = "feedletter/1.0 (+https://github.com/feedletter)"


@dataclass(frozen=True)
class FeedItem:
    title: str
    link: str
    content: Optional[str]
    publish_date: Optional[dt.datetime]


def fetch_feed_document(url: str, timeout: int = 20) -> bytes:
    try:
        response = httpx.get(
            url,
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise FetchError(
            f"Feed responded with HTTP {exc.response.status_code}", error=url
        ) from exc
    except httpx.HTTPError as exc:
        raise FetchError(f"Feed request failed: {exc}", error=url) from exc
    return response.content


def parse_feed_document(document: bytes, source: str = "") -> List[FeedItem]:
    parsed = feedparser.parse(document)
    # feedparser flags recoverable issues too; only give up when nothing parsed
    if parsed.get("bozo") and not parsed.entries:
        reason = parsed.get("bozo_exception")
        raise FetchError(f"Feed could not be parsed: {reason}", error=source)

    items = []
    for entry in parsed.entries:
        link = (entry.get("link") or "").strip()
        if not link:
            logger.debug("feed_entry_skipped source=%s reason=missing_link", source)
            continue
        items.append(
            FeedItem(
                title=(entry.get("title") or "").strip() or "Untitled",
                link=link,
                content=_entry_content(entry),
                publish_date=_entry_date(entry),
            )
        )
    return items


class FeedParser:
    """Downloads a feed over HTTP and turns its entries into FeedItems."""

    def __init__(self, timeout: int = 20) -> None:
        self._timeout = timeout

    def parse(self, url: str) -> List[FeedItem]:
        document = fetch_feed_document(url, timeout=self._timeout)
        return parse_feed_document(document, source=url)


def _entry_content(entry: Any) -> Optional[str]:
    content = entry.get("content")
    if isinstance(content, list) and content:
        value = content[0].get("value")
        if value:
            return value
    for key in ("summary", "description"):
        value = entry.get(key)
        if value:
            return value
    return None


def _entry_date(entry: Any) -> Optional[dt.datetime]:
    for key in ("published_parsed", "updated_parsed", "created_parsed"):
        value = entry.get(key)
        if value:
            return dt.datetime.fromtimestamp(calendar.timegm(value), tz=dt.timezone.utc)
    return None
