from __future__ import annotations

__all__ = [
    "FeedFetcher",
    "FeedItem",
    "FeedParser",
    "FetchSummary",
    "create_feed",
    "delete_feed",
    "get_feed",
    "update_feed",
]

from .parser import FeedItem, FeedParser
from .service import FeedFetcher, FetchSummary, create_feed, delete_feed, get_feed, update_feed
