from .base import (
    ArticleState,
    ArticleStore,
    FeedState,
    FeedStore,
    NewsletterStore,
    SubscriberState,
    SubscriberStore,
)
from .sqlite import SQLiteNewsletterStore

__all__ = [
    "ArticleState",
    "ArticleStore",
    "FeedState",
    "FeedStore",
    "NewsletterStore",
    "SubscriberState",
    "SubscriberStore",
    "SQLiteNewsletterStore",
]
