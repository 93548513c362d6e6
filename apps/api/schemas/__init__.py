from .feeds import (
    ArticleResponse,
    FeedCreateRequest,
    FeedFetchRequest,
    FeedFetchResponse,
    FeedResponse,
    FeedUpdateRequest,
    FetchAllResponse,
)
from .newsletter import NewsletterRunResponse, PreviewRequest, PreviewResponse, EmailCheckRequest
from .subscribers import (
    SubscriberCreateRequest,
    SubscriberResponse,
    SubscriberUpdateRequest,
    UnsubscribeRequest,
)

__all__ = [
    "ArticleResponse",
    "FeedCreateRequest",
    "FeedFetchRequest",
    "FeedFetchResponse",
    "FeedResponse",
    "FeedUpdateRequest",
    "FetchAllResponse",
    "NewsletterRunResponse",
    "PreviewRequest",
    "PreviewResponse",
    "SubscriberCreateRequest",
    "SubscriberResponse",
    "SubscriberUpdateRequest",
    "EmailCheckRequest",
    "UnsubscribeRequest",
]
