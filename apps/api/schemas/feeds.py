from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel


class FeedCreateRequest(BaseModel):
    name: Optional[str] = None
    url: Optional[str] = None


class FeedUpdateRequest(BaseModel):
    name: Optional[str] = None
    url: Optional[str] = None


class FeedFetchRequest(BaseModel):
    feed_id: Optional[str] = None


class FeedResponse(BaseModel):
    id: str
    name: str
    url: str
    last_fetched_at: Optional[str]
    created_at: str
    updated_at: str


class ArticleResponse(BaseModel):
    id: str
    title: str
    content: Optional[str]
    url: str
    feed_id: str
    feed_name: Optional[str]
    publish_date: str
    processed: bool


class FeedFetchResponse(BaseModel):
    message: str
    feed_id: str
    articles: int


class FetchAllResponse(BaseModel):
    message: str
    feeds: int
    succeeded: int
    failed: int
    articles_upserted: int
    errors: Dict[str, str]
