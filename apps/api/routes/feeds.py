from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from apps.api.schemas.feeds import (
    ArticleResponse,
    FeedCreateRequest,
    FeedFetchRequest,
    FeedFetchResponse,
    FeedResponse,
    FeedUpdateRequest,
    FetchAllResponse,
)
from apps.api.services import Services, get_services
from packages.core.errors import ValidationError
from packages.core.feeds.service import create_feed, delete_feed, get_feed, update_feed
from packages.core.storage.base import ArticleState, FeedState


router = APIRouter(prefix="/feeds", tags=["feeds"])


def _to_response(feed: FeedState) -> FeedResponse:
    return FeedResponse(
        id=feed.id,
        name=feed.name,
        url=feed.url,
        last_fetched_at=feed.last_fetched_at,
        created_at=feed.created_at,
        updated_at=feed.updated_at,
    )


def _article_response(article: ArticleState) -> ArticleResponse:
    return ArticleResponse(
        id=article.id,
        title=article.title,
        content=article.content,
        url=article.url,
        feed_id=article.feed_id,
        feed_name=article.feed_name,
        publish_date=article.publish_date,
        processed=article.processed,
    )


@router.get("", response_model=List[FeedResponse])
def list_all(services: Services = Depends(get_services)) -> List[FeedResponse]:
    return [_to_response(feed) for feed in services.store.list_feeds()]


@router.post("", response_model=FeedResponse, status_code=201)
def create(
    payload: FeedCreateRequest, services: Services = Depends(get_services)
) -> FeedResponse:
    feed = create_feed(services.store, name=payload.name, url=payload.url)
    return _to_response(feed)


@router.post("/fetch", response_model=FeedFetchResponse)
def fetch_one(
    payload: FeedFetchRequest, services: Services = Depends(get_services)
) -> FeedFetchResponse:
    if not payload.feed_id:
        raise ValidationError("feed_id is required", error="feed_id")
    feed = get_feed(services.store, payload.feed_id)
    count = services.fetcher.fetch_one(feed)
    return FeedFetchResponse(message="Feed fetched successfully", feed_id=feed.id, articles=count)


@router.post("/fetch-all", response_model=FetchAllResponse)
def fetch_all(services: Services = Depends(get_services)) -> FetchAllResponse:
    summary = services.fetch_job.run()
    return FetchAllResponse(message="All feeds fetched", **summary.as_dict())


@router.get("/articles", response_model=List[ArticleResponse])
def list_articles(
    limit: int = 50, services: Services = Depends(get_services)
) -> List[ArticleResponse]:
    return [_article_response(a) for a in services.store.list_articles(limit=limit)]


@router.get("/{feed_id}", response_model=FeedResponse)
def get(feed_id: str, services: Services = Depends(get_services)) -> FeedResponse:
    return _to_response(get_feed(services.store, feed_id))


@router.put("/{feed_id}", response_model=FeedResponse)
def update(
    feed_id: str, payload: FeedUpdateRequest, services: Services = Depends(get_services)
) -> FeedResponse:
    feed = update_feed(services.store, feed_id, name=payload.name, url=payload.url)
    return _to_response(feed)


@router.delete("/{feed_id}")
def delete(feed_id: str, services: Services = Depends(get_services)) -> Dict[str, Any]:
    delete_feed(services.store, feed_id)
    return {"message": "Feed deleted", "id": feed_id}


@router.get("/{feed_id}/articles", response_model=List[ArticleResponse])
def feed_articles(
    feed_id: str, limit: int = 10, services: Services = Depends(get_services)
) -> List[ArticleResponse]:
    feed = get_feed(services.store, feed_id)
    articles = services.store.list_articles(feed_id=feed.id, limit=limit)
    return [_article_response(article) for article in articles]
