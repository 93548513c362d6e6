from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from apps.api.schemas.newsletter import EmailCheckRequest
from apps.api.services import Services, get_services
from packages.core.delivery.renderer import template_report
from packages.core.errors import NotFoundError


router = APIRouter(prefix="/api/diagnostics", tags=["diagnostics"])


def _debug_services(services: Services = Depends(get_services)) -> Services:
    if not services.settings.debug:
        raise NotFoundError("not_found")
    return services


@router.get("/status")
def status(services: Services = Depends(_debug_services)) -> Dict[str, Any]:
    settings = services.settings
    recent = services.store.list_articles(limit=3)
    return {
        "database": {"path": services.store.db_path, **services.store.stats()},
        "openai": {
            "configured": bool(settings.openai_api_key),
            "model": settings.openai_model,
        },
        "email": {
            "provider": settings.email_provider,
            "from_configured": bool(settings.email_from),
        },
        "jobs": {
            services.fetch_job.name: {"running": services.fetch_job.running},
            services.newsletter_job.name: {"running": services.newsletter_job.running},
        },
        "recent_articles": [
            {"title": article.title, "publish_date": article.publish_date}
            for article in recent
        ],
    }


@router.get("/feed-status")
def feed_status(services: Services = Depends(_debug_services)) -> Dict[str, Any]:
    feeds = services.store.list_feeds()
    return {
        "feed_count": len(feeds),
        "feeds": [
            {"name": feed.name, "url": feed.url, "last_fetched_at": feed.last_fetched_at}
            for feed in feeds
        ],
        "article_count": services.store.count_articles(),
        "recent_articles": [
            {"title": article.title, "publish_date": article.publish_date}
            for article in services.store.list_articles(limit=5)
        ],
    }


@router.get("/template")
def template_check(services: Services = Depends(_debug_services)) -> Dict[str, Any]:
    return template_report(services.delivery.renderer)


@router.post("/test-email")
def test_email(
    payload: Optional[EmailCheckRequest] = None,
    services: Services = Depends(_debug_services),
) -> Dict[str, Any]:
    email = payload.email if payload else None
    return services.delivery.send_test_email(email)
