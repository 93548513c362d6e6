from __future__ import annotations

from fastapi import APIRouter, Depends

from apps.api.schemas.newsletter import NewsletterRunResponse, PreviewRequest, PreviewResponse
from apps.api.services import Services, get_services
from packages.core.errors import NotFoundError
from packages.core.newsletter.generator import sources_of


router = APIRouter(prefix="/newsletter", tags=["newsletter"])


@router.post("/send", response_model=NewsletterRunResponse)
def send(services: Services = Depends(get_services)) -> NewsletterRunResponse:
    """Run the daily workflow now, outside the schedule."""
    result = services.newsletter_job.run()
    return NewsletterRunResponse(**result.as_dict())


@router.post("/preview", response_model=PreviewResponse)
def preview(
    payload: PreviewRequest, services: Services = Depends(get_services)
) -> PreviewResponse:
    """Generate content from the latest articles without sending or marking them."""
    articles = services.store.list_articles(limit=payload.limit)
    if not articles:
        raise NotFoundError("No articles found in database")
    content = services.generator.generate(articles)
    return PreviewResponse(
        message="Newsletter generated successfully",
        article_count=len(articles),
        sources=sources_of(articles),
        content=content,
    )
