from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Request

from packages.core.config import Settings
from packages.core.delivery.email_client import EmailClient, build_email_client
from packages.core.delivery.renderer import NewsletterRenderer
from packages.core.delivery.service import DeliveryService
from packages.core.feeds.parser import FeedParser
from packages.core.feeds.service import FeedFetcher, FeedSource, FetchSummary
from packages.core.jobs import GuardedJob
from packages.core.llm.openai_client import OpenAIClient
from packages.core.newsletter.generator import CompletionClient, ContentGenerator
from packages.core.newsletter.workflow import NewsletterWorkflow, WorkflowResult
from packages.core.storage.sqlite import SQLiteNewsletterStore


@dataclass
class Services:
    settings: Settings
    store: SQLiteNewsletterStore
    fetcher: FeedFetcher
    generator: ContentGenerator
    delivery: DeliveryService
    workflow: NewsletterWorkflow
    fetch_job: GuardedJob[FetchSummary]
    newsletter_job: GuardedJob[WorkflowResult]


def build_services(
    settings: Settings,
    store: Optional[SQLiteNewsletterStore] = None,
    feed_source: Optional[FeedSource] = None,
    llm: Optional[CompletionClient] = None,
    email_client: Optional[EmailClient] = None,
    renderer: Optional[NewsletterRenderer] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Services:
    """Wire every component around one store handle."""
    store = store or SQLiteNewsletterStore(db_path=settings.db_path)
    fetcher = FeedFetcher(
        store,
        source=feed_source or FeedParser(timeout=settings.feed_fetch_timeout_seconds),
    )
    generator = ContentGenerator(
        llm
        or OpenAIClient(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=settings.openai_model,
            timeout=settings.openai_timeout_seconds,
        )
    )
    delivery = DeliveryService(
        email_client or build_email_client(settings),
        from_email=settings.email_from,
        renderer=renderer,
        unsubscribe_url=settings.unsubscribe_url,
        sleep=sleep,
    )
    workflow = NewsletterWorkflow(
        store,
        generator,
        delivery,
        window_hours=settings.newsletter_window_hours,
    )
    return Services(
        settings=settings,
        store=store,
        fetcher=fetcher,
        generator=generator,
        delivery=delivery,
        workflow=workflow,
        fetch_job=GuardedJob("fetch_feeds", fetcher.fetch_all),
        newsletter_job=GuardedJob("daily_newsletter", workflow.run),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services
