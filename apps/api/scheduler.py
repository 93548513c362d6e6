from __future__ import annotations

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from apps.api.services import Services


logger = logging.getLogger("feedletter.scheduler")


def start_scheduler(services: Services) -> BackgroundScheduler:
    settings = services.settings
    scheduler = BackgroundScheduler(timezone=settings.scheduler_timezone)
    scheduler.add_job(
        services.fetch_job.run_scheduled,
        "interval",
        hours=settings.feed_fetch_interval_hours,
        id=services.fetch_job.name,
        replace_existing=True,
        coalesce=True,
    )
    scheduler.add_job(
        services.newsletter_job.run_scheduled,
        "cron",
        hour=settings.newsletter_hour,
        minute=settings.newsletter_minute,
        id=services.newsletter_job.name,
        replace_existing=True,
        coalesce=True,
    )
    scheduler.start()
    logger.info(
        "scheduler_started fetch_every_hours=%s newsletter_at=%02d:%02d timezone=%s",
        settings.feed_fetch_interval_hours,
        settings.newsletter_hour,
        settings.newsletter_minute,
        settings.scheduler_timezone,
    )
    return scheduler
