import dataclasses
import datetime as dt

from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from apps.api.scheduler import start_scheduler
from apps.api.services import build_services
from packages.core.config import load_settings


def _services(tmp_path, **cadence):
    values = {
        "feed_fetch_interval_hours": 6,
        "newsletter_hour": 7,
        "newsletter_minute": 0,
        **cadence,
    }
    settings = dataclasses.replace(
        load_settings(),
        db_path=str(tmp_path / "feedletter.db"),
        scheduler_timezone="UTC",
        **values,
    )
    return build_services(settings)


def _cron_fields(trigger):
    return {field.name: str(field) for field in trigger.fields}


def test_scheduler_registers_fetch_and_newsletter_jobs(tmp_path):
    services = _services(tmp_path)
    scheduler = start_scheduler(services)
    try:
        fetch = scheduler.get_job("fetch_feeds")
        newsletter = scheduler.get_job("daily_newsletter")

        assert isinstance(fetch.trigger, IntervalTrigger)
        assert fetch.trigger.interval == dt.timedelta(hours=6)
        assert fetch.func == services.fetch_job.run_scheduled

        assert isinstance(newsletter.trigger, CronTrigger)
        fields = _cron_fields(newsletter.trigger)
        assert fields["hour"] == "7"
        assert fields["minute"] == "0"
        assert newsletter.func == services.newsletter_job.run_scheduled
        assert fetch.coalesce is True and newsletter.coalesce is True
    finally:
        scheduler.shutdown(wait=False)


def test_scheduler_follows_configured_cadence(tmp_path):
    services = _services(
        tmp_path, feed_fetch_interval_hours=2, newsletter_hour=18, newsletter_minute=30
    )
    scheduler = start_scheduler(services)
    try:
        assert scheduler.get_job("fetch_feeds").trigger.interval == dt.timedelta(hours=2)
        fields = _cron_fields(scheduler.get_job("daily_newsletter").trigger)
        assert (fields["hour"], fields["minute"]) == ("18", "30")
    finally:
        scheduler.shutdown(wait=False)
