from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def _default_db_path() -> str:
    base_dir = os.path.abspath(
        os.path.join(os.path.dirname(__file__), "..", "..", "apps", "api", "data")
    )
    return os.path.join(base_dir, "feedletter.db")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() == "true"


def _env_str(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


@dataclass(frozen=True)
class Settings:
    db_path: str
    openai_api_key: Optional[str]
    openai_base_url: str
    openai_model: str
    openai_timeout_seconds: int
    email_provider: str
    email_from: Optional[str]
    email_api_url: Optional[str]
    email_api_key: Optional[str]
    email_timeout_seconds: int
    smtp_host: Optional[str]
    smtp_port: int
    smtp_user: Optional[str]
    smtp_password: Optional[str]
    smtp_use_tls: bool
    unsubscribe_url: str
    feed_fetch_interval_hours: int
    feed_fetch_timeout_seconds: int
    newsletter_hour: int
    newsletter_minute: int
    newsletter_window_hours: int
    scheduler_enabled: bool
    scheduler_timezone: str
    debug: bool


def load_settings() -> Settings:
    return Settings(
        db_path=os.getenv("FEEDLETTER_DB_PATH") or _default_db_path(),
        openai_api_key=_env_str("OPENAI_API_KEY"),
        openai_base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        openai_timeout_seconds=_env_int("OPENAI_TIMEOUT_SECONDS", 60),
        email_provider=os.getenv("EMAIL_PROVIDER", "http").strip().lower(),
        email_from=_env_str("EMAIL_FROM"),
        email_api_url=_env_str("EMAIL_API_URL"),
        email_api_key=_env_str("EMAIL_API_KEY"),
        email_timeout_seconds=_env_int("EMAIL_TIMEOUT_SECONDS", 15),
        smtp_host=_env_str("SMTP_HOST"),
        smtp_port=_env_int("SMTP_PORT", 587),
        smtp_user=_env_str("SMTP_USER"),
        smtp_password=os.getenv("SMTP_PASSWORD", ""),
        smtp_use_tls=_env_bool("SMTP_USE_TLS", True),
        unsubscribe_url=os.getenv("UNSUBSCRIBE_URL", "#"),
        feed_fetch_interval_hours=_env_int("FEED_FETCH_INTERVAL_HOURS", 6),
        feed_fetch_timeout_seconds=_env_int("FEED_FETCH_TIMEOUT_SECONDS", 20),
        newsletter_hour=_env_int("NEWSLETTER_HOUR", 7),
        newsletter_minute=_env_int("NEWSLETTER_MINUTE", 0),
        newsletter_window_hours=_env_int("NEWSLETTER_WINDOW_HOURS", 24),
        scheduler_enabled=_env_bool("SCHEDULER_ENABLED", True),
        scheduler_timezone=os.getenv("SCHEDULER_TIMEZONE", "UTC"),
        debug=_env_bool("FEEDLETTER_DEBUG", False),
    )
