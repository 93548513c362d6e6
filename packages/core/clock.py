from __future__ import annotations

import datetime as dt
from typing import Optional


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def to_iso(value: Optional[dt.datetime]) -> Optional[str]:
    """Stored timestamps are UTC, second precision, so they sort as strings."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc).isoformat(timespec="seconds")


def utc_now_iso() -> str:
    return to_iso(utc_now())
