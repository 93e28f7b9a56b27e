from __future__ import annotations

from datetime import datetime, timezone

import dateparser
from tzlocal import get_localzone_name


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_human_since(value: str, timezone_name: str | None = None) -> datetime | None:
    """Turn phrases like "7 days ago", "last week" or "2025-08-01" into a UTC instant."""
    if not value or not value.strip():
        return None

    settings = {
        "RETURN_AS_TIMEZONE_AWARE": True,
        "TIMEZONE": timezone_name or get_local_timezone(),
        "TO_TIMEZONE": "UTC",
        "PREFER_DATES_FROM": "past",
    }

    parsed = dateparser.parse(value.strip(), settings=settings)
    if not parsed:
        return None
    return ensure_utc(parsed)


def get_local_timezone() -> str:
    try:
        return get_localzone_name()
    except Exception:
        return "UTC"
