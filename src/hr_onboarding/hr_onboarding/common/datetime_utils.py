from __future__ import annotations

from datetime import date, datetime


def parse_iso_date(value: str) -> date:
    """YYYY-MM-DD, or the date part of an ISO timestamp."""
    return date.fromisoformat(value[:10])


def now_local() -> datetime:
    """Default clock for services; tests inject a fixed one instead."""
    return datetime.now()


def format_date(value: date | None) -> str | None:
    return value.isoformat() if value else None


def format_datetime(value: datetime | None) -> str | None:
    return value.isoformat(timespec="seconds") if value else None
