"""Shared validation helpers for request/response schemas"""
from datetime import UTC, date, datetime


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize to UTC; naive datetimes are taken to already be UTC.

    SQLite drops tzinfo on the way back out, so values read from it are naive
    even though they were written as UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def calendar_date(value: date | datetime) -> date:
    """
    UTC calendar date of a date or datetime, ignoring time-of-day.

    Offset-aware datetimes are converted to UTC first, matching how item
    dates are stored.
    """
    if isinstance(value, datetime):
        return ensure_utc(value).date()
    return value


def strip_required(value: str, field_name: str) -> str:
    """Trim surrounding whitespace and reject values that end up empty"""
    stripped = value.strip()
    if not stripped:
        raise ValueError(f"{field_name} cannot be blank")
    return stripped
