"""Time helpers for naive-UTC column defaults and calendar months."""

from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns (no tz)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def month_start(value: date | datetime | None = None) -> date:
    """First day of the calendar month containing ``value`` (default: now, UTC)."""
    if value is None:
        value = utcnow()
    if isinstance(value, datetime):
        value = value.date()
    return value.replace(day=1)
