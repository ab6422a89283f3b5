"""Timestamp helpers: UTC clock, ISO parsing, and schedule arithmetic."""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive values are interpreted as UTC. A trailing "Z" is accepted.

    Args:
        value: ISO timestamp string (e.g., "2024-01-03T11:00:00+00:00").

    Returns:
        Timezone-aware datetime in UTC.

    Raises:
        ValueError: If value is empty or not ISO formatted.
    """
    if not value:
        raise ValueError("Empty timestamp")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_iso(value: datetime) -> str:
    """Format a datetime as an ISO string in UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def parse_day(value: str) -> date:
    """Parse a YYYY-MM-DD date string."""
    if not isinstance(value, str):
        raise ValueError(f"Expected a YYYY-MM-DD string, got {value!r}")
    return date.fromisoformat(value.strip())


def parse_clock(value: str) -> time:
    """Parse an HH:MM or HH:MM:SS wall-clock string."""
    return time.fromisoformat(value.strip())


def schedule_end(
    scheduled_date: str,
    end_time: str = "",
    start_time: str = "",
    duration_minutes: int = 0,
) -> datetime:
    """
    Resolve the moment a scheduled task becomes due.

    Resolution order:
    1. scheduled_date + end_time
    2. scheduled_date + start_time + duration_minutes
    3. midnight at the end of scheduled_date

    Schedule wall-clock values are interpreted as UTC.

    Returns:
        Timezone-aware due datetime.
    """
    day = parse_day(scheduled_date)
    if end_time:
        return datetime.combine(day, parse_clock(end_time), tzinfo=timezone.utc)
    if start_time:
        start = datetime.combine(day, parse_clock(start_time), tzinfo=timezone.utc)
        return start + timedelta(minutes=duration_minutes or 0)
    return datetime.combine(day + timedelta(days=1), time(0, 0), tzinfo=timezone.utc)


def days_between(earlier: Optional[date], later: date) -> Optional[int]:
    """Whole days from earlier to later, or None when earlier is unknown."""
    if earlier is None:
        return None
    return (later - earlier).days
