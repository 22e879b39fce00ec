"""
Datetime utilities for consistent timezone handling across the application.
All absolute instants are timezone-aware; calendar dates and time labels
are interpreted in the configured shop timezone.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple, Union
from zoneinfo import ZoneInfo

from utils.time_labels import time_to_minutes


def utc_now() -> datetime:
    """
    Get current UTC time as timezone-aware datetime.

    Returns:
        Current UTC datetime with timezone info
    """
    return datetime.now(timezone.utc)


def get_zone(tz_name: Optional[str] = None) -> ZoneInfo:
    """Resolve the shop timezone (settings.timezone by default)."""
    if tz_name is None:
        from config import settings

        tz_name = settings.timezone
    return ZoneInfo(tz_name)


def local_now(tz_name: Optional[str] = None) -> datetime:
    """Current wall-clock time in the shop timezone."""
    return utc_now().astimezone(get_zone(tz_name))


def ensure_aware(dt: datetime, tz_name: Optional[str] = None) -> datetime:
    """
    Attach the shop timezone to a naive datetime.

    Aware datetimes are returned unchanged.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=get_zone(tz_name))
    return dt


def to_iso_string(dt: datetime) -> str:
    """
    Convert datetime to ISO format string.

    Args:
        dt: Datetime object (timezone-aware or naive)

    Returns:
        ISO format string
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.isoformat()


def parse_iso_date(value: Union[str, date]) -> date:
    """Parse a `YYYY-MM-DD` calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise ValueError(f"Invalid date string: {value}") from e


def minutes_of_day(dt: datetime) -> int:
    """Wall-clock minutes since midnight for a datetime."""
    return dt.hour * 60 + dt.minute


def week_bounds(target: date) -> Tuple[date, date]:
    """
    Monday-start calendar week containing a date.

    Returns:
        (monday, sunday), both inclusive
    """
    monday = target - timedelta(days=target.weekday())
    return monday, monday + timedelta(days=6)


def appointment_timestamp(
    target: date, start_label: str, tz_name: Optional[str] = None
) -> datetime:
    """
    Absolute instant for a calendar date and a 12-hour start label.

    Raises:
        MalformedTimeLabelError: If the label cannot be parsed
    """
    minutes = time_to_minutes(start_label)
    wall = datetime.combine(target, time(hour=minutes // 60, minute=minutes % 60))
    return wall.replace(tzinfo=get_zone(tz_name))
