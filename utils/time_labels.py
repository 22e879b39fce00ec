"""
Conversion between 12-hour time labels ("09:30 AM") and minutes since midnight.
"""

import re

from utils.exceptions import MalformedTimeLabelError

MINUTES_PER_DAY = 24 * 60
PERIODS = ("AM", "PM")
CLOCK_PATTERN = re.compile(r"(\d{1,2}):(\d{2})", re.ASCII)


def time_to_minutes(label: str) -> int:
    """
    Parse a 12-hour label to minutes since midnight.

    "12:xx AM" maps to 0:xx, "12:xx PM" stays 12:xx and other PM hours add 12.

    Args:
        label: Time label in "HH:MM AM|PM" form

    Returns:
        Minutes since midnight (0-1439)

    Raises:
        MalformedTimeLabelError: If the label is not a valid 12-hour time
    """
    if not isinstance(label, str):
        raise MalformedTimeLabelError(f"Time label must be a string, got {label!r}")

    parts = label.strip().split(" ")
    if len(parts) != 2:
        raise MalformedTimeLabelError(f"Malformed time label: {label!r}")

    clock, period = parts
    period = period.upper()
    if period not in PERIODS:
        raise MalformedTimeLabelError(f"Unknown period in time label: {label!r}")

    match = CLOCK_PATTERN.fullmatch(clock)
    if match is None:
        raise MalformedTimeLabelError(f"Malformed time label: {label!r}")

    hours = int(match.group(1))
    minutes = int(match.group(2))
    if not 1 <= hours <= 12 or not 0 <= minutes <= 59:
        raise MalformedTimeLabelError(f"Time label out of range: {label!r}")

    if period == "PM" and hours != 12:
        hours += 12
    elif period == "AM" and hours == 12:
        hours = 0

    return hours * 60 + minutes


def minutes_to_time(total_minutes: int) -> str:
    """
    Format minutes since midnight as a zero-padded 12-hour label.

    Raises:
        MalformedTimeLabelError: If the value is outside a single day
    """
    if isinstance(total_minutes, bool) or not isinstance(total_minutes, int):
        raise MalformedTimeLabelError(f"Minutes must be an integer, got {total_minutes!r}")
    if not 0 <= total_minutes < MINUTES_PER_DAY:
        raise MalformedTimeLabelError(f"Minutes out of range: {total_minutes}")

    hours, minutes = divmod(total_minutes, 60)
    period = "AM" if hours < 12 else "PM"
    display_hour = hours % 12 or 12
    return f"{display_hour:02d}:{minutes:02d} {period}"


def add_minutes(label: str, delta: int) -> str:
    """Shift a label by a number of minutes within the same day."""
    return minutes_to_time(time_to_minutes(label) + delta)

