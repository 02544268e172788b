"""
Date parsing and formatting utilities.

Timestamps are stored as integer epoch milliseconds. Calendar arithmetic
(start of day, adding days) is done in the local timezone.
"""

import time
from datetime import date, datetime, timedelta
from typing import Optional, Union

# Bounds of a valid JavaScript Date, which the export format inherits.
MAX_TIMESTAMP_MS = 8_640_000_000_000_000


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


def ms_to_datetime(value: Optional[Union[int, float]]) -> Optional[datetime]:
    """
    Convert epoch milliseconds to a naive local datetime.

    Args:
        value: Epoch milliseconds, or None

    Returns:
        Local datetime, or None if the value is missing or out of range
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        if abs(value) > MAX_TIMESTAMP_MS:
            return None
        return datetime.fromtimestamp(value / 1000)
    except (OverflowError, OSError, ValueError, TypeError):
        return None


def datetime_to_ms(value: datetime) -> int:
    """Convert a datetime (naive means local) to epoch milliseconds."""
    return int(round(value.timestamp() * 1000))


def start_of_day(value: Union[date, datetime]) -> datetime:
    """Return local midnight for the given day."""
    return datetime(value.year, value.month, value.day)


def add_days(value: Union[date, datetime], days: int) -> datetime:
    """Add calendar days, landing on local midnight."""
    return start_of_day(value) + timedelta(days=days)


def has_time_of_day(value: datetime) -> bool:
    """True when the hour or minute is not midnight."""
    return value.hour != 0 or value.minute != 0


def format_timestamp(value: Optional[Union[int, float]]) -> str:
    """
    Format epoch milliseconds for display.

    Midnight values are shown as a bare date, matching "all day" tasks.
    """
    parsed = ms_to_datetime(value)
    if parsed is None:
        return "no date"
    if has_time_of_day(parsed):
        return parsed.strftime('%Y-%m-%d %H:%M')
    return parsed.strftime('%Y-%m-%d')
