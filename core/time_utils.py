"""Time utilities for the clinic calendar."""
from datetime import date, datetime, time
from typing import Optional

import pytz

DEFAULT_TIMEZONE = "Europe/Moscow"


def get_timezone(timezone_str: Optional[str]) -> pytz.BaseTzInfo:
    """Resolve a timezone name, falling back to Moscow for unknown names."""
    try:
        return pytz.timezone(timezone_str or DEFAULT_TIMEZONE)
    except pytz.UnknownTimeZoneError:
        return pytz.timezone(DEFAULT_TIMEZONE)


def local_now(timezone_str: Optional[str] = None) -> datetime:
    return datetime.now(get_timezone(timezone_str))


def local_today(timezone_str: Optional[str] = None) -> date:
    """Today's date in the clinic timezone."""
    return local_now(timezone_str).date()


def parse_time(time_str: str) -> time:
    """Parse time string in format HH:MM (seconds allowed)."""
    try:
        parts = [int(p) for p in time_str.split(':')]
        return time(*parts[:3])
    except (ValueError, AttributeError, TypeError):
        raise ValueError(f"Invalid time format: {time_str}. Expected HH:MM")


def time_sort_key(time_str: Optional[str]) -> tuple[int, time]:
    """Sort key for booking times; unparsable values go last."""
    if not time_str:
        return (1, time.min)
    try:
        return (0, parse_time(time_str))
    except ValueError:
        return (1, time.min)
