"""DateTime normalization utilities for schedule items - EventMatcher.

All recurrence math happens in UTC. These helpers turn the loosely typed
values found in stored records (ISO strings, naive datetimes, date-only
values) into aware UTC datetimes or plain calendar dates.
"""

from datetime import UTC, date, datetime, time
from typing import Union

from dateutil import parser as date_parser

DateLike = Union[str, date, datetime]


def ensure_timezone_aware(dt: datetime) -> datetime:
    """Ensure datetime is timezone-aware.

    Args:
        dt: Datetime to make timezone-aware

    Returns:
        Timezone-aware datetime (UTC if originally naive)
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def to_utc(dt: datetime) -> datetime:
    """Convert a datetime to UTC, treating naive values as UTC already."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def parse_datetime(value: DateLike) -> datetime:
    """Parse a timestamp into an aware UTC datetime.

    Handles:
    - datetime objects (naive values are taken as UTC)
    - date objects (midnight UTC)
    - ISO-8601 strings: 2024-03-04T09:00:00Z, 2024-03-04T09:00:00+02:00,
      2024-03-04T09:00:00.000Z, 2024-03-04

    Args:
        value: Value to parse

    Returns:
        Aware datetime in UTC

    Raises:
        ValueError: If the string is not a valid ISO-8601 timestamp
    """
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=UTC)
    if not isinstance(value, str):
        raise ValueError(f"Unable to parse datetime: {value!r}")

    text = value.strip()
    if not text:
        raise ValueError("Unable to parse datetime: empty string")
    return to_utc(date_parser.isoparse(text))


def to_calendar_date(value: DateLike) -> date:
    """Reduce a value to its calendar-date component.

    The date is taken as written: "2024-03-11T23:30:00-05:00" yields
    2024-03-11, not the UTC date of that instant.

    Raises:
        ValueError: If the string cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Unable to parse date: {value!r}")
    return date_parser.isoparse(value.strip()).date()


def utc_midnight(dt: datetime) -> datetime:
    """Return midnight (UTC) of the UTC calendar day containing dt."""
    return datetime.combine(to_utc(dt).date(), time.min, tzinfo=UTC)


def combine_utc(day: date, time_of_day: time) -> datetime:
    """Build an aware UTC datetime from a calendar date and a wall-clock time."""
    return datetime.combine(day, time_of_day.replace(tzinfo=None), tzinfo=UTC)


def time_of_day_utc(dt: datetime) -> time:
    """Return the UTC hour/minute/second of dt, dropping sub-second precision."""
    utc_dt = to_utc(dt)
    return time(utc_dt.hour, utc_dt.minute, utc_dt.second)


def day_of_week(dt: datetime) -> int:
    """Return the UTC weekday of dt with 0=Sunday..6=Saturday."""
    return (to_utc(dt).weekday() + 1) % 7


def minutes_of_day(dt: datetime) -> int:
    """Minutes since UTC midnight, ignoring seconds."""
    utc_dt = to_utc(dt)
    return utc_dt.hour * 60 + utc_dt.minute


def format_iso_utc(dt: datetime) -> str:
    """Format a datetime as YYYY-MM-DDTHH:MM:SS.mmmZ in UTC.

    Examples:
        >>> from datetime import datetime, UTC
        >>> format_iso_utc(datetime(2024, 3, 4, 9, 0, tzinfo=UTC))
        '2024-03-04T09:00:00.000Z'
    """
    utc_dt = to_utc(dt)
    return f"{utc_dt.strftime('%Y-%m-%dT%H:%M:%S')}.{utc_dt.microsecond // 1000:03d}Z"
