"""
Date utilities

Parsing of request dates and provider timestamps, day-key formatting and
calendar range enumeration. Centralizes all date parsing logic to maintain
consistency across the application.
"""
from datetime import date, datetime, timedelta, timezone
import logging

logger = logging.getLogger(__name__)


class DateFormatError(ValueError):
    """Raised when date format is invalid"""
    pass


def _normalize_iso8601_string(date_str: str) -> str:
    """Normalize ISO8601 string by replacing 'Z' with '+00:00'

    Args:
        date_str: ISO8601 datetime string

    Returns:
        Normalized string with explicit timezone offset
    """
    return date_str.replace('Z', '+00:00') if date_str.endswith('Z') else date_str


def parse_to_date(date_str: str) -> date:
    """
    Parse a calendar date or an ISO8601 timestamp into a calendar date

    Timestamps keep their own offset: '2024-10-15T23:30:00-05:00' is the 15th,
    even though it is already the 16th in UTC. Naive timestamps are read as UTC.

    This is the single source of truth for date parsing across the application.

    Args:
        date_str: 'YYYY-MM-DD' or ISO8601 datetime string (e.g., '2024-10-15T06:00:00Z')

    Returns:
        The calendar date

    Raises:
        DateFormatError: If the string is neither a date nor an ISO8601 timestamp
    """
    try:
        value = date_str.strip()
        if 'T' not in value:
            return date.fromisoformat(value)
        dt = datetime.fromisoformat(_normalize_iso8601_string(value))
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.date()
    except (ValueError, AttributeError) as e:
        raise DateFormatError(f"Invalid date format: '{date_str}'") from e


def format_date_key(day: date) -> str:
    """Format a day as the 'YYYY-MM-DD' key used in logs and responses."""
    return day.isoformat()


def normalize_to_utc_midnight(day: date) -> str:
    """
    Render a day as UTC midnight in the provider's timestamp format

    Args:
        day: Calendar date

    Returns:
        String like '2024-10-15T00:00:00.000Z'
    """
    midnight = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
    return midnight.strftime("%Y-%m-%dT%H:%M:%S.") + f"{midnight.microsecond // 1000:03d}Z"


def days_in_range(start: date, end: date) -> list[date]:
    """
    Enumerate every calendar day from start to end, both inclusive

    Returns an empty list when start is after end.
    """
    span = (end - start).days
    return [start + timedelta(days=offset) for offset in range(span + 1)]


def utc_today() -> date:
    return datetime.now(timezone.utc).date()
