"""
Datetime utility functions for handling timezone-aware datetimes.
"""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Return the current datetime in UTC timezone.

    Session timestamps go through this function instead of
    datetime.now(timezone.utc) so tests can patch a single place.

    Returns:
        A timezone-aware datetime object representing the current time in UTC.

    Example:
        >>> from aptitude.core.datetime_utils import utc_now
        >>> current_time = utc_now()
        >>> current_time.tzinfo == timezone.utc
        True
    """
    return datetime.now(timezone.utc)


def ensure_timezone_aware(dt: Optional[datetime]) -> datetime:
    """
    Ensure a datetime object is timezone-aware (UTC).

    Session stores frequently hand back naive datetimes for values that were
    written as UTC.

    Args:
        dt: The datetime to ensure is timezone-aware

    Returns:
        A timezone-aware datetime object in UTC

    Raises:
        ValueError: If dt is None
    """
    if dt is None:
        raise ValueError("datetime cannot be None")
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def elapsed_seconds(start: Optional[datetime], end: Optional[datetime]) -> float:
    """Seconds between two timestamps, or 0.0 if either is missing."""
    if start is None or end is None:
        return 0.0
    delta = ensure_timezone_aware(end) - ensure_timezone_aware(start)
    return delta.total_seconds()
