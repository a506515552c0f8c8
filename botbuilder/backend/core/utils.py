"""
Core Utilities.

Shared date/time helpers. All datetime values in the application are
timezone-naive and assumed to be UTC.
"""

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Return current UTC time as timezone-naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_today() -> date:
    """Return the current UTC calendar day (analytics bucket key)."""
    return utc_now().date()
