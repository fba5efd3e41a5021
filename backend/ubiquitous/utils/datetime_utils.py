"""
Datetime utilities
Provides timezone-aware datetime functions to replace deprecated datetime.utcnow()
"""
from datetime import date, datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Get current UTC time (replacement for deprecated datetime.utcnow())

    Example:
        >>> now = utc_now()
        >>> print(now.tzinfo)
        UTC
    """
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Current UTC time as ISO format string"""
    return utc_now().isoformat()


def utc_today() -> date:
    """Current calendar date in UTC; review schedules are day-granular"""
    return utc_now().date()


def days_from(start: date, days: int) -> date:
    return start + timedelta(days=days)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from databases that drop the offset"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
