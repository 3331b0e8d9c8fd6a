from collections.abc import Callable
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

Clock = Callable[[], datetime]


def get_utc_now() -> datetime:
    """
    Get the current date and time in UTC.

    This function returns the current time with timezone information set to UTC,
    ensuring that the returned datetime object is offset-aware.

    Returns:
        datetime: The current date and time in UTC with tzinfo set to ZoneInfo("UTC").
    """
    return datetime.now(ZoneInfo("UTC"))


def ensure_aware_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def seconds_until(moment: datetime | None, now: datetime) -> int:
    """
    Whole seconds remaining until ``moment``, clamped at zero.
    Returns 0 when ``moment`` is unknown.
    """
    if moment is None:
        return 0
    delta = (ensure_aware_utc(moment) - ensure_aware_utc(now)).total_seconds()
    return max(0, int(delta))
