"""
Standardized Date/Time Handling Utilities

RULES:
- All DB timestamps are stored in UTC (use now_utc())
- Daily activity caps are bucketed by the calendar date in ACTIVITY_TIMEZONE
  (use activity_day()); nothing else decides where a day starts
- Never mix naive and aware datetimes
"""

import logging
from datetime import datetime, date, time, timedelta
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ruang_tenang.config import ACTIVITY_TIMEZONE

logger = logging.getLogger(__name__)

# Used when ACTIVITY_TIMEZONE cannot be loaded (missing tzdata)
FALLBACK_TIMEZONE = "UTC"


def get_activity_timezone(tz_name: Optional[str] = None) -> ZoneInfo:
    """
    Get the timezone that defines an activity day

    Args:
        tz_name: IANA name, defaults to ACTIVITY_TIMEZONE

    Returns:
        ZoneInfo object
    """
    tz_name = tz_name or ACTIVITY_TIMEZONE
    try:
        return ZoneInfo(tz_name)
    except ZoneInfoNotFoundError as e:
        logger.error(f"Invalid activity timezone '{tz_name}': {e}")
        return ZoneInfo(FALLBACK_TIMEZONE)


def now_utc() -> datetime:
    """
    Get current datetime in UTC (timezone-aware)

    Returns:
        Current datetime in UTC with timezone info
    """
    return datetime.now(ZoneInfo("UTC"))


def to_utc(dt: datetime) -> datetime:
    """
    Convert an aware datetime to UTC. Naive datetimes are assumed to be UTC.
    """
    if dt.tzinfo is None:
        logger.warning(f"Naive datetime {dt} treated as UTC")
        return dt.replace(tzinfo=ZoneInfo("UTC"))
    return dt.astimezone(ZoneInfo("UTC"))


def activity_day(moment: datetime, tz: Optional[ZoneInfo] = None) -> date:
    """
    Calendar day an activity belongs to

    Args:
        moment: When the activity happened (naive values are treated as UTC)
        tz: Bucketing timezone, defaults to ACTIVITY_TIMEZONE

    Returns:
        The date of `moment` in the bucketing timezone

    Example:
        2024-01-15 17:30 UTC is 2024-01-16 00:30 WIB, so it counts
        toward 2024-01-16 with the default Asia/Jakarta policy.
    """
    tz = tz or get_activity_timezone()
    return to_utc(moment).astimezone(tz).date()


def day_bounds_utc(day: date, tz: Optional[ZoneInfo] = None) -> Tuple[datetime, datetime]:
    """
    UTC [start, end) of a calendar day in the bucketing timezone

    Used for filtering history rows (stored in UTC) by activity day.
    """
    tz = tz or get_activity_timezone()
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = start + timedelta(days=1)
    return start.astimezone(ZoneInfo("UTC")), end.astimezone(ZoneInfo("UTC"))


def parse_date(value: Optional[str]) -> Optional[date]:
    """
    Parse YYYY-MM-DD, returning None for empty or malformed input
    """
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        logger.debug(f"Ignoring malformed date filter: {value!r}")
        return None
