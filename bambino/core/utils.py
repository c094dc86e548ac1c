"""Timezone helpers for browser offsets, local day boundaries and UTC normalization."""

from datetime import date, datetime, timedelta
from typing import Optional, Tuple
import pytz

from .constants import HOURS_PER_DAY, SECONDS_PER_HOUR


# Used by: stats_aggregator.py (daily and weekly windows)
def zone_from_browser_offset(tz_offset_minutes: Optional[int]) -> pytz.BaseTzInfo:
    """Browser offsets (getTimezoneOffset) are positive west of UTC, so negate them."""
    if not tz_offset_minutes:
        return pytz.utc
    return pytz.FixedOffset(-tz_offset_minutes)


# Used by: stats_aggregator.py
def local_day_bounds(day: date, zone: pytz.BaseTzInfo, days: int = 1) -> Tuple[datetime, datetime]:
    """[local midnight of day, same + days) as aware datetimes in the local zone."""
    start = zone.localize(datetime(day.year, day.month, day.day))
    return start, start + timedelta(days=days)


# Used by: stats_aggregator.py (weekly bucketing)
def day_index(moment: datetime, window_start: datetime, zone: pytz.BaseTzInfo) -> int:
    local_moment = moment.astimezone(zone)
    elapsed_hours = (local_moment - window_start).total_seconds() / SECONDS_PER_HOUR
    return int(elapsed_hours // HOURS_PER_DAY)


# Used by: tables.py (UTCDateTime), services (clock defaults, request times)
def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive values are taken as UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=pytz.utc)
    return value.astimezone(pytz.utc)


def utc_now() -> datetime:
    return datetime.now(pytz.utc)


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / SECONDS_PER_HOUR
