"""Computes daily, recent and weekly activity statistics from the raw activity log.

Nothing is cached or persisted: every call reads the activities inside its
window and aggregates them in memory. All stored times are UTC; local day
boundaries come from the browser-style offset supplied by the caller.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Optional

import pytz
from sqlalchemy import select

from ..core.constants import WEEKLY_WINDOW_DAYS
from ..core.database import get_database
from ..core.utils import (
    day_index, hours_between, local_day_bounds, utc_now, zone_from_browser_offset,
)
from ..db.models import ActivityRecord, ActivityType, Baby
from ..db.tables import ActivityRow
from .babies_data import BabyDataManager
from .validation import ActivityValidator

logger = logging.getLogger(__name__)

ALL_TYPES = [t.value for t in ActivityType]


@dataclass
class DiaperBreakdown:
    wet: int = 0
    dirty: int = 0


@dataclass
class DailyStats:
    baby_id: uuid.UUID
    date: str
    counts: Dict[str, int]
    totals: Dict[str, float]
    last_activities: Dict[str, Optional[datetime]]
    diaper_breakdown: Optional[DiaperBreakdown] = None


@dataclass
class LastFeed:
    time: datetime
    hours_ago: float
    feed_type: Optional[str]
    amount_ml: Optional[float]


@dataclass
class LastDiaper:
    time: datetime
    hours_ago: float
    wet: bool
    dirty: bool


@dataclass
class LastSleep:
    ended: datetime
    duration_hours: float


@dataclass
class RecentStats:
    baby_id: uuid.UUID
    currently_sleeping: bool
    last_feed: Optional[LastFeed] = None
    last_diaper: Optional[LastDiaper] = None
    last_sleep: Optional[LastSleep] = None


@dataclass
class DayPoint:
    date: str
    diaper_count: int = 0
    feed_count: int = 0
    sleep_duration_hours: float = 0.0


@dataclass
class GrowthDelta:
    weight_change_kg: Optional[float] = None
    height_change_cm: Optional[float] = None


@dataclass
class WeeklyStats:
    baby_id: uuid.UUID
    start_date: str
    end_date: str
    daily_averages: Dict[str, float]
    daily_breakdown: List[DayPoint] = field(default_factory=list)
    growth: Optional[GrowthDelta] = None


# ── PURE AGGREGATION ────────────────────────────────────────────────────────

# Used by: StatsAggregator.get_daily_stats(), tests
def summarize_day(baby_id: uuid.UUID, activities: List[ActivityRecord], day_label: str) -> DailyStats:
    counts = {t: 0 for t in ALL_TYPES}
    totals = {"feed_amount_ml": 0.0, "pump_amount_ml": 0.0, "sleep_hours": 0.0}
    last_activities: Dict[str, Optional[datetime]] = {t: None for t in ALL_TYPES}
    breakdown = DiaperBreakdown()

    for activity in activities:
        kind = activity.type.value
        counts[kind] += 1

        last_seen = last_activities[kind]
        if last_seen is None or activity.start_time > last_seen:
            last_activities[kind] = activity.start_time

        if activity.type == ActivityType.FEED:
            if activity.feed_data and activity.feed_data.amount_ml is not None:
                totals["feed_amount_ml"] += activity.feed_data.amount_ml
        elif activity.type == ActivityType.PUMP:
            if activity.pump_data and activity.pump_data.amount_ml is not None:
                totals["pump_amount_ml"] += activity.pump_data.amount_ml
        elif activity.type == ActivityType.DIAPER:
            if activity.diaper_data:
                breakdown.wet += int(activity.diaper_data.wet)
                breakdown.dirty += int(activity.diaper_data.dirty)
        elif activity.type == ActivityType.SLEEP:
            if activity.end_time is not None:
                totals["sleep_hours"] += hours_between(activity.start_time, activity.end_time)

    return DailyStats(
        baby_id=baby_id,
        date=day_label,
        counts=counts,
        totals=totals,
        last_activities=last_activities,
        diaper_breakdown=breakdown if counts["diaper"] > 0 else None,
    )


# Used by: StatsAggregator.get_weekly_stats(), tests
def summarize_week(
        baby_id: uuid.UUID,
        activities: List[ActivityRecord],
        window_start: datetime,
        zone: pytz.BaseTzInfo,
        days: int = WEEKLY_WINDOW_DAYS,
) -> WeeklyStats:
    """window_start is local midnight of the first day; activities must lie in [start, start+days)."""
    window_end = window_start + timedelta(days=days)
    daily_counts = {t: [0] * days for t in ALL_TYPES}
    daily_totals = {
        "sleep_hours": [0.0] * days,
        "feed_amount_ml": [0.0] * days,
        "pump_amount_ml": [0.0] * days,
    }

    for activity in activities:
        index = day_index(activity.start_time, window_start, zone)
        if index < 0 or index >= days:
            continue

        daily_counts[activity.type.value][index] += 1

        if activity.type == ActivityType.FEED:
            if activity.feed_data and activity.feed_data.amount_ml is not None:
                daily_totals["feed_amount_ml"][index] += activity.feed_data.amount_ml
        elif activity.type == ActivityType.PUMP:
            if activity.pump_data and activity.pump_data.amount_ml is not None:
                daily_totals["pump_amount_ml"][index] += activity.pump_data.amount_ml
        elif activity.type == ActivityType.SLEEP and activity.end_time is not None:
            daily_totals["sleep_hours"][index] += hours_between(activity.start_time, activity.end_time)

    averages = {f"{kind}_per_day": sum(counts) / days for kind, counts in daily_counts.items()}

    total_feeds = sum(daily_counts["feed"])
    total_feed_ml = sum(daily_totals["feed_amount_ml"])
    averages["feed_amount_ml_per_feed"] = total_feed_ml / total_feeds if total_feeds > 0 else 0.0
    averages["feed_amount_ml_per_day"] = total_feed_ml / days
    averages["sleep_hours_per_day"] = sum(daily_totals["sleep_hours"]) / days

    breakdown = [
        DayPoint(
            date=(window_start + timedelta(days=i)).strftime("%Y-%m-%d"),
            diaper_count=daily_counts["diaper"][i],
            feed_count=daily_counts["feed"][i],
            sleep_duration_hours=daily_totals["sleep_hours"][i],
        )
        for i in range(days)
    ]

    growth_points = sorted(
        (a for a in activities if a.type == ActivityType.GROWTH),
        key=lambda a: a.start_time,
    )

    return WeeklyStats(
        baby_id=baby_id,
        start_date=window_start.strftime("%Y-%m-%d"),
        end_date=window_end.strftime("%Y-%m-%d"),
        daily_averages=averages,
        daily_breakdown=breakdown,
        growth=growth_delta(growth_points),
    )


# Used by: summarize_week(), tests
def growth_delta(measurements: List[ActivityRecord]) -> Optional[GrowthDelta]:
    """Last minus first measurement; None unless there are at least two."""
    if len(measurements) < 2:
        return None

    first = measurements[0].growth_data
    last = measurements[-1].growth_data
    delta = GrowthDelta()
    first_weight, last_weight = getattr(first, "weight_kg", None), getattr(last, "weight_kg", None)
    first_height, last_height = getattr(first, "height_cm", None), getattr(last, "height_cm", None)
    if first_weight is not None and last_weight is not None:
        delta.weight_change_kg = round(last_weight - first_weight, 3)
    if first_height is not None and last_height is not None:
        delta.height_change_cm = round(last_height - first_height, 2)
    return delta


# ── DATABASE-BACKED AGGREGATOR ──────────────────────────────────────────────

class StatsAggregator:

    def __init__(
            self,
            validator: Optional[ActivityValidator] = None,
            clock: Callable[[], datetime] = utc_now,
    ):
        self.database = get_database()
        self.validator = validator or ActivityValidator()
        self.baby_manager = BabyDataManager(self.validator)
        self.clock = clock

    # Used by: stats.py (GET /stats/daily)
    async def get_daily_stats(
            self,
            user_id: uuid.UUID,
            target: Optional[date] = None,
            tz_offset_minutes: Optional[int] = None,
            baby_id: Optional[uuid.UUID] = None,
    ) -> DailyStats:
        baby = await self.baby_manager.get_baby(user_id, baby_id)
        target = target or self.clock().date()
        self.validator.validate_stats_date(target, baby)
        self.validator.validate_tz_offset(tz_offset_minutes)

        zone = zone_from_browser_offset(tz_offset_minutes)
        start, end = local_day_bounds(target, zone)

        activities = await self._activities_between(baby, start, end)
        logger.info(f"Daily stats for baby {baby.id} on {target}: {len(activities)} activities")

        return summarize_day(baby.id, activities, start.strftime("%Y-%m-%d"))

    # Used by: stats.py (GET /stats/weekly)
    async def get_weekly_stats(
            self,
            user_id: uuid.UUID,
            target: Optional[date] = None,
            tz_offset_minutes: Optional[int] = None,
            baby_id: Optional[uuid.UUID] = None,
    ) -> WeeklyStats:
        baby = await self.baby_manager.get_baby(user_id, baby_id)
        target = target or self.clock().date()
        self.validator.validate_stats_date(target, baby)
        self.validator.validate_tz_offset(tz_offset_minutes)

        zone = zone_from_browser_offset(tz_offset_minutes)
        # trailing window ending at the close of the target day
        _, window_end = local_day_bounds(target, zone)
        window_start = window_end - timedelta(days=WEEKLY_WINDOW_DAYS)

        activities = await self._activities_between(baby, window_start, window_end)
        logger.info(
            f"Weekly stats for baby {baby.id}, {window_start.date()} to {window_end.date()}: "
            f"{len(activities)} activities"
        )

        return summarize_week(baby.id, activities, window_start, zone)

    # Used by: stats.py (GET /stats/recent)
    async def get_recent_stats(self, user_id: uuid.UUID, baby_id: Optional[uuid.UUID] = None) -> RecentStats:
        baby = await self.baby_manager.get_baby(user_id, baby_id)
        now = self.clock()

        async with self.database.session() as session:
            last_feed = await self._latest(session, baby, ActivityType.FEED)
            last_diaper = await self._latest(session, baby, ActivityType.DIAPER)
            open_sleep = await self._latest(session, baby, ActivityType.SLEEP, ActivityRow.end_time.is_(None))

            stats = RecentStats(baby_id=baby.id, currently_sleeping=open_sleep is not None)

            if last_feed is not None:
                feed = last_feed.feed_data
                stats.last_feed = LastFeed(
                    time=last_feed.start_time,
                    hours_ago=hours_between(last_feed.start_time, now),
                    feed_type=feed.feed_type if feed else None,
                    amount_ml=feed.amount_ml if feed else None,
                )

            if last_diaper is not None:
                diaper = last_diaper.diaper_data
                stats.last_diaper = LastDiaper(
                    time=last_diaper.start_time,
                    hours_ago=hours_between(last_diaper.start_time, now),
                    wet=bool(diaper and diaper.wet),
                    dirty=bool(diaper and diaper.dirty),
                )

            if not stats.currently_sleeping:
                last_sleep = await self._latest(
                    session, baby, ActivityType.SLEEP, ActivityRow.end_time.is_not(None)
                )
                if last_sleep is not None:
                    stats.last_sleep = LastSleep(
                        ended=last_sleep.end_time,
                        duration_hours=hours_between(last_sleep.start_time, last_sleep.end_time),
                    )

        return stats

    async def _activities_between(self, baby: Baby, start: datetime, end: datetime) -> List[ActivityRecord]:
        async with self.database.session() as session:
            result = await session.execute(
                select(ActivityRow)
                .where(
                    ActivityRow.baby_id == baby.id,
                    ActivityRow.start_time >= start,
                    ActivityRow.start_time < end,
                )
                .order_by(ActivityRow.start_time.asc())
            )
            return [ActivityRecord.from_row(row) for row in result.scalars().all()]

    async def _latest(self, session, baby: Baby, activity_type: ActivityType, *conditions) -> Optional[ActivityRecord]:
        result = await session.execute(
            select(ActivityRow)
            .where(ActivityRow.baby_id == baby.id, ActivityRow.type == activity_type.value, *conditions)
            .order_by(ActivityRow.start_time.desc())
            .limit(1)
        )
        row = result.scalars().first()
        return ActivityRecord.from_row(row) if row else None
