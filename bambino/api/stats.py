"""
Stats API: on-demand rollups over the activity log.

Routes (/stats):
  GET /daily    - Counts, totals and last occurrences for one local day
  GET /recent   - Last feed, last diaper and current sleep status
  GET /weekly   - Trailing 7-day breakdown, daily averages and growth change

tz_offset is the browser's getTimezoneOffset() value in minutes (positive west of UTC).
"""

import logging
import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..core.constants import TZ_OFFSET_MAX_MINUTES
from ..services.stats_aggregator import StatsAggregator
from ..services.validation import ActivityValidator
from .deps import get_current_user_id, get_validator
from .models import (
    DailyStatsResponse,
    DiaperBreakdown,
    RecentStatsResponse,
    LastFeedInfo,
    LastDiaperInfo,
    LastSleepInfo,
    WeeklyStatsResponse,
    DailyDataPoint,
    WeeklyGrowthInfo,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stats", tags=["statistics"])


# Used by: dashboard summary cards
@router.get("/daily", response_model=DailyStatsResponse)
async def get_daily_stats(
    target_date: Optional[date] = Query(None, alias="date", description="Local day, YYYY-MM-DD (default: today UTC)"),
    tz_offset: int = Query(
        0, ge=-TZ_OFFSET_MAX_MINUTES, le=TZ_OFFSET_MAX_MINUTES, description="Browser timezone offset in minutes"
    ),
    baby_id: Optional[uuid.UUID] = Query(None),
    user_id: uuid.UUID = Depends(get_current_user_id),
    validator: ActivityValidator = Depends(get_validator),
):
    stats = await StatsAggregator(validator).get_daily_stats(user_id, target_date, tz_offset, baby_id)

    breakdown = None
    if stats.diaper_breakdown is not None:
        breakdown = DiaperBreakdown(wet=stats.diaper_breakdown.wet, dirty=stats.diaper_breakdown.dirty)

    return DailyStatsResponse(
        baby_id=stats.baby_id,
        date=stats.date,
        counts=stats.counts,
        totals=stats.totals,
        last_activities=stats.last_activities,
        diaper_breakdown=breakdown,
    )


# Used by: dashboard "time since" widgets
@router.get("/recent", response_model=RecentStatsResponse)
async def get_recent_stats(
    baby_id: Optional[uuid.UUID] = Query(None),
    user_id: uuid.UUID = Depends(get_current_user_id),
    validator: ActivityValidator = Depends(get_validator),
):
    stats = await StatsAggregator(validator).get_recent_stats(user_id, baby_id)

    response = RecentStatsResponse(baby_id=stats.baby_id, currently_sleeping=stats.currently_sleeping)
    if stats.last_feed:
        response.last_feed = LastFeedInfo(
            time=stats.last_feed.time,
            hours_ago=round(stats.last_feed.hours_ago, 2),
            type=stats.last_feed.feed_type,
            amount_ml=stats.last_feed.amount_ml,
        )
    if stats.last_diaper:
        response.last_diaper = LastDiaperInfo(
            time=stats.last_diaper.time,
            hours_ago=round(stats.last_diaper.hours_ago, 2),
            wet=stats.last_diaper.wet,
            dirty=stats.last_diaper.dirty,
        )
    if stats.last_sleep:
        response.last_sleep = LastSleepInfo(
            ended=stats.last_sleep.ended,
            duration_hours=round(stats.last_sleep.duration_hours, 2),
        )
    return response


# Used by: trends page
@router.get("/weekly", response_model=WeeklyStatsResponse)
async def get_weekly_stats(
    target_date: Optional[date] = Query(None, alias="date", description="Last local day of the window, YYYY-MM-DD"),
    tz_offset: int = Query(
        0, ge=-TZ_OFFSET_MAX_MINUTES, le=TZ_OFFSET_MAX_MINUTES, description="Browser timezone offset in minutes"
    ),
    baby_id: Optional[uuid.UUID] = Query(None),
    user_id: uuid.UUID = Depends(get_current_user_id),
    validator: ActivityValidator = Depends(get_validator),
):
    stats = await StatsAggregator(validator).get_weekly_stats(user_id, target_date, tz_offset, baby_id)

    growth = None
    if stats.growth is not None:
        growth = WeeklyGrowthInfo(
            weight_change_kg=stats.growth.weight_change_kg,
            height_change_cm=stats.growth.height_change_cm,
        )

    return WeeklyStatsResponse(
        baby_id=stats.baby_id,
        start_date=stats.start_date,
        end_date=stats.end_date,
        daily_averages={k: round(v, 2) for k, v in stats.daily_averages.items()},
        daily_breakdown=[
            DailyDataPoint(
                date=p.date,
                diaper_count=p.diaper_count,
                feed_count=p.feed_count,
                sleep_duration_hours=round(p.sleep_duration_hours, 2),
            )
            for p in stats.daily_breakdown
        ],
        growth_this_week=growth,
    )
