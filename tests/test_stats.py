"""Daily, weekly and recent statistics: pure aggregation and database-backed windows."""

import uuid
from datetime import date, datetime, timedelta

import pytest
import pytz

from bambino.api.models import ActivityRequest, TimerStartRequest, TimerStopRequest
from bambino.core.constants import TIMER_ACTIVITY_TYPES
from bambino.core.errors import ValidationError
from bambino.core.utils import utc_now
from bambino.db.models import (
    ActivityRecord, ActivityType, DiaperData, FeedData, GrowthData, PumpData, SleepData,
)
from bambino.services.activities_data import ActivityDataManager
from bambino.services.babies_data import BabyDataManager
from bambino.services.stats_aggregator import (
    StatsAggregator, growth_delta, summarize_day, summarize_week,
)
from bambino.services.timer import TimerEngine

UTC = pytz.utc
BABY_ID = uuid.uuid4()


def at(*args) -> datetime:
    return UTC.localize(datetime(*args))


def record(kind: ActivityType, start: datetime, end: datetime = None, **payload) -> ActivityRecord:
    return ActivityRecord(id=uuid.uuid4(), baby_id=BABY_ID, type=kind, start_time=start, end_time=end, **payload)


def growth(start: datetime, weight=None, height=None) -> ActivityRecord:
    return record(ActivityType.GROWTH, start, growth_data=GrowthData(weight_kg=weight, height_cm=height))


# ── pure aggregation ────────────────────────────────────────────────────────

def test_empty_day_has_zero_counts_and_no_diaper_breakdown():
    stats = summarize_day(BABY_ID, [], "2024-03-10")

    assert stats.counts == {t.value: 0 for t in ActivityType}
    assert all(v is None for v in stats.last_activities.values())
    assert stats.totals == {"feed_amount_ml": 0.0, "pump_amount_ml": 0.0, "sleep_hours": 0.0}
    assert stats.diaper_breakdown is None


def test_day_totals_and_last_occurrence():
    activities = [
        record(ActivityType.FEED, at(2024, 3, 10, 7), feed_data=FeedData(feed_type="bottle", amount_ml=120)),
        record(ActivityType.FEED, at(2024, 3, 10, 10), feed_data=FeedData(feed_type="breast_left")),
        record(ActivityType.PUMP, at(2024, 3, 10, 9), pump_data=PumpData(breast="both", amount_ml=90)),
        record(ActivityType.DIAPER, at(2024, 3, 10, 8), diaper_data=DiaperData(wet=True)),
        record(ActivityType.DIAPER, at(2024, 3, 10, 11), diaper_data=DiaperData(wet=True, dirty=True)),
        record(ActivityType.SLEEP, at(2024, 3, 10, 12), at(2024, 3, 10, 13, 30)),
        # still running, contributes a count but no hours
        record(ActivityType.SLEEP, at(2024, 3, 10, 20)),
    ]

    stats = summarize_day(BABY_ID, activities, "2024-03-10")

    assert stats.counts["feed"] == 2
    assert stats.counts["sleep"] == 2
    assert stats.totals["feed_amount_ml"] == 120
    assert stats.totals["pump_amount_ml"] == 90
    assert stats.totals["sleep_hours"] == pytest.approx(1.5)
    assert stats.last_activities["feed"] == at(2024, 3, 10, 10)
    assert stats.last_activities["growth"] is None
    assert stats.diaper_breakdown.wet == 2
    assert stats.diaper_breakdown.dirty == 1


def test_weekly_per_day_averages_cover_every_type():
    window_start = at(2024, 3, 4)
    feeds = [
        record(ActivityType.FEED, window_start + timedelta(days=d, hours=h), feed_data=FeedData(feed_type="bottle", amount_ml=100))
        for d in range(7) for h in (6, 18)
    ]
    diapers = [record(ActivityType.DIAPER, window_start + timedelta(days=2, hours=9), diaper_data=DiaperData(wet=True))]

    stats = summarize_week(BABY_ID, feeds + diapers, window_start, UTC)

    assert stats.daily_averages["feed_per_day"] == pytest.approx(2.0)
    assert stats.daily_averages["diaper_per_day"] == pytest.approx(1 / 7)
    assert stats.daily_averages["milestone_per_day"] == 0
    assert stats.daily_averages["feed_amount_ml_per_feed"] == pytest.approx(100)
    assert stats.daily_averages["feed_amount_ml_per_day"] == pytest.approx(200)
    assert len(stats.daily_breakdown) == 7
    assert stats.daily_breakdown[2].diaper_count == 1
    assert [p.feed_count for p in stats.daily_breakdown] == [2] * 7
    assert stats.start_date == "2024-03-04"
    assert stats.end_date == "2024-03-11"


def test_weekly_feed_amount_per_feed_is_zero_without_feeds():
    stats = summarize_week(BABY_ID, [], at(2024, 3, 4), UTC)
    assert stats.daily_averages["feed_amount_ml_per_feed"] == 0
    assert stats.growth is None


def test_weekly_buckets_by_local_day():
    zone = pytz.FixedOffset(-300)
    window_start = zone.localize(datetime(2024, 3, 4))
    # 03:00 UTC on the 5th is still the 4th in UTC-5
    late_feed = record(ActivityType.FEED, at(2024, 3, 5, 3), feed_data=FeedData(feed_type="bottle"))

    stats = summarize_week(BABY_ID, [late_feed], window_start, zone)

    assert stats.daily_breakdown[0].feed_count == 1
    assert stats.daily_breakdown[1].feed_count == 0


def test_growth_delta_between_first_and_last_measurement():
    delta = growth_delta([
        growth(at(2024, 3, 4, 9), weight=5.0, height=60.0),
        growth(at(2024, 3, 10, 9), weight=5.2),
    ])
    assert delta.weight_change_kg == pytest.approx(0.2, abs=0.001)
    assert delta.height_change_cm is None


def test_growth_delta_needs_two_measurements():
    assert growth_delta([growth(at(2024, 3, 4, 9), weight=5.0)]) is None
    assert growth_delta([]) is None


def test_growth_delta_tolerates_a_record_without_measurements():
    """A growth record without a payload leaves both changes unset."""
    bare = record(ActivityType.GROWTH, at(2024, 3, 4, 9))
    delta = growth_delta([bare, growth(at(2024, 3, 10, 9), weight=5.2, height=61.0)])
    assert delta.weight_change_kg is None
    assert delta.height_change_cm is None


# ── database-backed windows ─────────────────────────────────────────────────

async def log(user, kind, start, end=None, **payload):
    """Logs an activity; feeds, pumps and sleeps without an end last 20 minutes."""
    if end is None and kind.value in TIMER_ACTIVITY_TYPES:
        end = start + timedelta(minutes=20)
    request = ActivityRequest(type=kind, start_time=start, end_time=end, **payload)
    return await ActivityDataManager().create_activity(user.id, request)


async def test_daily_window_includes_start_and_excludes_end(user, baby):
    # tz_offset -120 is UTC+2: local 2024-03-10 is [03-09 22:00Z, 03-10 22:00Z)
    wet = {"diaper_data": DiaperData(wet=True)}
    await log(user, ActivityType.DIAPER, at(2024, 3, 9, 21, 59), **wet)
    await log(user, ActivityType.DIAPER, at(2024, 3, 9, 22, 0), **wet)
    await log(user, ActivityType.DIAPER, at(2024, 3, 10, 21, 59), **wet)
    await log(user, ActivityType.DIAPER, at(2024, 3, 10, 22, 0), **wet)

    stats = await StatsAggregator().get_daily_stats(user.id, date(2024, 3, 10), -120)

    assert stats.baby_id == baby.id
    assert stats.date == "2024-03-10"
    assert stats.counts["diaper"] == 2
    assert stats.diaper_breakdown.wet == 2
    assert stats.last_activities["diaper"] == at(2024, 3, 10, 21, 59)


async def test_daily_stats_for_newborn_are_empty(user):
    newborn = await BabyDataManager().create_baby(user.id, name="Lia", birth_date=utc_now().date())

    stats = await StatsAggregator().get_daily_stats(user.id, baby_id=newborn.id)

    assert all(count == 0 for count in stats.counts.values())
    assert stats.diaper_breakdown is None


async def test_stats_before_birth_are_rejected(user, baby):
    aggregator = StatsAggregator()
    with pytest.raises(ValidationError):
        await aggregator.get_daily_stats(user.id, date(2023, 12, 31))
    with pytest.raises(ValidationError):
        await aggregator.get_weekly_stats(user.id, date(2023, 12, 31))


async def test_stats_reject_offsets_of_a_day_or_more(user, baby):
    """Offsets are range-checked before any zone is built."""
    aggregator = StatsAggregator()
    with pytest.raises(ValidationError):
        await aggregator.get_daily_stats(user.id, date(2024, 3, 10), tz_offset_minutes=1440)
    with pytest.raises(ValidationError):
        await aggregator.get_weekly_stats(user.id, date(2024, 3, 10), tz_offset_minutes=-2000)


async def test_weekly_window_is_trailing_seven_days(user, baby):
    feed = {"feed_data": FeedData(feed_type="bottle", amount_ml=60)}
    await log(user, ActivityType.FEED, at(2024, 3, 3, 23, 59), **feed)   # before window
    await log(user, ActivityType.FEED, at(2024, 3, 4, 0, 0), **feed)     # first day
    await log(user, ActivityType.FEED, at(2024, 3, 10, 23, 0), **feed)   # last day
    await log(user, ActivityType.FEED, at(2024, 3, 11, 0, 0), **feed)    # window end, excluded
    await log(user, ActivityType.GROWTH, at(2024, 3, 5, 9), growth_data=GrowthData(weight_kg=5.0, height_cm=58.0))
    await log(user, ActivityType.GROWTH, at(2024, 3, 9, 9), growth_data=GrowthData(weight_kg=5.2, height_cm=58.5))

    stats = await StatsAggregator().get_weekly_stats(user.id, date(2024, 3, 10))

    assert stats.start_date == "2024-03-04"
    assert stats.end_date == "2024-03-11"
    assert [p.feed_count for p in stats.daily_breakdown] == [1, 0, 0, 0, 0, 0, 1]
    assert stats.daily_averages["feed_per_day"] == pytest.approx(2 / 7)
    assert stats.daily_averages["feed_amount_ml_per_feed"] == pytest.approx(60)
    assert stats.growth.weight_change_kg == pytest.approx(0.2, abs=0.001)
    assert stats.growth.height_change_cm == pytest.approx(0.5)


async def test_weekly_sleep_hours_use_closed_sleeps(user, baby):
    await log(user, ActivityType.SLEEP, at(2024, 3, 6, 13), at(2024, 3, 6, 16, 30), sleep_data=SleepData(quality=4))

    stats = await StatsAggregator().get_weekly_stats(user.id, date(2024, 3, 10))

    assert stats.daily_breakdown[2].sleep_duration_hours == pytest.approx(3.5)
    assert stats.daily_averages["sleep_hours_per_day"] == pytest.approx(0.5)
    assert stats.growth is None


async def test_recent_stats_follow_sleep_timer(user, baby, clock):
    aggregator = StatsAggregator(clock=clock)
    engine = TimerEngine(clock=clock)

    empty = await aggregator.get_recent_stats(user.id)
    assert empty.last_feed is None
    assert empty.last_diaper is None
    assert empty.last_sleep is None
    assert empty.currently_sleeping is False

    sleep = await engine.start_timer(user.id, TimerStartRequest(type=ActivityType.SLEEP))
    during = await aggregator.get_recent_stats(user.id)
    assert during.currently_sleeping is True
    assert during.last_sleep is None

    clock.advance(minutes=90)
    await engine.stop_timer(user.id, sleep.id, TimerStopRequest(quality=4))
    after = await aggregator.get_recent_stats(user.id)
    assert after.currently_sleeping is False
    assert after.last_sleep.ended == clock.now
    assert after.last_sleep.duration_hours == pytest.approx(1.5)


async def test_recent_stats_report_last_feed_and_diaper(user, baby, clock):
    await log(user, ActivityType.FEED, clock.now - timedelta(hours=5), feed_data=FeedData(feed_type="bottle", amount_ml=90))
    await log(user, ActivityType.FEED, clock.now - timedelta(hours=2), feed_data=FeedData(feed_type="breast_right"))
    await log(user, ActivityType.DIAPER, clock.now - timedelta(minutes=30), diaper_data=DiaperData(dirty=True))

    stats = await StatsAggregator(clock=clock).get_recent_stats(user.id)

    assert stats.last_feed.hours_ago == pytest.approx(2)
    assert stats.last_feed.feed_type == "breast_right"
    assert stats.last_feed.amount_ml is None
    assert stats.last_diaper.hours_ago == pytest.approx(0.5)
    assert stats.last_diaper.dirty is True
    assert stats.last_diaper.wet is False
