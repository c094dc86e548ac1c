"""Activity log CRUD, detail-row consistency and business-rule validation."""

import uuid
from datetime import date, datetime, timedelta

import pytest
import pytz
from pydantic import ValidationError as PydanticValidationError

from bambino.api.models import ActivityRequest, TimerStartRequest, TimerStopRequest
from bambino.core.errors import NotFoundError, TimerRunningError, ValidationError
from bambino.db.models import (
    ActivityType, DiaperData, FeedData, GrowthData, HealthData, MilestoneData, PumpData, SleepData,
)
from bambino.services.activities_data import ActivityDataManager
from bambino.services.babies_data import BabyDataManager
from bambino.services.timer import TimerEngine
from bambino.services.users_data import UserDataManager

START = pytz.utc.localize(datetime(2024, 3, 10, 9, 0))


def feed_request(**overrides) -> ActivityRequest:
    fields = {
        "type": ActivityType.FEED,
        "start_time": START,
        "end_time": START + timedelta(minutes=15),
        "feed_data": FeedData(feed_type="bottle", amount_ml=110, duration_minutes=15),
    }
    fields.update(overrides)
    return ActivityRequest(**fields)


async def test_create_defaults_to_most_recent_baby(user, baby):
    younger = await BabyDataManager().create_baby(user.id, name="Tal", birth_date=date(2024, 2, 20))

    record = await ActivityDataManager().create_activity(user.id, feed_request())

    assert record.baby_id == younger.id
    assert record.feed_data.amount_ml == 110
    assert record.start_time == START


async def test_update_changing_type_replaces_detail_row(user, baby):
    manager = ActivityDataManager()
    created = await manager.create_activity(user.id, feed_request())

    updated = await manager.update_activity(
        user.id,
        created.id,
        ActivityRequest(type=ActivityType.DIAPER, start_time=START, diaper_data=DiaperData(wet=True, color="yellow")),
    )

    assert updated.type == ActivityType.DIAPER
    assert updated.feed_data is None
    assert updated.diaper_data.color == "yellow"

    counts = await manager.count_detail_rows(created.id)
    assert counts["feed"] == 0
    assert counts["diaper"] == 1

    fetched = await manager.get_activity(user.id, created.id)
    assert fetched.diaper_data.wet is True
    assert fetched.end_time is None


async def test_update_same_type_keeps_single_detail_row(user, baby):
    manager = ActivityDataManager()
    created = await manager.create_activity(user.id, feed_request())

    await manager.update_activity(
        user.id, created.id, feed_request(feed_data=FeedData(feed_type="breast_left", duration_minutes=20))
    )

    counts = await manager.count_detail_rows(created.id)
    assert sum(counts.values()) == 1
    fetched = await manager.get_activity(user.id, created.id)
    assert fetched.feed_data.feed_type == "breast_left"
    assert fetched.feed_data.amount_ml is None


async def test_sleep_without_payload_has_no_detail(user, baby):
    manager = ActivityDataManager()
    record = await manager.create_activity(
        user.id, ActivityRequest(type=ActivityType.SLEEP, start_time=START, end_time=START + timedelta(hours=1))
    )
    assert record.sleep_data is None
    assert sum((await manager.count_detail_rows(record.id)).values()) == 0


async def test_delete_removes_detail_rows(user, baby):
    manager = ActivityDataManager()
    record = await manager.create_activity(user.id, feed_request())

    await manager.delete_activity(user.id, record.id)

    with pytest.raises(NotFoundError):
        await manager.get_activity(user.id, record.id)
    assert sum((await manager.count_detail_rows(record.id)).values()) == 0


async def test_foreign_activity_is_not_found(user, other_user, baby):
    manager = ActivityDataManager()
    record = await manager.create_activity(user.id, feed_request())

    with pytest.raises(NotFoundError):
        await manager.get_activity(other_user.id, record.id)
    with pytest.raises(NotFoundError):
        await manager.update_activity(other_user.id, record.id, feed_request())
    with pytest.raises(NotFoundError):
        await manager.delete_activity(other_user.id, record.id)
    with pytest.raises(NotFoundError):
        await manager.delete_activity(user.id, uuid.uuid4())


async def test_list_filters_and_paginates(user, baby):
    manager = ActivityDataManager()
    for i in range(5):
        start = START + timedelta(hours=i)
        await manager.create_activity(user.id, feed_request(start_time=start, end_time=start + timedelta(minutes=15)))
    await manager.create_activity(
        user.id, ActivityRequest(type=ActivityType.DIAPER, start_time=START + timedelta(days=1), diaper_data=DiaperData(dirty=True))
    )

    records, total, total_pages = await manager.list_activities(user.id, page=1, page_size=4)
    assert total == 6
    assert total_pages == 2
    assert records[0].type == ActivityType.DIAPER
    assert records[1].start_time == START + timedelta(hours=4)

    feeds, total, _ = await manager.list_activities(user.id, activity_type=ActivityType.FEED)
    assert total == 5
    assert all(r.type == ActivityType.FEED for r in feeds)

    same_day, total, _ = await manager.list_activities(user.id, start_date=date(2024, 3, 10), end_date=date(2024, 3, 10))
    assert total == 5


async def test_deleting_user_cascades_everything(user, baby):
    manager = ActivityDataManager()
    record = await manager.create_activity(user.id, feed_request())
    await TimerEngine().start_timer(user.id, TimerStartRequest(type=ActivityType.SLEEP))

    await UserDataManager().delete_user(user.id)

    assert await UserDataManager().get_user(user.id) is None
    assert await BabyDataManager().list_babies(user.id) == []
    assert sum((await manager.count_detail_rows(record.id)).values()) == 0


async def test_deleting_baby_cascades_activities(user, baby):
    manager = ActivityDataManager()
    record = await manager.create_activity(user.id, feed_request(baby_id=baby.id))

    await BabyDataManager().delete_baby(user.id, baby.id)

    with pytest.raises(NotFoundError):
        await manager.get_activity(user.id, record.id)
    assert sum((await manager.count_detail_rows(record.id)).values()) == 0


# ── validation rules ────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "request_fields",
    [
        {"type": ActivityType.FEED, "feed_data": FeedData(amount_ml=100)},
        {"type": ActivityType.FEED},
        {"type": ActivityType.PUMP, "pump_data": PumpData(amount_ml=50)},
        {"type": ActivityType.DIAPER, "diaper_data": DiaperData()},
        {"type": ActivityType.GROWTH, "growth_data": GrowthData()},
        {"type": ActivityType.HEALTH, "health_data": HealthData(record_type="vaccine")},
        {"type": ActivityType.HEALTH, "health_data": HealthData(record_type="checkup", vaccine_name="MMR")},
        {"type": ActivityType.DIAPER, "diaper_data": DiaperData(wet=True), "feed_data": FeedData(feed_type="bottle")},
        {"type": ActivityType.FEED, "feed_data": FeedData(feed_type="bottle"), "end_time": START - timedelta(minutes=1)},
    ],
)
async def test_rule_violations_are_rejected(user, baby, request_fields):
    with pytest.raises(ValidationError):
        await ActivityDataManager().create_activity(user.id, ActivityRequest(start_time=START, **request_fields))


async def test_valid_records_of_every_kind_are_accepted(user, baby):
    manager = ActivityDataManager()
    requests = [
        feed_request(),
        ActivityRequest(type=ActivityType.PUMP, start_time=START, pump_data=PumpData(breast="right", amount_ml=70)),
        ActivityRequest(type=ActivityType.SLEEP, start_time=START, sleep_data=SleepData(location="stroller", quality=3)),
        ActivityRequest(type=ActivityType.GROWTH, start_time=START, growth_data=GrowthData(head_circumference_cm=38.5)),
        ActivityRequest(type=ActivityType.HEALTH, start_time=START, health_data=HealthData(record_type="vaccine", vaccine_name="Hep B")),
        ActivityRequest(type=ActivityType.MILESTONE, start_time=START, milestone_data=MilestoneData(milestone_type="motor")),
    ]
    for request in requests:
        record = await manager.create_activity(user.id, request)
        assert record.detail is not None


async def test_sleep_rejected_when_tracking_disabled(user):
    baby = await BabyDataManager().create_baby(user.id, name="Ari", birth_date=date(2024, 2, 1), track_sleep=False)
    with pytest.raises(ValidationError):
        await ActivityDataManager().create_activity(
            user.id, ActivityRequest(baby_id=baby.id, type=ActivityType.SLEEP, start_time=START)
        )


async def test_open_feed_is_rejected_while_a_feed_timer_runs(user, baby, clock):
    """Logging an open feed goes through the same one-open-timer rule as starting one."""
    await TimerEngine(clock=clock).start_timer(user.id, TimerStartRequest(type=ActivityType.FEED))

    with pytest.raises(TimerRunningError):
        await ActivityDataManager().create_activity(user.id, feed_request(end_time=None))

    open_pump = await ActivityDataManager().create_activity(
        user.id, ActivityRequest(type=ActivityType.PUMP, start_time=START, pump_data=PumpData(breast="left"))
    )
    assert open_pump.is_open


async def test_reopening_a_feed_is_rejected_while_another_is_open(user, baby, clock):
    """An update that clears the end time counts as opening a timer."""
    manager = ActivityDataManager()
    engine = TimerEngine(clock=clock)
    closed = await manager.create_activity(user.id, feed_request())
    running = await engine.start_timer(user.id, TimerStartRequest(type=ActivityType.FEED))

    with pytest.raises(TimerRunningError):
        await manager.update_activity(user.id, closed.id, feed_request(end_time=None))
    assert (await manager.get_activity(user.id, closed.id)).end_time == START + timedelta(minutes=15)

    clock.advance(minutes=10)
    await engine.stop_timer(user.id, running.id, TimerStopRequest())
    reopened = await manager.update_activity(user.id, closed.id, feed_request(end_time=None))
    assert reopened.is_open
    # an open timer may be edited while it stays open
    edited = await manager.update_activity(user.id, closed.id, feed_request(end_time=None, notes="left side"))
    assert edited.notes == "left side"


async def test_open_non_timer_activities_are_not_limited(user, baby):
    manager = ActivityDataManager()
    for minutes in (0, 30):
        await manager.create_activity(
            user.id,
            ActivityRequest(type=ActivityType.DIAPER, start_time=START + timedelta(minutes=minutes), diaper_data=DiaperData(wet=True)),
        )
    _, total, _ = await manager.list_activities(user.id, activity_type=ActivityType.DIAPER)
    assert total == 2

def test_field_ranges_are_declared_on_payloads():
    with pytest.raises(PydanticValidationError):
        FeedData(feed_type="bottle", amount_ml=1001)
    with pytest.raises(PydanticValidationError):
        SleepData(quality=6)
    with pytest.raises(PydanticValidationError):
        DiaperData(wet=True, color="purple")
    with pytest.raises(PydanticValidationError):
        GrowthData(weight_kg=0.1)
    with pytest.raises(PydanticValidationError):
        ActivityRequest(type=ActivityType.FEED, start_time=START, notes="x" * 1001)


def test_request_times_are_normalized_to_utc():
    local = pytz.FixedOffset(120).localize(datetime(2024, 3, 10, 11, 0))
    request = feed_request(start_time=local)
    assert request.start_time == START
    assert request.start_time.utcoffset() == timedelta(0)
