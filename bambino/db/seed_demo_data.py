"""Seeds DB with a demo user, one baby and a week of activities. WARNING: Replaces the existing demo user."""
import asyncio
import random
from datetime import datetime, timedelta

from bambino.api.models import ActivityRequest, TimerStartRequest
from bambino.core.database import get_database
from bambino.core.settings import settings
from bambino.core.utils import utc_now
from bambino.db.models import (
    ActivityType, FeedData, PumpData, DiaperData, SleepData, GrowthData, MilestoneData,
)
from bambino.services.activities_data import ActivityDataManager
from bambino.services.babies_data import BabyDataManager
from bambino.services.timer import TimerEngine
from bambino.services.users_data import UserDataManager


SEED = 42
NOW = utc_now().replace(second=0, microsecond=0)
DAYS_OF_DATA = 7
DEMO_USERNAME = "demo"

BABY_DATA = {
    "name": "Emma",
    "birth_date": NOW.date() - timedelta(days=60),
    "birth_weight": 3.4,
    "birth_height": 50.0,
}

# Feeds every ~3h, alternating methods
FEED_INTERVAL_HOURS = 3
FEED_METHODS = ["bottle", "breast_left", "breast_right"]
BOTTLE_AMOUNT_RANGE = (90, 150)

DIAPERS_PER_DAY = (6, 9)
NAP_HOURS = (10, 13, 16)
NIGHT_SLEEP_START_HOUR = 20

WEIGHT_START_KG = 5.0
WEIGHT_GAIN_PER_DAY_KG = 0.03
HEIGHT_START_CM = 57.0


def set_seed(seed: int):
    random.seed(seed)


def _at(day_start: datetime, hour: float) -> datetime:
    return day_start + timedelta(minutes=int(hour * 60) + random.randint(-15, 15))


def build_day(day_start: datetime, day_number: int) -> list:
    """Requests for one UTC day; anything that would start in the future is dropped."""
    requests = []

    for hour in range(1, 24, FEED_INTERVAL_HOURS):
        start = _at(day_start, hour)
        method = random.choice(FEED_METHODS)
        feed = FeedData(feed_type=method, duration_minutes=random.randint(10, 25))
        if method == "bottle":
            feed.amount_ml = float(random.randint(*BOTTLE_AMOUNT_RANGE))
        requests.append(ActivityRequest(
            type=ActivityType.FEED,
            start_time=start,
            end_time=start + timedelta(minutes=feed.duration_minutes),
            feed_data=feed,
        ))

    for _ in range(random.randint(*DIAPERS_PER_DAY)):
        wet = random.random() < 0.85
        requests.append(ActivityRequest(
            type=ActivityType.DIAPER,
            start_time=_at(day_start, random.uniform(0, 23.5)),
            diaper_data=DiaperData(
                wet=wet,
                dirty=not wet or random.random() < 0.3,
                color=random.choice(["yellow", "green", "brown"]),
                consistency=random.choice(["soft", "normal"]),
            ),
        ))

    for hour in NAP_HOURS:
        start = _at(day_start, hour)
        requests.append(ActivityRequest(
            type=ActivityType.SLEEP,
            start_time=start,
            end_time=start + timedelta(minutes=random.randint(40, 110)),
            sleep_data=SleepData(location="crib", quality=random.randint(2, 5)),
        ))

    night_start = _at(day_start, NIGHT_SLEEP_START_HOUR)
    requests.append(ActivityRequest(
        type=ActivityType.SLEEP,
        start_time=night_start,
        end_time=night_start + timedelta(hours=random.uniform(3, 5)),
        sleep_data=SleepData(location="crib", quality=random.randint(3, 5)),
    ))

    if day_number % 2 == 0:
        start = _at(day_start, 9)
        requests.append(ActivityRequest(
            type=ActivityType.PUMP,
            start_time=start,
            end_time=start + timedelta(minutes=20),
            pump_data=PumpData(breast="both", amount_ml=float(random.randint(60, 140)), duration_minutes=20),
        ))

    if day_number in (0, DAYS_OF_DATA - 1):
        requests.append(ActivityRequest(
            type=ActivityType.GROWTH,
            start_time=_at(day_start, 11),
            growth_data=GrowthData(
                weight_kg=round(WEIGHT_START_KG + WEIGHT_GAIN_PER_DAY_KG * day_number, 2),
                height_cm=round(HEIGHT_START_CM + 0.1 * day_number, 1),
            ),
        ))

    if day_number == 3:
        requests.append(ActivityRequest(
            type=ActivityType.MILESTONE,
            start_time=_at(day_start, 15),
            milestone_data=MilestoneData(milestone_type="social", description="First social smile"),
        ))

    return [r for r in requests if r.start_time < NOW and (r.end_time is None or r.end_time < NOW)]


async def seed_database():
    if settings.is_production:
        raise SystemExit("Refusing to seed demo data when ENV=production")

    print("\n" + "=" * 60)
    print(f"Seeding {DAYS_OF_DATA} days of demo data into {settings.DATABASE_URL}")
    print("=" * 60 + "\n")

    set_seed(SEED)

    db = get_database()
    await db.connect(settings.DATABASE_URL)

    try:
        await db.create_tables()

        users = UserDataManager()
        existing = await users.get_user_by_username(DEMO_USERNAME)
        if existing:
            await users.delete_user(existing.id)
            print(f"Removed previous demo user {existing.id}")

        user = await users.create_user(DEMO_USERNAME)
        baby = await BabyDataManager().create_baby(user.id, **BABY_DATA)

        activities = ActivityDataManager()
        first_day = datetime.combine(NOW.date() - timedelta(days=DAYS_OF_DATA - 1), datetime.min.time(), NOW.tzinfo)
        created = 0
        for day_number in range(DAYS_OF_DATA):
            day_start = first_day + timedelta(days=day_number)
            for request in build_day(day_start, day_number):
                request.baby_id = baby.id
                await activities.create_activity(user.id, request)
                created += 1

        # leave a sleep timer running so the dashboard has something live
        timers = TimerEngine(clock=lambda: NOW - timedelta(minutes=35))
        await timers.start_timer(
            user.id,
            TimerStartRequest(baby_id=baby.id, type=ActivityType.SLEEP, sleep_data=SleepData(location="crib")),
        )

        print(f"Demo user:  {user.username} (X-User-ID: {user.id})")
        print(f"Demo baby:  {baby.name} ({baby.id})")
        print(f"Activities: {created} + 1 running sleep timer")
        print("\nSeeding completed successfully!")

    except Exception as e:
        print(f"\nError during seeding: {e}")
        raise
    finally:
        await db.disconnect()


def main():
    asyncio.run(seed_database())


if __name__ == "__main__":
    main()
