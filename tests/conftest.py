"""Shared fixtures: a fresh SQLite database per test, a user, a baby and an API client."""

from datetime import datetime, timedelta

import httpx
import pytest
import pytz

from bambino.core.database import get_database
from bambino.main import app
from bambino.services.babies_data import BabyDataManager
from bambino.services.users_data import UserDataManager


class FakeClock:
    """Returns a fixed instant; advance() moves it forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
async def database(tmp_path):
    db = get_database()
    await db.connect(f"sqlite+aiosqlite:///{tmp_path}/test.db")
    await db.create_tables()
    yield db
    await db.disconnect()


@pytest.fixture
async def user(database):
    return await UserDataManager().create_user("parent")


@pytest.fixture
async def other_user(database):
    return await UserDataManager().create_user("stranger")


@pytest.fixture
async def baby(user):
    return await BabyDataManager().create_baby(
        user.id, name="Noa", birth_date=datetime(2024, 1, 1).date(), birth_weight=3.2
    )


@pytest.fixture
def clock():
    return FakeClock(pytz.utc.localize(datetime(2024, 3, 10, 8, 0)))


@pytest.fixture
async def client(user):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-User-ID": str(user.id)},
    ) as client:
        yield client
