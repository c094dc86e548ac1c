"""User lookups for the identity dependency, seeding and account removal."""

import logging
import uuid
from typing import Optional

from sqlalchemy import delete, select

from ..core.constants import USERNAME_MAX_CHARS
from ..core.database import get_database
from ..core.errors import NotFoundError, ValidationError
from ..db.models import User
from ..db.tables import UserRow

logger = logging.getLogger(__name__)


class UserDataManager:
    def __init__(self):
        self.database = get_database()

    # Used by: api/deps.py (identity check on every request)
    async def get_user(self, user_id: uuid.UUID) -> Optional[User]:
        async with self.database.session() as session:
            row = await session.get(UserRow, user_id)
            return User.model_validate(row) if row else None

    # Used by: seed_demo_data.py (re-seeding replaces the demo account)
    async def get_user_by_username(self, username: str) -> Optional[User]:
        async with self.database.session() as session:
            result = await session.execute(select(UserRow).where(UserRow.username == username))
            row = result.scalars().first()
            return User.model_validate(row) if row else None

    # Used by: seed_demo_data.py, tests
    async def create_user(self, username: str) -> User:
        username = username.strip()
        if not username:
            raise ValidationError("username cannot be empty")
        if len(username) > USERNAME_MAX_CHARS:
            raise ValidationError(f"username must be at most {USERNAME_MAX_CHARS} characters")

        async with self.database.session() as session:
            async with session.begin():
                existing = await session.execute(select(UserRow.id).where(UserRow.username == username))
                if existing.first():
                    raise ValidationError("Username already exists")

                row = UserRow(username=username)
                session.add(row)

            logger.info(f"User created: {username}")
            return User.model_validate(row)

    # Used by: seed_demo_data.py, tests. Babies, activities and detail rows go with the user
    async def delete_user(self, user_id: uuid.UUID) -> None:
        async with self.database.session() as session:
            async with session.begin():
                result = await session.execute(delete(UserRow).where(UserRow.id == user_id))
                if result.rowcount == 0:
                    raise NotFoundError("user not found")

        logger.info(f"User {user_id} deleted")
