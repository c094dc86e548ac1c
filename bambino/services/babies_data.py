"""Baby-related database operations, scoped to the owning user."""

import logging
import uuid
from datetime import date
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_database
from ..core.errors import NotFoundError
from ..core.utils import utc_now
from ..db.models import Baby
from ..db.tables import BabyRow
from .validation import ActivityValidator

logger = logging.getLogger(__name__)


# Used by: BabyDataManager, activities_data.py, timer.py (ownership-checked lookup inside an open session)
async def load_owned_baby(
        session: AsyncSession,
        user_id: uuid.UUID,
        baby_id: Optional[uuid.UUID] = None,
) -> BabyRow:
    """Specific baby if baby_id is given, else the user's most recently created one."""
    query = select(BabyRow).where(BabyRow.user_id == user_id)
    if baby_id is not None:
        query = query.where(BabyRow.id == baby_id)
    else:
        query = query.order_by(BabyRow.created_at.desc())

    result = await session.execute(query.limit(1))
    row = result.scalars().first()
    if row is None:
        raise NotFoundError("baby not found")
    return row


class BabyDataManager:
    def __init__(self, validator: Optional[ActivityValidator] = None):
        self.database = get_database()
        self.validator = validator or ActivityValidator()

    # Used by: babies.py (GET /babies)
    async def list_babies(self, user_id: uuid.UUID) -> List[Baby]:
        async with self.database.session() as session:
            result = await session.execute(
                select(BabyRow)
                .where(BabyRow.user_id == user_id)
                .order_by(BabyRow.created_at.desc())
            )
            return [Baby.model_validate(row) for row in result.scalars().all()]

    # Used by: babies.py, stats_aggregator.py
    async def get_baby(self, user_id: uuid.UUID, baby_id: Optional[uuid.UUID] = None) -> Baby:
        async with self.database.session() as session:
            row = await load_owned_baby(session, user_id, baby_id)
            return Baby.model_validate(row)

    # Used by: babies.py (POST /babies), seed_demo_data.py, tests
    async def create_baby(
            self,
            user_id: uuid.UUID,
            name: str,
            birth_date: date,
            birth_weight: Optional[float] = None,
            birth_height: Optional[float] = None,
            track_sleep: bool = True,
    ) -> Baby:
        self.validator.validate_birth_date(birth_date, utc_now().date())

        async with self.database.session() as session:
            async with session.begin():
                row = BabyRow(
                    user_id=user_id,
                    name=name,
                    birth_date=birth_date,
                    birth_weight=birth_weight,
                    birth_height=birth_height,
                    track_sleep=track_sleep,
                )
                session.add(row)

            logger.info(f"Baby registered: {name} → user_id={user_id}")
            return Baby.model_validate(row)

    # Used by: babies.py (PUT /babies/{baby_id})
    async def update_baby(
            self,
            user_id: uuid.UUID,
            baby_id: uuid.UUID,
            name: str,
            birth_date: date,
            birth_weight: Optional[float] = None,
            birth_height: Optional[float] = None,
            track_sleep: bool = True,
    ) -> Baby:
        self.validator.validate_birth_date(birth_date, utc_now().date())

        async with self.database.session() as session:
            async with session.begin():
                row = await load_owned_baby(session, user_id, baby_id)
                row.name = name
                row.birth_date = birth_date
                row.birth_weight = birth_weight
                row.birth_height = birth_height
                row.track_sleep = track_sleep

            logger.info(f"Updated baby {baby_id}")
            return Baby.model_validate(row)

    # Used by: babies.py (DELETE /babies/{baby_id}); activities cascade
    async def delete_baby(self, user_id: uuid.UUID, baby_id: uuid.UUID) -> None:
        async with self.database.session() as session:
            async with session.begin():
                result = await session.execute(
                    delete(BabyRow).where(BabyRow.id == baby_id, BabyRow.user_id == user_id)
                )
                if result.rowcount == 0:
                    raise NotFoundError("baby not found")

        logger.info(f"Deleted baby {baby_id}")
