"""Activity log operations: CRUD over activities and their type-specific detail rows.

Every activity carries at most one detail row and it always matches the
activity's type: writes go through replace_detail(), which deletes whatever
detail rows exist before inserting the new one, inside the caller's transaction.
"""

import logging
import math
import uuid
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

from pydantic import BaseModel
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from ..core.constants import ACTIVITIES_DEFAULT_PAGE_SIZE, ACTIVITIES_MAX_PAGE_SIZE, TIMER_ACTIVITY_TYPES
from ..core.database import get_database
from ..core.errors import InternalError, NotFoundError, TimerRunningError
from ..core.utils import to_utc
from ..db.models import ActivityRecord, ActivityType, Baby
from ..db.tables import ActivityRow, BabyRow, DETAIL_RELATIONSHIPS, DETAIL_TABLES
from .babies_data import load_owned_baby
from .validation import ActivityValidator

logger = logging.getLogger(__name__)


# Used by: ActivityDataManager, timer.py (lookup restricted to the caller's babies)
def owned_activity_query(user_id: uuid.UUID, activity_id: uuid.UUID):
    return (
        select(ActivityRow)
        .join(BabyRow, ActivityRow.baby_id == BabyRow.id)
        .where(ActivityRow.id == activity_id, BabyRow.user_id == user_id)
    )


# Used by: create/update below, timer.py (start). At most one open timer per (baby, type)
async def ensure_no_open_timer(
        session: AsyncSession,
        baby: BabyRow,
        activity_type: ActivityType,
        exclude_id: Optional[uuid.UUID] = None,
) -> None:
    query = select(ActivityRow.id).where(
        ActivityRow.baby_id == baby.id,
        ActivityRow.type == activity_type.value,
        ActivityRow.end_time.is_(None),
    )
    if exclude_id is not None:
        query = query.where(ActivityRow.id != exclude_id)
    running = await session.execute(query.limit(1))
    if running.first() is not None:
        raise TimerRunningError(f"a {activity_type.value} timer is already running for {baby.name}")


# Used by: create/update below, timer.py (start)
async def flush_activity(session: AsyncSession, baby: BabyRow, activity: ActivityRow) -> None:
    """Flush the activity row; a concurrent open timer of the same type trips the unique index."""
    # read before flushing, a failed flush expires loaded state
    open_timer = activity.end_time is None and activity.type in TIMER_ACTIVITY_TYPES
    activity_type, baby_id, baby_name = activity.type, baby.id, baby.name
    try:
        await session.flush()
    except IntegrityError:
        if not open_timer:
            raise
        logger.warning(f"Concurrent {activity_type} timer for baby {baby_id} rejected by the store")
        raise TimerRunningError(f"a {activity_type} timer is already running for {baby_name}")


# Used by: create/update below, timer.py (start, stop)
async def replace_detail(
        session: AsyncSession,
        activity: ActivityRow,
        payload: Optional[BaseModel],
):
    """Drop every detail row of the activity, then insert one for its current type."""
    for table in DETAIL_TABLES.values():
        # ORM-enabled delete also evicts matching rows from the identity map
        await session.execute(delete(table).where(table.activity_id == activity.id))
    for relationship_name in DETAIL_RELATIONSHIPS.values():
        set_committed_value(activity, relationship_name, None)

    if payload is None:
        return None

    detail_table = DETAIL_TABLES.get(activity.type)
    if detail_table is None:
        raise InternalError(f"no detail table for activity type {activity.type}")

    detail = detail_table(activity_id=activity.id, **payload.model_dump())
    session.add(detail)
    set_committed_value(activity, DETAIL_RELATIONSHIPS[activity.type], detail)
    return detail


class ActivityDataManager:
    def __init__(self, validator: Optional[ActivityValidator] = None):
        self.database = get_database()
        self.validator = validator or ActivityValidator()

    # Used by: activities.py (GET /activities)
    async def list_activities(
            self,
            user_id: uuid.UUID,
            baby_id: Optional[uuid.UUID] = None,
            activity_type: Optional[ActivityType] = None,
            start_date: Optional[date] = None,
            end_date: Optional[date] = None,
            page: int = 1,
            page_size: int = ACTIVITIES_DEFAULT_PAGE_SIZE,
    ) -> Tuple[List[ActivityRecord], int, int]:
        """Returns (activities, total, total_pages), newest first."""
        page = max(page, 1)
        if page_size < 1 or page_size > ACTIVITIES_MAX_PAGE_SIZE:
            page_size = ACTIVITIES_DEFAULT_PAGE_SIZE

        async with self.database.session() as session:
            baby = await load_owned_baby(session, user_id, baby_id)

            filters = [ActivityRow.baby_id == baby.id]
            if activity_type is not None:
                filters.append(ActivityRow.type == ActivityType(activity_type).value)
            if start_date is not None:
                filters.append(ActivityRow.start_time >= to_utc(datetime.combine(start_date, datetime.min.time())))
            if end_date is not None:
                end_of_range = datetime.combine(end_date + timedelta(days=1), datetime.min.time())
                filters.append(ActivityRow.start_time < to_utc(end_of_range))

            total = (await session.execute(
                select(func.count()).select_from(ActivityRow).where(*filters)
            )).scalar_one()

            result = await session.execute(
                select(ActivityRow)
                .where(*filters)
                .order_by(ActivityRow.start_time.desc())
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            records = [ActivityRecord.from_row(row) for row in result.scalars().all()]

        total_pages = math.ceil(total / page_size) if total else 0
        return records, total, total_pages

    # Used by: activities.py (GET /activities/{activity_id}), tests
    async def get_activity(self, user_id: uuid.UUID, activity_id: uuid.UUID) -> ActivityRecord:
        async with self.database.session() as session:
            result = await session.execute(owned_activity_query(user_id, activity_id))
            row = result.scalars().first()
            if row is None:
                raise NotFoundError("activity not found")
            return ActivityRecord.from_row(row)

    # Used by: activities.py (POST /activities), seed_demo_data.py
    async def create_activity(self, user_id: uuid.UUID, request) -> ActivityRecord:
        async with self.database.session() as session:
            async with session.begin():
                baby = await load_owned_baby(session, user_id, request.baby_id)
                payload = self.validator.validate_activity(request, Baby.model_validate(baby))
                activity_type = ActivityType(request.type)
                if request.end_time is None and activity_type.value in TIMER_ACTIVITY_TYPES:
                    await ensure_no_open_timer(session, baby, activity_type)

                activity = ActivityRow(
                    baby_id=baby.id,
                    type=activity_type.value,
                    start_time=request.start_time,
                    end_time=request.end_time,
                    notes=request.notes or "",
                )
                session.add(activity)
                await flush_activity(session, baby, activity)
                await replace_detail(session, activity, payload)

            logger.info(f"Created {activity.type} activity {activity.id} for baby {baby.id}")
            return ActivityRecord.from_row(activity)

    # Used by: activities.py (PUT /activities/{activity_id})
    async def update_activity(self, user_id: uuid.UUID, activity_id: uuid.UUID, request) -> ActivityRecord:
        async with self.database.session() as session:
            async with session.begin():
                result = await session.execute(owned_activity_query(user_id, activity_id))
                activity = result.scalars().first()
                if activity is None:
                    raise NotFoundError("activity not found")

                baby = await session.get(BabyRow, activity.baby_id)
                payload = self.validator.validate_activity(request, Baby.model_validate(baby))
                activity_type = ActivityType(request.type)
                if request.end_time is None and activity_type.value in TIMER_ACTIVITY_TYPES:
                    await ensure_no_open_timer(session, baby, activity_type, exclude_id=activity.id)

                previous_type = activity.type
                activity.type = activity_type.value
                activity.start_time = request.start_time
                activity.end_time = request.end_time
                activity.notes = request.notes or ""
                await flush_activity(session, baby, activity)

                await replace_detail(session, activity, payload)

            if previous_type != activity.type:
                logger.info(f"Activity {activity_id} changed type {previous_type} → {activity.type}")
            logger.info(f"Updated activity {activity_id}")
            return ActivityRecord.from_row(activity)

    # Used by: activities.py (DELETE /activities/{activity_id}); detail rows cascade
    async def delete_activity(self, user_id: uuid.UUID, activity_id: uuid.UUID) -> None:
        async with self.database.session() as session:
            async with session.begin():
                owned = select(ActivityRow.id).join(BabyRow, ActivityRow.baby_id == BabyRow.id).where(
                    ActivityRow.id == activity_id, BabyRow.user_id == user_id
                )
                result = await session.execute(
                    delete(ActivityRow).where(ActivityRow.id.in_(owned)).execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    raise NotFoundError("activity not found")

        logger.info(f"Deleted activity {activity_id}")

    # Used by: tests. How many detail rows of each table belong to an activity
    async def count_detail_rows(self, activity_id: uuid.UUID) -> dict:
        counts = {}
        async with self.database.session() as session:
            for activity_type, table in DETAIL_TABLES.items():
                result = await session.execute(
                    select(func.count()).select_from(table).where(table.activity_id == activity_id)
                )
                counts[activity_type] = result.scalar_one()
        return counts
