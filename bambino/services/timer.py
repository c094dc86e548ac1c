"""Timer engine: starts and stops open-ended feed, pump and sleep activities.

An open timer is an activity with no end time. At most one may be open per
(baby, type). Start and stop each run in a single transaction covering the
activity row and its detail row. Stop closes the timer with a conditional
UPDATE (end_time IS NULL); a concurrent stop that already closed it leaves the
loser with zero affected rows, reported as ConflictError (a NotFoundError).
"""

import logging
import uuid
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm.attributes import set_committed_value

from ..core.constants import SECONDS_PER_MINUTE, TIMER_ACTIVITY_TYPES
from ..core.database import get_database
from ..core.errors import ConflictError, NotFoundError
from ..core.utils import utc_now
from ..db.models import ActivityRecord, ActivityType, Baby, DETAIL_MODELS
from ..db.tables import ActivityRow, BabyRow
from .activities_data import ensure_no_open_timer, flush_activity, owned_activity_query, replace_detail
from .babies_data import load_owned_baby
from .validation import ActivityValidator

logger = logging.getLogger(__name__)


# Used by: stop_timer(), tests
def elapsed_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes, rounded down."""
    return int((end - start).total_seconds() // SECONDS_PER_MINUTE)


class TimerEngine:

    def __init__(
            self,
            validator: Optional[ActivityValidator] = None,
            clock: Callable[[], datetime] = utc_now,
    ):
        self.database = get_database()
        self.validator = validator or ActivityValidator()
        self.clock = clock

    # Used by: activities.py (POST /activities/timer/start)
    async def start_timer(self, user_id: uuid.UUID, request) -> ActivityRecord:
        async with self.database.session() as session:
            async with session.begin():
                baby = await load_owned_baby(session, user_id, request.baby_id)
                payload = self.validator.validate_timer_start(request, Baby.model_validate(baby))
                activity_type = ActivityType(request.type)

                await ensure_no_open_timer(session, baby, activity_type)

                activity = ActivityRow(
                    baby_id=baby.id,
                    type=activity_type.value,
                    start_time=self.clock(),
                    end_time=None,
                    notes=request.notes or "",
                )
                session.add(activity)
                await flush_activity(session, baby, activity)

                # only the fields known at start; amount and duration come on stop
                if payload is not None:
                    payload = payload.model_copy(update=_start_only_fields(activity_type))
                await replace_detail(session, activity, payload)

            logger.info(f"Started {activity_type.value} timer {activity.id} for baby {baby.id}")
            return ActivityRecord.from_row(activity)

    # Used by: activities.py (PUT /activities/timer/{activity_id}/stop)
    async def stop_timer(self, user_id: uuid.UUID, activity_id: uuid.UUID, request) -> ActivityRecord:
        async with self.database.session() as session:
            async with session.begin():
                result = await session.execute(
                    owned_activity_query(user_id, activity_id).where(
                        ActivityRow.end_time.is_(None),
                        ActivityRow.type.in_(TIMER_ACTIVITY_TYPES),
                    )
                )
                activity = result.scalars().first()
                if activity is None:
                    raise NotFoundError("active timer not found")

                activity_type = ActivityType(activity.type)
                self.validator.validate_timer_stop(activity_type, request)

                end_time = self.clock()
                values = {"end_time": end_time, "updated_at": end_time}
                if request.notes:
                    values["notes"] = request.notes

                closed = await session.execute(
                    update(ActivityRow)
                    .where(ActivityRow.id == activity.id, ActivityRow.end_time.is_(None))
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
                if closed.rowcount == 0:
                    logger.warning(f"Timer {activity_id} was closed by a concurrent request")
                    raise ConflictError("active timer not found")

                for key, value in values.items():
                    set_committed_value(activity, key, value)

                detail = activity.detail
                if detail is None:
                    detail = await replace_detail(session, activity, DETAIL_MODELS[activity_type]())
                self._apply_final_fields(activity_type, detail, activity.start_time, end_time, request)

            logger.info(
                f"Stopped {activity_type.value} timer {activity.id} "
                f"after {elapsed_minutes(activity.start_time, end_time)} minutes"
            )
            return ActivityRecord.from_row(activity)

    # Used by: activities.py (GET /activities/timer/active)
    async def list_open_timers(
            self,
            user_id: uuid.UUID,
            baby_id: Optional[uuid.UUID] = None,
    ) -> List[ActivityRecord]:
        async with self.database.session() as session:
            query = (
                select(ActivityRow)
                .join(BabyRow, ActivityRow.baby_id == BabyRow.id)
                .where(
                    BabyRow.user_id == user_id,
                    ActivityRow.end_time.is_(None),
                    ActivityRow.type.in_(TIMER_ACTIVITY_TYPES),
                )
                .order_by(ActivityRow.start_time.desc())
            )
            if baby_id is not None:
                query = query.where(ActivityRow.baby_id == baby_id)

            result = await session.execute(query)
            return [ActivityRecord.from_row(row) for row in result.scalars().all()]

    def _apply_final_fields(self, activity_type: ActivityType, detail, start: datetime, end: datetime, request) -> None:
        if activity_type in (ActivityType.FEED, ActivityType.PUMP):
            detail.duration_minutes = elapsed_minutes(start, end)
            if request.amount_ml is not None:
                detail.amount_ml = request.amount_ml

        if activity_type == ActivityType.FEED and request.feed_type is not None:
            detail.feed_type = _enum_value(request.feed_type)

        if activity_type == ActivityType.PUMP and request.breast is not None:
            detail.breast = _enum_value(request.breast)

        if activity_type == ActivityType.SLEEP and request.quality is not None:
            detail.quality = request.quality


def _start_only_fields(activity_type: ActivityType) -> dict:
    if activity_type in (ActivityType.FEED, ActivityType.PUMP):
        return {"amount_ml": None, "duration_minutes": None}
    if activity_type == ActivityType.SLEEP:
        return {"quality": None}
    return {}


def _enum_value(value):
    return getattr(value, "value", value)
