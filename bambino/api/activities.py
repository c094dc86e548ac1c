"""
Activities API: activity log CRUD and the active-timer workflow.

Routes (/activities):
  GET    /                       - Paginated activity list with type/date filters
  POST   /                       - Record a finished activity
  GET    /timer/active           - Open timers for the caller (optionally one baby)
  POST   /timer/start            - Start a feed, pump or sleep timer
  PUT    /timer/{activity_id}/stop - Stop an open timer and record its results
  GET    /{activity_id}          - Get one activity with its detail
  PUT    /{activity_id}          - Replace an activity (type changes allowed)
  DELETE /{activity_id}          - Delete an activity and its detail
"""

import logging
import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ..core.constants import ACTIVITIES_DEFAULT_PAGE_SIZE, ACTIVITIES_MAX_PAGE_SIZE
from ..db.models import ActivityType
from ..services.activities_data import ActivityDataManager
from ..services.timer import TimerEngine
from ..services.validation import ActivityValidator
from .deps import get_current_user_id, get_validator
from .models import (
    ActivityRequest,
    ActivityResponse,
    ActivityListResponse,
    ActiveTimersResponse,
    DeleteResponse,
    TimerStartRequest,
    TimerStopRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/activities", tags=["activities"])


# Used by: history page, dashboard recent list
@router.get("", response_model=ActivityListResponse)
async def list_activities(
    baby_id: Optional[uuid.UUID] = Query(None),
    type: Optional[ActivityType] = Query(None),
    start_date: Optional[date] = Query(None, description="First day included (UTC)"),
    end_date: Optional[date] = Query(None, description="Last day included (UTC)"),
    page: int = Query(1, ge=1),
    page_size: int = Query(ACTIVITIES_DEFAULT_PAGE_SIZE, ge=1, le=ACTIVITIES_MAX_PAGE_SIZE),
    user_id: uuid.UUID = Depends(get_current_user_id),
    validator: ActivityValidator = Depends(get_validator),
):
    records, total, total_pages = await ActivityDataManager(validator).list_activities(
        user_id,
        baby_id=baby_id,
        activity_type=type,
        start_date=start_date,
        end_date=end_date,
        page=page,
        page_size=page_size,
    )
    return ActivityListResponse(
        activities=[ActivityResponse.from_record(r) for r in records],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


# Used by: quick-log forms (all seven activity types)
@router.post("", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
async def create_activity(
    request: ActivityRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    validator: ActivityValidator = Depends(get_validator),
):
    record = await ActivityDataManager(validator).create_activity(user_id, request)
    return ActivityResponse.from_record(record)


# Used by: dashboard, to restore running timers after a reload
@router.get("/timer/active", response_model=ActiveTimersResponse)
async def list_active_timers(
    baby_id: Optional[uuid.UUID] = Query(None),
    user_id: uuid.UUID = Depends(get_current_user_id),
    validator: ActivityValidator = Depends(get_validator),
):
    timers = await TimerEngine(validator).list_open_timers(user_id, baby_id)
    return ActiveTimersResponse(timers=[ActivityResponse.from_record(t) for t in timers])


@router.post("/timer/start", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
async def start_timer(
    request: TimerStartRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    validator: ActivityValidator = Depends(get_validator),
):
    record = await TimerEngine(validator).start_timer(user_id, request)
    return ActivityResponse.from_record(record)


@router.put("/timer/{activity_id}/stop", response_model=ActivityResponse)
async def stop_timer(
    activity_id: uuid.UUID,
    request: TimerStopRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    validator: ActivityValidator = Depends(get_validator),
):
    record = await TimerEngine(validator).stop_timer(user_id, activity_id, request)
    return ActivityResponse.from_record(record)


@router.get("/{activity_id}", response_model=ActivityResponse)
async def get_activity(
    activity_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    record = await ActivityDataManager().get_activity(user_id, activity_id)
    return ActivityResponse.from_record(record)


# Used by: history page (edit entry)
@router.put("/{activity_id}", response_model=ActivityResponse)
async def update_activity(
    activity_id: uuid.UUID,
    request: ActivityRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    validator: ActivityValidator = Depends(get_validator),
):
    record = await ActivityDataManager(validator).update_activity(user_id, activity_id, request)
    return ActivityResponse.from_record(record)


@router.delete("/{activity_id}", response_model=DeleteResponse)
async def delete_activity(
    activity_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
):
    await ActivityDataManager().delete_activity(user_id, activity_id)
    return DeleteResponse(success=True, message="Activity deleted successfully")
