"""
Babies API: profiles owned by the calling user.

Routes (/babies):
  GET    /              - List the caller's babies, newest first
  POST   /              - Create a baby profile
  GET    /{baby_id}     - Get one baby
  PUT    /{baby_id}     - Replace a baby's profile fields
  DELETE /{baby_id}     - Delete a baby and all of its activities
"""

import logging
import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, status

from ..core.constants import DAYS_PER_WEEK, DAYS_PER_MONTH, DAYS_PER_YEAR
from ..core.utils import utc_now
from ..db.models import Baby
from ..services.babies_data import BabyDataManager
from ..services.validation import ActivityValidator
from .deps import get_current_user_id, get_validator
from .models import BabyCreate, BabyUpdate, BabyResponse, DeleteResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/babies", tags=["babies"])


def format_age(days: int) -> str:
    if days <= 0:
        return "Born today!"
    if days == 1:
        return "1 day old"
    if days < DAYS_PER_WEEK:
        return f"{days} days old"
    if days < DAYS_PER_MONTH:
        weeks = days // DAYS_PER_WEEK
        return "1 week old" if weeks == 1 else f"{weeks} weeks old"
    if days < DAYS_PER_YEAR:
        months = days // DAYS_PER_MONTH
        return "1 month old" if months == 1 else f"{months} months old"
    years = days // DAYS_PER_YEAR
    return "1 year old" if years == 1 else f"{years} years old"


def to_response(baby: Baby, today: Optional[date] = None) -> BabyResponse:
    today = today or utc_now().date()
    age_in_days = max((today - baby.birth_date).days, 0)
    return BabyResponse(
        id=baby.id,
        name=baby.name,
        birth_date=baby.birth_date,
        birth_weight=baby.birth_weight,
        birth_height=baby.birth_height,
        track_sleep=baby.track_sleep,
        age_in_days=age_in_days,
        age_display=format_age(age_in_days),
    )


# Used by: baby switcher, profile page
@router.get("", response_model=List[BabyResponse])
async def list_babies(user_id: uuid.UUID = Depends(get_current_user_id)):
    babies = await BabyDataManager().list_babies(user_id)
    return [to_response(b) for b in babies]


# Used by: onboarding (add baby)
@router.post("", response_model=BabyResponse, status_code=status.HTTP_201_CREATED)
async def create_baby(
    request: BabyCreate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    validator: ActivityValidator = Depends(get_validator),
):
    baby = await BabyDataManager(validator).create_baby(
        user_id,
        name=request.name,
        birth_date=request.birth_date,
        birth_weight=request.birth_weight,
        birth_height=request.birth_height,
        track_sleep=request.track_sleep,
    )
    return to_response(baby)


@router.get("/{baby_id}", response_model=BabyResponse)
async def get_baby(baby_id: uuid.UUID, user_id: uuid.UUID = Depends(get_current_user_id)):
    baby = await BabyDataManager().get_baby(user_id, baby_id)
    return to_response(baby)


# Used by: profile page (edit baby)
@router.put("/{baby_id}", response_model=BabyResponse)
async def update_baby(
    baby_id: uuid.UUID,
    request: BabyUpdate,
    user_id: uuid.UUID = Depends(get_current_user_id),
    validator: ActivityValidator = Depends(get_validator),
):
    baby = await BabyDataManager(validator).update_baby(
        user_id,
        baby_id,
        name=request.name,
        birth_date=request.birth_date,
        birth_weight=request.birth_weight,
        birth_height=request.birth_height,
        track_sleep=request.track_sleep,
    )
    return to_response(baby)


@router.delete("/{baby_id}", response_model=DeleteResponse)
async def delete_baby(baby_id: uuid.UUID, user_id: uuid.UUID = Depends(get_current_user_id)):
    await BabyDataManager().delete_baby(user_id, baby_id)
    return DeleteResponse(success=True, message="Baby deleted successfully")
