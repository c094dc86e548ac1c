"""Pydantic models mirroring the bambino database schema."""

import uuid
from datetime import datetime, date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.constants import (
    FEED_AMOUNT_MAX_ML, FEED_DURATION_MAX_MINUTES,
    PUMP_AMOUNT_MAX_ML, PUMP_DURATION_MAX_MINUTES,
    SLEEP_QUALITY_MIN, SLEEP_QUALITY_MAX, SLEEP_LOCATION_MAX_CHARS,
    GROWTH_WEIGHT_MIN_KG, GROWTH_WEIGHT_MAX_KG,
    GROWTH_HEIGHT_MIN_CM, GROWTH_HEIGHT_MAX_CM,
    GROWTH_HEAD_MIN_CM, GROWTH_HEAD_MAX_CM,
    HEALTH_NAME_MAX_CHARS, HEALTH_TEXT_MAX_CHARS,
    MILESTONE_TYPE_MAX_CHARS, MILESTONE_DESCRIPTION_MAX_CHARS,
)


class ActivityType(str, Enum):
    FEED = "feed"
    PUMP = "pump"
    DIAPER = "diaper"
    SLEEP = "sleep"
    GROWTH = "growth"
    HEALTH = "health"
    MILESTONE = "milestone"


class FeedType(str, Enum):
    BOTTLE = "bottle"
    BREAST_LEFT = "breast_left"
    BREAST_RIGHT = "breast_right"
    SOLID = "solid"


class PumpBreast(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    BOTH = "both"


class DiaperColor(str, Enum):
    YELLOW = "yellow"
    GREEN = "green"
    BROWN = "brown"
    BLACK = "black"
    RED = "red"
    WHITE = "white"


class DiaperConsistency(str, Enum):
    LIQUID = "liquid"
    SOFT = "soft"
    NORMAL = "normal"
    HARD = "hard"


class HealthRecordType(str, Enum):
    CHECKUP = "checkup"
    VACCINE = "vaccine"
    ILLNESS = "illness"


# ── DETAIL PAYLOADS ─────────────────────────────────────────────────────────
# One stored shape per activity type, read back from the detail tables as-is.
# The *Data subclasses add the input ranges and are only used for requests:
# a stored value may legitimately exceed them (a feed timer left running past
# the manual-entry duration limit). Cross-field rules (wet or dirty, vaccine
# name, ...) are enforced by ActivityValidator.

class FeedDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    feed_type: Optional[FeedType] = None
    amount_ml: Optional[float] = None
    duration_minutes: Optional[int] = None


class FeedData(FeedDetail):
    amount_ml: Optional[float] = Field(None, ge=0, le=FEED_AMOUNT_MAX_ML)
    duration_minutes: Optional[int] = Field(None, ge=0, le=FEED_DURATION_MAX_MINUTES)


class PumpDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    breast: Optional[PumpBreast] = None
    amount_ml: Optional[float] = None
    duration_minutes: Optional[int] = None


class PumpData(PumpDetail):
    amount_ml: Optional[float] = Field(None, ge=0, le=PUMP_AMOUNT_MAX_ML)
    duration_minutes: Optional[int] = Field(None, ge=0, le=PUMP_DURATION_MAX_MINUTES)


class DiaperDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    wet: bool = False
    dirty: bool = False
    color: Optional[DiaperColor] = None
    consistency: Optional[DiaperConsistency] = None


class DiaperData(DiaperDetail):
    pass


class SleepDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    location: Optional[str] = None
    quality: Optional[int] = None


class SleepData(SleepDetail):
    location: Optional[str] = Field(None, max_length=SLEEP_LOCATION_MAX_CHARS)
    quality: Optional[int] = Field(None, ge=SLEEP_QUALITY_MIN, le=SLEEP_QUALITY_MAX)


class GrowthDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    weight_kg: Optional[float] = None
    height_cm: Optional[float] = None
    head_circumference_cm: Optional[float] = None


class GrowthData(GrowthDetail):
    weight_kg: Optional[float] = Field(None, ge=GROWTH_WEIGHT_MIN_KG, le=GROWTH_WEIGHT_MAX_KG)
    height_cm: Optional[float] = Field(None, ge=GROWTH_HEIGHT_MIN_CM, le=GROWTH_HEIGHT_MAX_CM)
    head_circumference_cm: Optional[float] = Field(None, ge=GROWTH_HEAD_MIN_CM, le=GROWTH_HEAD_MAX_CM)


class HealthDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    record_type: HealthRecordType
    provider: Optional[str] = None
    vaccine_name: Optional[str] = None
    symptoms: Optional[str] = None
    treatment: Optional[str] = None


class HealthData(HealthDetail):
    provider: Optional[str] = Field(None, max_length=HEALTH_NAME_MAX_CHARS)
    vaccine_name: Optional[str] = Field(None, max_length=HEALTH_NAME_MAX_CHARS)
    symptoms: Optional[str] = Field(None, max_length=HEALTH_TEXT_MAX_CHARS)
    treatment: Optional[str] = Field(None, max_length=HEALTH_TEXT_MAX_CHARS)


class MilestoneDetail(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    milestone_type: str
    description: Optional[str] = None


class MilestoneData(MilestoneDetail):
    milestone_type: str = Field(..., min_length=1, max_length=MILESTONE_TYPE_MAX_CHARS)
    description: Optional[str] = Field(None, max_length=MILESTONE_DESCRIPTION_MAX_CHARS)


# Used by: ActivityRecord.from_row(), timer.py. Keyed by activity type
DETAIL_MODELS = {
    ActivityType.FEED: FeedDetail,
    ActivityType.PUMP: PumpDetail,
    ActivityType.DIAPER: DiaperDetail,
    ActivityType.SLEEP: SleepDetail,
    ActivityType.GROWTH: GrowthDetail,
    ActivityType.HEALTH: HealthDetail,
    ActivityType.MILESTONE: MilestoneDetail,
}

# Used by: validation.py, ActivityRecord. Request and record attribute per type
DETAIL_FIELDS = {
    ActivityType.FEED: "feed_data",
    ActivityType.PUMP: "pump_data",
    ActivityType.DIAPER: "diaper_data",
    ActivityType.SLEEP: "sleep_data",
    ActivityType.GROWTH: "growth_data",
    ActivityType.HEALTH: "health_data",
    ActivityType.MILESTONE: "milestone_data",
}


# ── ROW MODELS ──────────────────────────────────────────────────────────────

# Used by: users_data.py, api/deps.py
class User(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    created_at: Optional[datetime] = None


# Used by: babies_data.py, babies.py, stats_aggregator.py, timer.py
class Baby(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    birth_date: date
    birth_weight: Optional[float] = None
    birth_height: Optional[float] = None
    track_sleep: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Used by: activities_data.py, timer.py, stats_aggregator.py, activities.py
class ActivityRecord(BaseModel):
    """An activity plus the one detail payload matching its type."""

    id: uuid.UUID
    baby_id: uuid.UUID
    type: ActivityType
    start_time: datetime
    end_time: Optional[datetime] = None
    notes: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    feed_data: Optional[FeedDetail] = None
    pump_data: Optional[PumpDetail] = None
    diaper_data: Optional[DiaperDetail] = None
    sleep_data: Optional[SleepDetail] = None
    growth_data: Optional[GrowthDetail] = None
    health_data: Optional[HealthDetail] = None
    milestone_data: Optional[MilestoneDetail] = None

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    @property
    def detail(self) -> Optional[BaseModel]:
        return getattr(self, DETAIL_FIELDS[self.type])

    @classmethod
    def from_row(cls, row) -> "ActivityRecord":
        activity_type = ActivityType(row.type)
        record = cls(
            id=row.id,
            baby_id=row.baby_id,
            type=activity_type,
            start_time=row.start_time,
            end_time=row.end_time,
            notes=row.notes or "",
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
        detail_row = row.detail
        if detail_row is not None:
            payload = DETAIL_MODELS[activity_type].model_validate(detail_row)
            setattr(record, DETAIL_FIELDS[activity_type], payload)
        return record
