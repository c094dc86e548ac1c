"""Pydantic request/response models for all API endpoints."""

import uuid
from datetime import datetime, date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..core.constants import (
    NOTES_MAX_CHARS, BABY_NAME_MAX_CHARS, FEED_AMOUNT_MAX_ML,
    SLEEP_QUALITY_MIN, SLEEP_QUALITY_MAX,
)
from ..core.utils import to_utc
from ..db.models import (
    ActivityRecord, ActivityType, FeedType, PumpBreast,
    FeedData, PumpData, DiaperData, SleepData, GrowthData, HealthData, MilestoneData,
    FeedDetail, PumpDetail, DiaperDetail, SleepDetail, GrowthDetail, HealthDetail, MilestoneDetail,
)


# Activity models

class ActivityRequest(BaseModel):
    baby_id: Optional[uuid.UUID] = None
    type: ActivityType
    start_time: datetime
    end_time: Optional[datetime] = None
    notes: str = Field("", max_length=NOTES_MAX_CHARS)

    feed_data: Optional[FeedData] = None
    pump_data: Optional[PumpData] = None
    diaper_data: Optional[DiaperData] = None
    sleep_data: Optional[SleepData] = None
    growth_data: Optional[GrowthData] = None
    health_data: Optional[HealthData] = None
    milestone_data: Optional[MilestoneData] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_utc(cls, v):
        return to_utc(v)


class TimerStartRequest(BaseModel):
    baby_id: Optional[uuid.UUID] = None
    type: ActivityType
    notes: str = Field("", max_length=NOTES_MAX_CHARS)
    feed_data: Optional[FeedData] = None
    pump_data: Optional[PumpData] = None
    sleep_data: Optional[SleepData] = None


class TimerStopRequest(BaseModel):
    amount_ml: Optional[float] = Field(None, ge=0, le=FEED_AMOUNT_MAX_ML)
    quality: Optional[int] = Field(None, ge=SLEEP_QUALITY_MIN, le=SLEEP_QUALITY_MAX)
    notes: str = Field("", max_length=NOTES_MAX_CHARS)
    feed_type: Optional[FeedType] = None
    breast: Optional[PumpBreast] = None


class ActivityResponse(BaseModel):
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

    @classmethod
    def from_record(cls, record: ActivityRecord) -> "ActivityResponse":
        return cls(**record.model_dump())


class ActivityListResponse(BaseModel):
    activities: List[ActivityResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class ActiveTimersResponse(BaseModel):
    timers: List[ActivityResponse]


class DeleteResponse(BaseModel):
    success: bool
    message: str


# Baby models

class BabyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=BABY_NAME_MAX_CHARS)
    birth_date: date
    birth_weight: Optional[float] = Field(None, gt=0, le=10)
    birth_height: Optional[float] = Field(None, gt=0, le=80)
    track_sleep: bool = True

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        if not v.strip():
            raise ValueError("name cannot be empty")
        return v.strip()


class BabyUpdate(BabyCreate):
    pass


class BabyResponse(BaseModel):
    id: uuid.UUID
    name: str
    birth_date: date
    birth_weight: Optional[float] = None
    birth_height: Optional[float] = None
    track_sleep: bool
    age_in_days: int
    age_display: str


# Statistics models

class DiaperBreakdown(BaseModel):
    wet: int
    dirty: int


class DailyStatsResponse(BaseModel):
    baby_id: uuid.UUID
    date: str
    counts: Dict[str, int]
    totals: Dict[str, float]
    last_activities: Dict[str, Optional[datetime]]
    diaper_breakdown: Optional[DiaperBreakdown] = None


class LastFeedInfo(BaseModel):
    time: datetime
    hours_ago: float
    type: Optional[str] = None
    amount_ml: Optional[float] = None


class LastDiaperInfo(BaseModel):
    time: datetime
    hours_ago: float
    wet: bool
    dirty: bool


class LastSleepInfo(BaseModel):
    ended: datetime
    duration_hours: float


class RecentStatsResponse(BaseModel):
    baby_id: uuid.UUID
    last_feed: Optional[LastFeedInfo] = None
    last_diaper: Optional[LastDiaperInfo] = None
    currently_sleeping: bool
    last_sleep: Optional[LastSleepInfo] = None


class DailyDataPoint(BaseModel):
    date: str
    diaper_count: int
    feed_count: int
    sleep_duration_hours: float


class WeeklyGrowthInfo(BaseModel):
    weight_change_kg: Optional[float] = None
    height_change_cm: Optional[float] = None


class WeeklyStatsResponse(BaseModel):
    baby_id: uuid.UUID
    start_date: str
    end_date: str
    daily_averages: Dict[str, float]
    daily_breakdown: List[DailyDataPoint]
    growth_this_week: Optional[WeeklyGrowthInfo] = None
