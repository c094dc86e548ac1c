"""SQLAlchemy tables for users, babies, activities and the seven 1:1 detail tables."""

import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    Boolean, CheckConstraint, Date, DateTime, Float, ForeignKey, Index, Integer,
    String, Text, TypeDecorator, Uuid, text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.constants import (
    BABY_NAME_MAX_CHARS, SLEEP_LOCATION_MAX_CHARS, TIMER_ACTIVITY_TYPES, USERNAME_MAX_CHARS,
)
from ..core.database import Base
from ..core.utils import to_utc, utc_now

OPEN_TIMER_CONDITION = "end_time IS NULL AND type IN (" + ", ".join(f"'{t}'" for t in TIMER_ACTIVITY_TYPES) + ")"


class UTCDateTime(TypeDecorator):
    """Stores naive UTC, hands back aware UTC on every dialect."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return to_utc(value).replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        return to_utc(value)


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    username: Mapped[str] = mapped_column(String(USERNAME_MAX_CHARS), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now, onupdate=utc_now)

    babies = relationship("BabyRow", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)


class BabyRow(Base):
    __tablename__ = "babies"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(BABY_NAME_MAX_CHARS), nullable=False)
    birth_date: Mapped[date] = mapped_column(Date, nullable=False)
    birth_weight: Mapped[Optional[float]] = mapped_column(Float)
    birth_height: Mapped[Optional[float]] = mapped_column(Float)
    track_sleep: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now, onupdate=utc_now)

    user = relationship("UserRow", back_populates="babies")
    activities = relationship("ActivityRow", back_populates="baby", cascade="all, delete-orphan", passive_deletes=True)


class ActivityRow(Base):
    __tablename__ = "activities"
    __table_args__ = (
        Index("ix_activities_baby_start", "baby_id", "start_time"),
        Index("ix_activities_baby_type_end", "baby_id", "type", "end_time"),
        # one open timer per baby and type
        Index(
            "uq_activities_open_timer", "baby_id", "type",
            unique=True,
            sqlite_where=text(OPEN_TIMER_CONDITION),
            postgresql_where=text(OPEN_TIMER_CONDITION),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    baby_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("babies.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    start_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_time: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now, onupdate=utc_now)

    baby = relationship("BabyRow", back_populates="activities")

    feed = relationship("FeedRow", uselist=False, lazy="selectin", cascade="all, delete-orphan", passive_deletes=True)
    pump = relationship("PumpRow", uselist=False, lazy="selectin", cascade="all, delete-orphan", passive_deletes=True)
    diaper = relationship("DiaperRow", uselist=False, lazy="selectin", cascade="all, delete-orphan", passive_deletes=True)
    sleep = relationship("SleepRow", uselist=False, lazy="selectin", cascade="all, delete-orphan", passive_deletes=True)
    growth = relationship("GrowthRow", uselist=False, lazy="selectin", cascade="all, delete-orphan", passive_deletes=True)
    health = relationship("HealthRow", uselist=False, lazy="selectin", cascade="all, delete-orphan", passive_deletes=True)
    milestone = relationship("MilestoneRow", uselist=False, lazy="selectin", cascade="all, delete-orphan", passive_deletes=True)

    @property
    def detail(self):
        """The one detail row matching this activity's type, if any."""
        return getattr(self, DETAIL_RELATIONSHIPS[self.type])


def _activity_fk():
    return mapped_column(Uuid, ForeignKey("activities.id", ondelete="CASCADE"), primary_key=True)


class FeedRow(Base):
    __tablename__ = "feed_activities"

    activity_id: Mapped[uuid.UUID] = _activity_fk()
    # nullable: a timer may be started before the method is known
    feed_type: Mapped[Optional[str]] = mapped_column(String(20))
    amount_ml: Mapped[Optional[float]] = mapped_column(Float)
    duration_minutes: Mapped[Optional[int]] = mapped_column(Integer)


class PumpRow(Base):
    __tablename__ = "pump_activities"

    activity_id: Mapped[uuid.UUID] = _activity_fk()
    breast: Mapped[Optional[str]] = mapped_column(String(10))
    amount_ml: Mapped[Optional[float]] = mapped_column(Float)
    duration_minutes: Mapped[Optional[int]] = mapped_column(Integer)


class DiaperRow(Base):
    __tablename__ = "diaper_activities"

    activity_id: Mapped[uuid.UUID] = _activity_fk()
    wet: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    dirty: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    color: Mapped[Optional[str]] = mapped_column(String(20))
    consistency: Mapped[Optional[str]] = mapped_column(String(20))


class SleepRow(Base):
    __tablename__ = "sleep_activities"
    __table_args__ = (
        CheckConstraint("quality >= 1 AND quality <= 5", name="ck_sleep_quality_range"),
    )

    activity_id: Mapped[uuid.UUID] = _activity_fk()
    location: Mapped[Optional[str]] = mapped_column(String(SLEEP_LOCATION_MAX_CHARS))
    quality: Mapped[Optional[int]] = mapped_column(Integer)


class GrowthRow(Base):
    __tablename__ = "growth_measurements"

    activity_id: Mapped[uuid.UUID] = _activity_fk()
    weight_kg: Mapped[Optional[float]] = mapped_column(Float)
    height_cm: Mapped[Optional[float]] = mapped_column(Float)
    head_circumference_cm: Mapped[Optional[float]] = mapped_column(Float)


class HealthRow(Base):
    __tablename__ = "health_records"

    activity_id: Mapped[uuid.UUID] = _activity_fk()
    record_type: Mapped[str] = mapped_column(String(20), nullable=False)
    provider: Mapped[Optional[str]] = mapped_column(String(100))
    vaccine_name: Mapped[Optional[str]] = mapped_column(String(100))
    symptoms: Mapped[Optional[str]] = mapped_column(Text)
    treatment: Mapped[Optional[str]] = mapped_column(Text)


class MilestoneRow(Base):
    __tablename__ = "milestones"

    activity_id: Mapped[uuid.UUID] = _activity_fk()
    milestone_type: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)


# Used by: ActivityRow.detail, activities_data.py, timer.py. Keyed by activity type
DETAIL_RELATIONSHIPS = {
    "feed": "feed",
    "pump": "pump",
    "diaper": "diaper",
    "sleep": "sleep",
    "growth": "growth",
    "health": "health",
    "milestone": "milestone",
}

DETAIL_TABLES = {
    "feed": FeedRow,
    "pump": PumpRow,
    "diaper": DiaperRow,
    "sleep": SleepRow,
    "growth": GrowthRow,
    "health": HealthRow,
    "milestone": MilestoneRow,
}
