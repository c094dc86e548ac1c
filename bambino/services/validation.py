"""Business-rule validation for activity, timer and stats requests.

Field ranges are declared on the pydantic payload models; this component checks
the rules that span several fields or depend on the activity type. It is built
once in main.py and handed to the data managers.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel

from ..core.constants import (
    TIMER_ACTIVITY_TYPES, FEED_AMOUNT_MAX_ML, PUMP_AMOUNT_MAX_ML, TZ_OFFSET_MAX_MINUTES,
)
from ..core.errors import ValidationError
from ..db.models import ActivityType, Baby, DETAIL_FIELDS, HealthRecordType

# Types whose payload can be omitted on create/update
OPTIONAL_DETAIL_TYPES = {ActivityType.SLEEP}


class ActivityValidator:

    # Used by: activities_data.py (create/update)
    def validate_activity(self, request, baby: Baby) -> Optional[BaseModel]:
        """Check a full activity request. Returns the detail payload for its type."""
        activity_type = ActivityType(request.type)

        self._reject_foreign_payloads(request, activity_type)

        if request.end_time is not None and request.end_time < request.start_time:
            raise ValidationError("end time must be after start time")

        if activity_type == ActivityType.SLEEP:
            self.validate_sleep_tracking(baby)

        payload = getattr(request, DETAIL_FIELDS[activity_type])
        if payload is None:
            if activity_type in OPTIONAL_DETAIL_TYPES:
                return None
            raise ValidationError(f"{DETAIL_FIELDS[activity_type]} is required for {activity_type.value} activities")

        self.validate_detail(activity_type, payload)
        return payload

    # Used by: validate_activity()
    def validate_detail(self, activity_type: ActivityType, payload: BaseModel) -> None:
        if activity_type == ActivityType.FEED and payload.feed_type is None:
            raise ValidationError("feed_type is required for feed activities")

        if activity_type == ActivityType.PUMP and payload.breast is None:
            raise ValidationError("breast is required for pump activities")

        if activity_type == ActivityType.DIAPER and not (payload.wet or payload.dirty):
            raise ValidationError("diaper must be wet, dirty, or both")

        if activity_type == ActivityType.GROWTH:
            if payload.weight_kg is None and payload.height_cm is None and payload.head_circumference_cm is None:
                raise ValidationError(
                    "at least one measurement (weight, height, or head circumference) is required"
                )

        if activity_type == ActivityType.HEALTH:
            is_vaccine = payload.record_type == HealthRecordType.VACCINE.value
            has_name = bool(payload.vaccine_name and payload.vaccine_name.strip())
            if is_vaccine and not has_name:
                raise ValidationError("vaccine_name is required for vaccine records")
            if has_name and not is_vaccine:
                raise ValidationError("vaccine_name is only allowed for vaccine records")

    # Used by: timer.py (start)
    def validate_timer_start(self, request, baby: Baby) -> Optional[BaseModel]:
        activity_type = self.timer_type(request.type)
        self._reject_foreign_payloads(request, activity_type)

        if activity_type == ActivityType.SLEEP:
            self.validate_sleep_tracking(baby)

        return getattr(request, DETAIL_FIELDS[activity_type], None)

    # Used by: timer.py (stop)
    def validate_timer_stop(self, activity_type: ActivityType, request) -> None:
        if request.amount_ml is not None:
            if activity_type == ActivityType.SLEEP:
                raise ValidationError("amount_ml does not apply to sleep timers")
            limit = FEED_AMOUNT_MAX_ML if activity_type == ActivityType.FEED else PUMP_AMOUNT_MAX_ML
            if request.amount_ml > limit:
                raise ValidationError(f"amount_ml must be at most {limit:g} for {activity_type.value} timers")

        if request.quality is not None and activity_type != ActivityType.SLEEP:
            raise ValidationError("quality only applies to sleep timers")

        if request.feed_type is not None and activity_type != ActivityType.FEED:
            raise ValidationError("feed_type only applies to feed timers")

        if request.breast is not None and activity_type != ActivityType.PUMP:
            raise ValidationError("breast only applies to pump timers")

    # Used by: validate_timer_start(), timer.py
    def timer_type(self, value) -> ActivityType:
        try:
            activity_type = ActivityType(value)
        except ValueError:
            raise ValidationError(f"unknown activity type: {value}")
        if activity_type.value not in TIMER_ACTIVITY_TYPES:
            raise ValidationError(
                f"timers are only supported for {', '.join(TIMER_ACTIVITY_TYPES)} activities"
            )
        return activity_type

    def validate_sleep_tracking(self, baby: Baby) -> None:
        if not baby.track_sleep:
            raise ValidationError(f"sleep tracking is disabled for {baby.name}")

    # Used by: stats_aggregator.py (daily, weekly)
    def validate_stats_date(self, target: date, baby: Baby) -> None:
        if target < baby.birth_date:
            raise ValidationError("Cannot query dates before baby's birth date")

    # Used by: stats_aggregator.py (daily, weekly)
    def validate_tz_offset(self, tz_offset_minutes: Optional[int]) -> None:
        if tz_offset_minutes is not None and abs(tz_offset_minutes) > TZ_OFFSET_MAX_MINUTES:
            raise ValidationError(f"tz_offset must be between -{TZ_OFFSET_MAX_MINUTES} and {TZ_OFFSET_MAX_MINUTES} minutes")

    # Used by: babies_data.py (create/update)
    def validate_birth_date(self, birth_date: date, today: date) -> None:
        if birth_date > today:
            raise ValidationError("birth date cannot be in the future")

    def _reject_foreign_payloads(self, request, activity_type: ActivityType) -> None:
        for other_type, field_name in DETAIL_FIELDS.items():
            if other_type == activity_type:
                continue
            if getattr(request, field_name, None) is not None:
                raise ValidationError(f"{field_name} is not allowed for {activity_type.value} activities")
