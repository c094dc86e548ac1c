"""Field limits, pagination and window sizes shared by services and API models."""

# ── ACTIVITY TYPES ──────────────────────────────────────────────────────────
# Only these types can be left open-ended and closed through the timer endpoints.
TIMER_ACTIVITY_TYPES = ("feed", "pump", "sleep")


# ── FIELD RANGES ────────────────────────────────────────────────────────────
# No clinical source, app-level sanity bounds for manually entered values.
FEED_AMOUNT_MAX_ML = 1000.0
FEED_DURATION_MAX_MINUTES = 180
PUMP_AMOUNT_MAX_ML = 500.0
PUMP_DURATION_MAX_MINUTES = 120

SLEEP_QUALITY_MIN = 1
SLEEP_QUALITY_MAX = 5
SLEEP_LOCATION_MAX_CHARS = 50

GROWTH_WEIGHT_MIN_KG = 0.5
GROWTH_WEIGHT_MAX_KG = 50.0
GROWTH_HEIGHT_MIN_CM = 20.0
GROWTH_HEIGHT_MAX_CM = 150.0
GROWTH_HEAD_MIN_CM = 20.0
GROWTH_HEAD_MAX_CM = 60.0

HEALTH_NAME_MAX_CHARS = 100
HEALTH_TEXT_MAX_CHARS = 500
MILESTONE_TYPE_MAX_CHARS = 50
MILESTONE_DESCRIPTION_MAX_CHARS = 500

NOTES_MAX_CHARS = 1000
BABY_NAME_MAX_CHARS = 100
USERNAME_MAX_CHARS = 50


# ── PAGINATION ──────────────────────────────────────────────────────────────
ACTIVITIES_DEFAULT_PAGE_SIZE = 20
ACTIVITIES_MAX_PAGE_SIZE = 100


# ── STATS WINDOWS ───────────────────────────────────────────────────────────
# Rolling window, not an aligned calendar week.
WEEKLY_WINDOW_DAYS = 7
HOURS_PER_DAY = 24

# Browser offsets in minutes; pytz.FixedOffset only accepts less than a full day
TZ_OFFSET_MAX_MINUTES = 1439
SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600

# Standard calendar approximations for the age label.
DAYS_PER_WEEK = 7
DAYS_PER_MONTH = 30
DAYS_PER_YEAR = 365
