from pathlib import Path
import os

# Storage
DATABASE_PATH = Path(os.getenv("FLOWSYNC_DB_PATH", ".db/flowsync.db"))

# Logging
LOG_FILE = os.getenv("FLOWSYNC_LOG_FILE", "flowsync.log")

# Data source used to feed the insights feed: "live" reads the database,
# "static" serves the built-in demo fixtures. Chosen once at startup.
DATA_SOURCE = os.getenv("FLOWSYNC_DATA_SOURCE", "live").lower()

# Reference time zone for "today" windows and naive timestamps (IANA name)
TIMEZONE = os.getenv("FLOWSYNC_TIMEZONE", "UTC")

# Requests without an X-User-Id header are attributed to this user
DEFAULT_USER_ID = os.getenv("FLOWSYNC_DEFAULT_USER", "demo-user")

# ============================================================================
# INSIGHT RULES
# ============================================================================

# Adjacent meetings closer than this are flagged as back-to-back
BACK_TO_BACK_GAP_MINUTES = int(os.getenv("BACK_TO_BACK_GAP_MINUTES", "15"))

# More meetings than this in one day is flagged as meeting-heavy
MEETING_HEAVY_THRESHOLD = int(os.getenv("MEETING_HEAVY_THRESHOLD", "4"))

# Users whose last evaluated insights are kept for the unavailable-data fallback
INSIGHTS_CACHE_MAX_USERS = int(os.getenv("INSIGHTS_CACHE_MAX_USERS", "1000"))

# ============================================================================
# BOOKING
# ============================================================================

# Length of the event spawned by a confirmed appointment with no duration
DEFAULT_APPOINTMENT_MINUTES = 30

BOOKABLE_SERVICES = [
    {"id": "consultation", "name": "Initial Consultation", "duration": 30, "price": 0},
    {"id": "strategy", "name": "Strategy Session", "duration": 60, "price": 150},
    {"id": "review", "name": "Quarterly Review", "duration": 90, "price": 250},
    {"id": "coaching", "name": "Executive Coaching", "duration": 45, "price": 200},
]

# Bookable hours (reference time zone) and the spacing of offered start times
BOOKING_DAY_START_HOUR = int(os.getenv("BOOKING_DAY_START_HOUR", "9"))
BOOKING_DAY_END_HOUR = int(os.getenv("BOOKING_DAY_END_HOUR", "17"))
BOOKING_SLOT_MINUTES = 30


def get_insight_thresholds():
    """Get insight thresholds from the database, with fallback to defaults"""
    try:
        from database.models import ConfigModel
        return {
            'back_to_back_gap_minutes': int(ConfigModel.get(
                'backToBackGapMinutes', BACK_TO_BACK_GAP_MINUTES)),
            'meeting_heavy_threshold': int(ConfigModel.get(
                'meetingHeavyThreshold', MEETING_HEAVY_THRESHOLD)),
        }
    except Exception:
        # Database not available yet
        return {
            'back_to_back_gap_minutes': BACK_TO_BACK_GAP_MINUTES,
            'meeting_heavy_threshold': MEETING_HEAVY_THRESHOLD,
        }
