from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from config import settings


def reference_tz(name: str = None) -> ZoneInfo:
    """Return the configured reference time zone."""
    return ZoneInfo(name or settings.TIMEZONE)


def utc_now() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value, tz: ZoneInfo = None) -> datetime:
    """
    Parse an ISO 8601 string (or datetime) into an aware UTC datetime.

    Naive values are interpreted in the reference time zone. A trailing
    'Z' is accepted.

    Raises:
        ValueError: If the value is not a valid timestamp
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith('Z') or text.endswith('z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f"Invalid timestamp: {value!r}")
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz or reference_tz())
    return parsed.astimezone(timezone.utc)


def parse_due(value, tz: ZoneInfo = None) -> datetime:
    """
    Parse a due value. A bare date ('2025-03-12') means the end of that
    day in the reference time zone; anything else goes through parse_timestamp.
    """
    if isinstance(value, str) and len(value.strip()) == 10:
        try:
            due_day = date.fromisoformat(value.strip())
        except ValueError:
            raise ValueError(f"Invalid timestamp: {value!r}")
        end_of_day = datetime.combine(due_day, time(23, 59, 59), tzinfo=tz or reference_tz())
        return end_of_day.astimezone(timezone.utc)
    return parse_timestamp(value, tz)


def to_storage(value: datetime) -> str:
    """Format a datetime the way it is stored in the database (UTC ISO)."""
    return parse_timestamp(value).isoformat(timespec='seconds')


def from_storage(value: Optional[str]) -> Optional[datetime]:
    """Inverse of to_storage; None passes through."""
    if value is None:
        return None
    return parse_timestamp(value, tz=timezone.utc)


def day_window(now: datetime = None, tz: ZoneInfo = None) -> Tuple[datetime, datetime]:
    """
    Return [start-of-day, end-of-day] for the day containing `now` in the
    reference time zone, as aware UTC datetimes.
    """
    tz = tz or reference_tz()
    local_now = (now or utc_now()).astimezone(tz)
    start = datetime.combine(local_now.date(), time.min, tzinfo=tz)
    end = start + timedelta(days=1) - timedelta(microseconds=1)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def format_clock(value: datetime, tz: ZoneInfo = None) -> str:
    """Short local wall-clock label used in insight messages, e.g. '10:10'."""
    return value.astimezone(tz or reference_tz()).strftime('%H:%M')
