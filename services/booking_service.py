"""
Booking Service

Works out which start times on a day can still be offered to a client.
A slot is unavailable when the requested service would overlap a calendar
event or another pending or confirmed appointment.
"""

from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Tuple
import logging

from config import settings
from database.models import AppointmentModel, CalendarEventModel
from utils.time_helpers import from_storage, reference_tz, to_storage

logger = logging.getLogger(__name__)


def find_service(key: str) -> Optional[Dict[str, Any]]:
    """Look up a bookable service by id or name (case-insensitive)."""
    wanted = key.strip().lower()
    for service in settings.BOOKABLE_SERVICES:
        if wanted in (service['id'], service['name'].lower()):
            return service
    return None


def _overlaps(start: datetime, end: datetime, busy: List[Tuple[datetime, datetime]]) -> bool:
    return any(start < busy_end and busy_start < end for busy_start, busy_end in busy)


def list_slots(user_id: str, day: date, duration_minutes: int = None) -> List[Dict[str, Any]]:
    """
    List the bookable start times for a day.

    Slots are spaced BOOKING_SLOT_MINUTES apart between BOOKING_DAY_START_HOUR
    and BOOKING_DAY_END_HOUR in the reference time zone. A booking must also
    finish by the end of the bookable hours.

    Returns:
        [{"time": "09:00", "start": <UTC ISO>, "available": bool}, ...]
    """
    tz = reference_tz()
    duration = timedelta(minutes=duration_minutes or settings.BOOKING_SLOT_MINUTES)
    step = timedelta(minutes=settings.BOOKING_SLOT_MINUTES)
    opens = datetime.combine(day, time(settings.BOOKING_DAY_START_HOUR), tzinfo=tz)
    closes = datetime.combine(day, time(settings.BOOKING_DAY_END_HOUR), tzinfo=tz)

    busy = [(from_storage(row['start_time']), from_storage(row['end_time']))
            for row in CalendarEventModel.list_overlapping(user_id, opens, closes)]
    busy.extend(AppointmentModel.span(row) for row in AppointmentModel.list_active(user_id, opens, closes))

    slots = []
    start = opens
    while start < closes:
        end = start + duration
        slots.append({
            'time': start.strftime('%H:%M'),
            'start': to_storage(start),
            'available': end <= closes and not _overlaps(start, end, busy),
        })
        start += step

    logger.info(f"Listed {len(slots)} slots for {user_id} on {day.isoformat()} "
                f"({sum(1 for slot in slots if slot['available'])} available)")
    return slots
