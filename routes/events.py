"""
Calendar event API routes (FastAPI)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from database.models import CalendarEventModel
from routes.common import error_response, get_user_id, not_found
from utils.time_helpers import day_window, parse_timestamp

logger = logging.getLogger(__name__)

events_bp = APIRouter(prefix='/api/events', tags=['events'])


class EventCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    start_time: str = Field(..., alias='startTime')
    end_time: str = Field(..., alias='endTime')
    category: str = Field('meeting', alias='type')
    description: Optional[str] = None
    location: Optional[str] = None
    attendees: Optional[int] = None


class EventUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    start_time: Optional[str] = Field(None, alias='startTime')
    end_time: Optional[str] = Field(None, alias='endTime')
    category: Optional[str] = Field(None, alias='type')
    description: Optional[str] = None
    location: Optional[str] = None
    attendees: Optional[int] = None


@events_bp.get('')
async def list_events(
    start: Optional[str] = Query(None, description="ISO timestamp; only events starting at or after it"),
    end: Optional[str] = Query(None, description="ISO timestamp; only events starting at or before it"),
    day: Optional[str] = Query(None, description="'today' for the current day in the reference time zone"),
    category: Optional[str] = Query(None, description="Filter by category"),
    user_id: str = Depends(get_user_id)
):
    """
    List calendar events ordered by start time.

    Examples:
    - /api/events?day=today
    - /api/events?start=2025-01-06T00:00:00&end=2025-01-12T23:59:59
    """
    try:
        if day is not None:
            if day != 'today':
                return error_response("day must be 'today'", 400)
            window_start, window_end = day_window()
        else:
            window_start = parse_timestamp(start) if start else None
            window_end = parse_timestamp(end) if end else None

        if window_start and window_end and window_start > window_end:
            return error_response('start must be before end', 400)

        events = CalendarEventModel.list(user_id, start=window_start, end=window_end, category=category)
        return {'success': True, 'events': events, 'count': len(events)}
    except ValueError as e:
        return error_response(str(e), 400)
    except Exception as e:
        logger.error(f"Error listing events: {e}")
        return error_response(str(e), 500)


@events_bp.post('', status_code=201)
async def create_event(body: EventCreateRequest, user_id: str = Depends(get_user_id)):
    try:
        event = CalendarEventModel.create(user_id, **body.model_dump())
        return {'success': True, 'event': event}
    except ValueError as e:
        return error_response(str(e), 400)
    except Exception as e:
        logger.error(f"Error creating event: {e}")
        return error_response(str(e), 500)


@events_bp.get('/{event_id}')
async def get_event(event_id: int, user_id: str = Depends(get_user_id)):
    try:
        event = CalendarEventModel.get(user_id, event_id)
        if not event:
            return not_found('Event', event_id)
        return {'success': True, 'event': event}
    except Exception as e:
        logger.error(f"Error retrieving event {event_id}: {e}")
        return error_response(str(e), 500)


@events_bp.put('/{event_id}')
async def update_event(event_id: int, body: EventUpdateRequest, user_id: str = Depends(get_user_id)):
    try:
        event = CalendarEventModel.update(user_id, event_id, **body.model_dump(exclude_unset=True))
        if not event:
            return not_found('Event', event_id)
        return {'success': True, 'event': event}
    except ValueError as e:
        return error_response(str(e), 400)
    except Exception as e:
        logger.error(f"Error updating event {event_id}: {e}")
        return error_response(str(e), 500)


@events_bp.delete('/{event_id}')
async def delete_event(event_id: int, user_id: str = Depends(get_user_id)):
    try:
        if not CalendarEventModel.delete(user_id, event_id):
            return not_found('Event', event_id)
        logger.info(f"Deleted event {event_id} for {user_id}")
        return JSONResponse({'success': True})
    except Exception as e:
        logger.error(f"Error deleting event {event_id}: {e}")
        return error_response(str(e), 500)
