"""
Appointment booking API routes (FastAPI)
Handles booking requests and their confirm/decline lifecycle
"""

import datetime
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from config import settings
from database.models import AppointmentModel
from routes.common import error_response, get_user_id, not_found
from services.booking_service import find_service, list_slots

logger = logging.getLogger(__name__)

appointments_bp = APIRouter(prefix='/api/appointments', tags=['appointments'])


class AppointmentCreateRequest(BaseModel):
    """Booking request. New bookings always start out pending."""
    model_config = ConfigDict(populate_by_name=True)

    client_name: str = Field(..., alias='clientName')
    service_name: str = Field(..., alias='serviceName')
    requested_at: str = Field(..., alias='requestedAt')
    duration_minutes: Optional[int] = Field(None, alias='duration')
    client_email: Optional[str] = Field(None, alias='email')
    client_phone: Optional[str] = Field(None, alias='phone')
    notes: Optional[str] = None


class AppointmentUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Optional[str] = None
    client_name: Optional[str] = Field(None, alias='clientName')
    service_name: Optional[str] = Field(None, alias='serviceName')
    requested_at: Optional[str] = Field(None, alias='requestedAt')
    duration_minutes: Optional[int] = Field(None, alias='duration')
    client_email: Optional[str] = Field(None, alias='email')
    client_phone: Optional[str] = Field(None, alias='phone')
    notes: Optional[str] = None


@appointments_bp.get('/services')
async def get_services():
    """Bookable service catalogue."""
    return {'success': True, 'services': settings.BOOKABLE_SERVICES}


@appointments_bp.get('/slots')
async def get_slots(
    date: str = Query(..., description="Day to book, YYYY-MM-DD in the reference time zone"),
    service: Optional[str] = Query(None, description="Service id or name; sets the booking length"),
    user_id: str = Depends(get_user_id)
):
    """
    Bookable start times for a day.

    Example: /api/appointments/slots?date=2025-03-13&service=strategy
    """
    try:
        try:
            day = datetime.date.fromisoformat(date)
        except ValueError:
            return error_response(f"Invalid date: {date!r}", 400)

        duration = None
        if service:
            match = find_service(service)
            if not match:
                return error_response(f"Unknown service: {service!r}", 400)
            duration = match['duration']

        slots = list_slots(user_id, day, duration)
        return {'success': True, 'date': day.isoformat(), 'slots': slots}
    except Exception as e:
        logger.error(f"Error listing slots for {date}: {e}")
        return error_response(str(e), 500)


@appointments_bp.get('')
async def list_appointments(
    status: Optional[str] = Query(None, description="Filter by status (pending, confirmed, declined)"),
    user_id: str = Depends(get_user_id)
):
    try:
        appointments = AppointmentModel.list(user_id, status=status)
        return {'success': True, 'appointments': appointments, 'count': len(appointments)}
    except ValueError as e:
        return error_response(str(e), 400)
    except Exception as e:
        logger.error(f"Error listing appointments: {e}")
        return error_response(str(e), 500)


@appointments_bp.post('', status_code=201)
async def create_appointment(body: AppointmentCreateRequest, user_id: str = Depends(get_user_id)):
    """Book an appointment."""
    try:
        appointment = AppointmentModel.create(user_id, **body.model_dump())
        return {'success': True, 'appointment': appointment}
    except ValueError as e:
        return error_response(str(e), 400)
    except Exception as e:
        logger.error(f"Error booking appointment: {e}")
        return error_response(str(e), 500)


@appointments_bp.get('/{appointment_id}')
async def get_appointment(appointment_id: int, user_id: str = Depends(get_user_id)):
    try:
        appointment = AppointmentModel.get(user_id, appointment_id)
        if not appointment:
            return not_found('Appointment', appointment_id)
        return {'success': True, 'appointment': appointment}
    except Exception as e:
        logger.error(f"Error retrieving appointment {appointment_id}: {e}")
        return error_response(str(e), 500)


@appointments_bp.put('/{appointment_id}')
async def update_appointment(appointment_id: int, body: AppointmentUpdateRequest,
                             user_id: str = Depends(get_user_id)):
    """
    Update an appointment. Setting status to 'confirmed' adds the booking to
    the calendar as an 'appointment' event.
    """
    try:
        appointment = AppointmentModel.update(user_id, appointment_id, **body.model_dump(exclude_unset=True))
        if not appointment:
            return not_found('Appointment', appointment_id)
        return {'success': True, 'appointment': appointment}
    except ValueError as e:
        return error_response(str(e), 400)
    except Exception as e:
        logger.error(f"Error updating appointment {appointment_id}: {e}")
        return error_response(str(e), 500)


@appointments_bp.post('/{appointment_id}/confirm')
async def confirm_appointment(appointment_id: int, user_id: str = Depends(get_user_id)):
    try:
        appointment = AppointmentModel.confirm(user_id, appointment_id)
        if not appointment:
            return not_found('Appointment', appointment_id)
        return {'success': True, 'appointment': appointment}
    except Exception as e:
        logger.error(f"Error confirming appointment {appointment_id}: {e}")
        return error_response(str(e), 500)


@appointments_bp.post('/{appointment_id}/decline')
async def decline_appointment(appointment_id: int, user_id: str = Depends(get_user_id)):
    try:
        appointment = AppointmentModel.decline(user_id, appointment_id)
        if not appointment:
            return not_found('Appointment', appointment_id)
        return {'success': True, 'appointment': appointment}
    except Exception as e:
        logger.error(f"Error declining appointment {appointment_id}: {e}")
        return error_response(str(e), 500)


@appointments_bp.delete('/{appointment_id}')
async def delete_appointment(appointment_id: int, user_id: str = Depends(get_user_id)):
    try:
        if not AppointmentModel.delete(user_id, appointment_id):
            return not_found('Appointment', appointment_id)
        logger.info(f"Deleted appointment {appointment_id} for {user_id}")
        return JSONResponse({'success': True})
    except Exception as e:
        logger.error(f"Error deleting appointment {appointment_id}: {e}")
        return error_response(str(e), 500)
