from typing import Any

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from campus_scheduler.auth.credentials import Principal
from campus_scheduler.auth.dependencies import require_party, require_professor, require_student
from campus_scheduler.database import get_db
from campus_scheduler.routes.schemas import ApiModel, AppointmentResponse, envelope
from campus_scheduler.services.booking_engine import BookingEngine

router = APIRouter(tags=['appointments'])


class BookAppointmentRequest(ApiModel):
    # Left untyped so malformed ids get the booking engine's message.
    availability_id: Any = None
    notes: str | None = None


class CancelAppointmentRequest(ApiModel):
    cancel_reason: str | None = None


class UpdateStatusRequest(ApiModel):
    status: str | None = None


@router.post('', status_code=status.HTTP_201_CREATED)
def book_appointment(
    data: BookAppointmentRequest,
    principal: Principal = Depends(require_student),
    db: Session = Depends(get_db),
):
    appointment = BookingEngine(db).book(principal, data.availability_id, data.notes)
    return envelope(AppointmentResponse.model_validate(appointment), message='Appointment booked successfully')


@router.get('')
def list_appointments(
    appointment_status: str | None = Query(default=None, alias='status'),
    principal: Principal = Depends(require_party),
    db: Session = Depends(get_db),
):
    appointments = BookingEngine(db).list_appointments(principal, appointment_status)
    return envelope([AppointmentResponse.model_validate(appointment) for appointment in appointments])


@router.get('/{appointment_id}')
def get_appointment(
    appointment_id: int,
    principal: Principal = Depends(require_party),
    db: Session = Depends(get_db),
):
    appointment = BookingEngine(db).get_appointment(principal, appointment_id)
    return envelope(AppointmentResponse.model_validate(appointment))


@router.put('/{appointment_id}/cancel')
def cancel_appointment(
    appointment_id: int,
    data: CancelAppointmentRequest | None = None,
    principal: Principal = Depends(require_party),
    db: Session = Depends(get_db),
):
    reason = data.cancel_reason if data else None
    appointment = BookingEngine(db).cancel(principal, appointment_id, reason)
    return envelope(AppointmentResponse.model_validate(appointment), message='Appointment cancelled successfully')


@router.put('/{appointment_id}/status')
def update_appointment_status(
    appointment_id: int,
    data: UpdateStatusRequest,
    principal: Principal = Depends(require_professor),
    db: Session = Depends(get_db),
):
    appointment = BookingEngine(db).update_status(principal, appointment_id, data.status)
    return envelope(AppointmentResponse.model_validate(appointment), message='Appointment status updated successfully')
