"""Booking, cancellation and status changes for appointments.

``book`` and ``cancel`` touch both the availability slot and the appointment;
each runs inside one :class:`UnitOfWork`, so either both rows change or
neither does. Every check happens before the first write.
"""

import logging
import re

from sqlalchemy.orm import Session

from campus_scheduler.auth.credentials import Principal
from campus_scheduler.core import timeutil
from campus_scheduler.core.errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    RequestValidationFailed,
)
from campus_scheduler.models.appointment import (
    MAX_TEXT_LENGTH,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_SCHEDULED,
    STATUSES,
    Appointment,
)
from campus_scheduler.models.user import ROLE_PROFESSOR, ROLE_STUDENT
from campus_scheduler.services.stores import AppointmentStore
from campus_scheduler.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = "This time slot is already booked"
DOUBLE_BOOKING_MESSAGE = "You already have an appointment at this time"
PROFESSOR_SETTABLE_STATUSES = (STATUS_SCHEDULED, STATUS_COMPLETED)
RECORD_ID_PATTERN = re.compile(r"[0-9]+")


def parse_record_id(value, message: str) -> int:
    """Accept positive integers or their decimal string form."""
    if isinstance(value, bool):
        raise RequestValidationFailed(message)
    if isinstance(value, int):
        record_id = value
    elif isinstance(value, str) and RECORD_ID_PATTERN.fullmatch(value.strip()):
        record_id = int(value.strip())
    else:
        raise RequestValidationFailed(message)
    if record_id <= 0:
        raise RequestValidationFailed(message)
    return record_id


def clean_text(value: str | None, message: str) -> str:
    text = (value or "").strip()
    if len(text) > MAX_TEXT_LENGTH:
        raise RequestValidationFailed(message)
    return text


def is_party(principal: Principal, appointment: Appointment) -> bool:
    if principal.role == ROLE_STUDENT:
        return appointment.student_id == principal.id
    if principal.role == ROLE_PROFESSOR:
        return appointment.professor_id == principal.id
    return False


class BookingEngine:
    def __init__(self, db: Session):
        self.db = db

    def book(self, principal: Principal, availability_id, notes: str | None = None) -> Appointment:
        if principal.role != ROLE_STUDENT:
            raise PermissionDeniedError("Access denied. student role required.")
        if availability_id is None or availability_id == "":
            raise RequestValidationFailed("Availability ID is required")
        slot_id = parse_record_id(availability_id, "Invalid availability ID format")
        notes = clean_text(notes, "Notes must be 500 characters or less")

        with UnitOfWork(self.db, conflict_message=DOUBLE_BOOKING_MESSAGE) as uow:
            slot = uow.slots.get_for_update(slot_id)
            if slot is None:
                raise NotFoundError("Availability slot not found")

            if slot.is_booked:
                raise ConflictError(SLOT_TAKEN_MESSAGE)

            if slot.start_date_time <= timeutil.now():
                raise InvalidStateError("Cannot book past or current time slots")

            if timeutil.minutes_of_day(slot.end_time) <= timeutil.minutes_of_day(slot.start_time):
                raise InvalidStateError("End time must be after start time")

            if uow.appointments.find_scheduled_for_student(principal.id, slot.date, slot.start_time):
                raise ConflictError(DOUBLE_BOOKING_MESSAGE)

            appointment = uow.appointments.add(
                Appointment(
                    student_id=principal.id,
                    professor_id=slot.professor_id,
                    availability_id=slot.id,
                    date=slot.date,
                    start_time=slot.start_time,
                    end_time=slot.end_time,
                    status=STATUS_SCHEDULED,
                    notes=notes,
                )
            )

            if not uow.slots.claim(slot, principal.id):
                raise ConflictError(SLOT_TAKEN_MESSAGE)

        logger.info(
            "Student %s booked slot %s (appointment %s)", principal.id, slot_id, appointment.id
        )
        return appointment

    def cancel(self, principal: Principal, appointment_id, reason: str | None = None) -> Appointment:
        appointment_id = parse_record_id(appointment_id, "Invalid appointment ID format")
        reason = clean_text(reason, "Cancel reason must be 500 characters or less")

        with UnitOfWork(self.db) as uow:
            appointment = uow.appointments.get_for_update(appointment_id)
            if appointment is None:
                raise NotFoundError("Appointment not found")

            if not appointment.is_live:
                raise InvalidStateError("Appointment is already cancelled")

            if not is_party(principal, appointment):
                raise PermissionDeniedError("You do not have permission to cancel this appointment")

            appointment.status = STATUS_CANCELLED
            appointment.cancelled_by_id = principal.id
            appointment.cancelled_at = timeutil.now()
            appointment.cancel_reason = reason

            if appointment.availability_id is not None:
                uow.slots.release(appointment.availability_id)

        logger.info("Appointment %s cancelled by %s %s", appointment_id, principal.role, principal.id)
        return appointment

    def update_status(self, principal: Principal, appointment_id, new_status: str | None) -> Appointment:
        if new_status not in PROFESSOR_SETTABLE_STATUSES:
            raise RequestValidationFailed("Invalid status. Must be completed or scheduled")
        appointment_id = parse_record_id(appointment_id, "Invalid appointment ID format")

        with UnitOfWork(self.db) as uow:
            appointment = uow.appointments.get_for_update(appointment_id)
            if appointment is None:
                raise NotFoundError("Appointment not found")

            if principal.role != ROLE_PROFESSOR or appointment.professor_id != principal.id:
                raise PermissionDeniedError("Only the professor can update appointment status")

            if not appointment.is_live:
                raise InvalidStateError("Cancelled appointments cannot change status")

            appointment.status = new_status

        logger.info("Appointment %s marked %s", appointment_id, new_status)
        return appointment

    def get_appointment(self, principal: Principal, appointment_id) -> Appointment:
        appointment_id = parse_record_id(appointment_id, "Invalid appointment ID format")
        appointment = AppointmentStore(self.db).get(appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment not found")

        if not is_party(principal, appointment):
            raise PermissionDeniedError("You do not have permission to view this appointment")

        return appointment

    def list_appointments(self, principal: Principal, status: str | None = None) -> list[Appointment]:
        # Unknown status filters are ignored rather than rejected.
        if status not in STATUSES:
            status = None
        return AppointmentStore(self.db).list_for_participant(principal, status)
