"""Slot and appointment stores.

Both stores wrap the same ``Session`` so that a unit of work can mutate them
inside one transaction. Neither store commits.
"""

from datetime import date

from sqlalchemy import update
from sqlalchemy.orm import Session

from campus_scheduler.core import timeutil
from campus_scheduler.models.appointment import STATUS_CANCELLED, STATUS_SCHEDULED, Appointment
from campus_scheduler.models.availability import Availability
from campus_scheduler.models.user import ROLE_STUDENT


class SlotStore:
    def __init__(self, session: Session):
        self.session = session

    def add(self, slot: Availability) -> Availability:
        self.session.add(slot)
        self.session.flush()
        return slot

    def get(self, slot_id: int) -> Availability | None:
        return self.session.get(Availability, slot_id)

    def get_for_update(self, slot_id: int) -> Availability | None:
        # FOR UPDATE is a no-op on SQLite, which serialises writers anyway.
        return (
            self.session.query(Availability)
            .filter(Availability.id == slot_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def find_duplicate(self, professor_id: int, slot_date: date, start_time: str, end_time: str) -> Availability | None:
        return self.session.query(Availability).filter(
            Availability.professor_id == professor_id,
            Availability.date == slot_date,
            Availability.start_time == start_time,
            Availability.end_time == end_time,
        ).first()

    def list_for_professor(
        self,
        professor_id: int,
        from_date: date,
        on_date: date | None = None,
        unbooked_only: bool = False,
    ) -> list[Availability]:
        query = self.session.query(Availability).filter(Availability.professor_id == professor_id)

        if on_date is not None:
            query = query.filter(Availability.date == on_date)
        query = query.filter(Availability.date >= from_date)

        if unbooked_only:
            query = query.filter(Availability.is_booked.is_(False))

        return query.order_by(Availability.date.asc(), Availability.start_time.asc()).all()

    def claim(self, slot: Availability, student_id: int) -> bool:
        """Mark the slot booked unless another transaction already did.

        Returns False when the slot was already claimed; only one concurrent
        caller can see the conditional update match.
        """
        result = self.session.execute(
            update(Availability)
            .where(Availability.id == slot.id, Availability.is_booked.is_(False))
            .values(is_booked=True, booked_by_id=student_id, updated_at=timeutil.now())
            .execution_options(synchronize_session=False)
        )
        self.session.expire(slot)
        return result.rowcount == 1

    def release(self, slot_id: int) -> Availability | None:
        slot = self.get(slot_id)
        if slot is None:
            return None
        slot.is_booked = False
        slot.booked_by_id = None
        self.session.flush()
        return slot

    def delete(self, slot: Availability) -> None:
        self.session.delete(slot)
        self.session.flush()


class AppointmentStore:
    def __init__(self, session: Session):
        self.session = session

    def add(self, appointment: Appointment) -> Appointment:
        self.session.add(appointment)
        self.session.flush()
        return appointment

    def get(self, appointment_id: int) -> Appointment | None:
        return self.session.get(Appointment, appointment_id)

    def get_for_update(self, appointment_id: int) -> Appointment | None:
        return (
            self.session.query(Appointment)
            .filter(Appointment.id == appointment_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def find_scheduled_for_student(self, student_id: int, slot_date: date, start_time: str) -> Appointment | None:
        return self.session.query(Appointment).filter(
            Appointment.student_id == student_id,
            Appointment.date == slot_date,
            Appointment.start_time == start_time,
            Appointment.status == STATUS_SCHEDULED,
        ).first()

    def list_for_participant(self, principal, status: str | None = None) -> list[Appointment]:
        if principal.role == ROLE_STUDENT:
            query = self.session.query(Appointment).filter(Appointment.student_id == principal.id)
        else:
            query = self.session.query(Appointment).filter(Appointment.professor_id == principal.id)

        if status is not None:
            query = query.filter(Appointment.status == status)

        return query.order_by(Appointment.date.asc(), Appointment.start_time.asc()).all()

    def live_for_availability(self, slot_id: int) -> list[Appointment]:
        return self.session.query(Appointment).filter(
            Appointment.availability_id == slot_id,
            Appointment.status != STATUS_CANCELLED,
        ).all()

    def detach_availability(self, slot_id: int) -> None:
        """Drop the slot reference from historical appointments before the slot is deleted."""
        self.session.execute(
            update(Appointment)
            .where(Appointment.availability_id == slot_id)
            .values(availability_id=None)
            .execution_options(synchronize_session=False)
        )
