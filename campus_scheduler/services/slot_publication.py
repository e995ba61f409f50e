import logging
from datetime import date

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
from campus_scheduler.models.availability import DEFAULT_DURATION_MINUTES, Availability
from campus_scheduler.models.user import ROLE_PROFESSOR, User
from campus_scheduler.services.booking_engine import parse_record_id
from campus_scheduler.services.stores import SlotStore
from campus_scheduler.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

DUPLICATE_SLOT_MESSAGE = "Availability already exists for this time slot"


def validate_duration(duration) -> int:
    if duration is None:
        return DEFAULT_DURATION_MINUTES
    if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
        raise RequestValidationFailed("Duration must be a positive number of minutes")
    return duration


class SlotPublisher:
    def __init__(self, db: Session):
        self.db = db

    def _require_professor(self, professor_id) -> int:
        professor_id = parse_record_id(professor_id, "Invalid professor ID format")
        professor = self.db.get(User, professor_id)
        if professor is None or professor.role != ROLE_PROFESSOR:
            raise NotFoundError("Professor not found")
        return professor_id

    def create_availability(
        self,
        principal: Principal,
        slot_date: date | None,
        start_time: str | None,
        end_time: str | None,
        duration: int | None = None,
    ) -> Availability:
        if principal.role != ROLE_PROFESSOR:
            raise PermissionDeniedError("Access denied. professor role required.")

        if slot_date is None or not start_time or not end_time:
            raise RequestValidationFailed("Date, start time, and end time are required")

        if slot_date < timeutil.today():
            raise RequestValidationFailed("Cannot create availability for past dates")

        if not timeutil.is_valid_hhmm(start_time) or not timeutil.is_valid_hhmm(end_time):
            raise RequestValidationFailed("Invalid time format. Use HH:MM format")

        start_time = timeutil.normalize_hhmm(start_time)
        end_time = timeutil.normalize_hhmm(end_time)
        if timeutil.minutes_of_day(end_time) <= timeutil.minutes_of_day(start_time):
            raise RequestValidationFailed("End time must be after start time")

        duration = validate_duration(duration)

        with UnitOfWork(self.db, conflict_message=DUPLICATE_SLOT_MESSAGE) as uow:
            if uow.slots.find_duplicate(principal.id, slot_date, start_time, end_time):
                raise ConflictError(DUPLICATE_SLOT_MESSAGE)

            slot = uow.slots.add(
                Availability(
                    professor_id=principal.id,
                    date=slot_date,
                    start_time=start_time,
                    end_time=end_time,
                    duration=duration,
                    is_booked=False,
                )
            )

        logger.info("Professor %s published slot %s on %s %s-%s", principal.id, slot.id, slot_date, start_time, end_time)
        return slot

    def list_professor_availability(self, viewer: Principal, professor_id=None) -> list[Availability]:
        """All of a professor's slots from today on, booked or not.

        Without ``professor_id`` the viewer's own slots are listed.
        """
        if professor_id is None:
            target_id = viewer.id
        elif viewer.role == ROLE_PROFESSOR and parse_record_id(professor_id, "Invalid professor ID format") == viewer.id:
            target_id = viewer.id
        else:
            target_id = self._require_professor(professor_id)

        return SlotStore(self.db).list_for_professor(target_id, from_date=timeutil.today())

    def list_available_slots(self, professor_id, on_date: date | None = None) -> list[Availability]:
        target_id = self._require_professor(professor_id)
        now = timeutil.now()

        slots = SlotStore(self.db).list_for_professor(
            target_id,
            from_date=now.date(),
            on_date=on_date,
            unbooked_only=True,
        )
        return [slot for slot in slots if slot.start_date_time > now]

    def delete_availability(self, principal: Principal, availability_id) -> None:
        slot_id = parse_record_id(availability_id, "Invalid availability ID format")

        with UnitOfWork(self.db) as uow:
            slot = uow.slots.get_for_update(slot_id)
            if slot is None or slot.professor_id != principal.id:
                raise NotFoundError("Availability slot not found")

            if slot.is_booked or uow.appointments.live_for_availability(slot.id):
                raise InvalidStateError("Cannot delete booked availability slot")

            uow.appointments.detach_availability(slot.id)
            uow.slots.delete(slot)

        logger.info("Professor %s deleted slot %s", principal.id, slot_id)
