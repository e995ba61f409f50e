import threading
from datetime import date, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from campus_scheduler.auth.credentials import Principal
from campus_scheduler.core.errors import ConflictError
from campus_scheduler.database import Base, ensure_schema_indexes
from campus_scheduler.models.appointment import Appointment
from campus_scheduler.models.availability import Availability
from campus_scheduler.models.user import User
from campus_scheduler.services.booking_engine import BookingEngine

CONTENDERS = 8


@pytest.fixture
def file_session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={'check_same_thread': False, 'timeout': 30},
    )
    Base.metadata.create_all(bind=engine)
    ensure_schema_indexes(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        engine.dispose()


@pytest.fixture
def contested_slot(file_session_factory) -> tuple[int, list[Principal]]:
    session = file_session_factory()
    try:
        professor = User(
            username='professor_p1',
            email='professor_p1@college.edu',
            hashed_password='',
            role='professor',
            full_name='Professor P1',
        )
        students = [
            User(
                username=f'student_{index}',
                email=f'student_{index}@college.edu',
                hashed_password='',
                role='student',
                full_name=f'Student {index}',
            )
            for index in range(CONTENDERS)
        ]
        session.add_all([professor, *students])
        session.flush()

        slot = Availability(
            professor_id=professor.id,
            date=date.today() + timedelta(days=1),
            start_time='10:00',
            end_time='11:00',
            is_booked=False,
            duration=60,
        )
        session.add(slot)
        session.commit()
        return slot.id, [Principal.from_user(student) for student in students]
    finally:
        session.close()


def test_concurrent_bookings_leave_exactly_one_winner(file_session_factory, contested_slot) -> None:
    slot_id, principals = contested_slot
    barrier = threading.Barrier(len(principals))
    outcomes: list = []
    outcomes_lock = threading.Lock()

    def attempt(principal: Principal) -> None:
        session = file_session_factory()
        try:
            barrier.wait()
            try:
                appointment = BookingEngine(session).book(principal, slot_id)
                outcome = ('ok', principal.id, appointment.id)
            except Exception as exc:
                outcome = ('error', principal.id, exc)
            with outcomes_lock:
                outcomes.append(outcome)
        finally:
            session.close()

    threads = [threading.Thread(target=attempt, args=(principal,)) for principal in principals]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    winners = [outcome for outcome in outcomes if outcome[0] == 'ok']
    losers = [outcome[2] for outcome in outcomes if outcome[0] == 'error']
    assert len(outcomes) == CONTENDERS
    assert len(winners) == 1
    assert all(isinstance(error, ConflictError) for error in losers), losers
    assert {error.message for error in losers} == {'This time slot is already booked'}

    session = file_session_factory()
    try:
        appointments = session.query(Appointment).all()
        slot = session.get(Availability, slot_id)
        assert len(appointments) == 1
        assert appointments[0].student_id == winners[0][1]
        assert slot.is_booked is True
        assert slot.booked_by_id == winners[0][1]
    finally:
        session.close()
