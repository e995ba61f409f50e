import os
from datetime import date, timedelta

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('BCRYPT_ROUNDS', '4')
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret-key-for-the-campus-scheduler-suite')

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from campus_scheduler.database import Base, ensure_schema_indexes, get_db  # noqa: E402
from campus_scheduler.models.appointment import Appointment  # noqa: E402,F401
from campus_scheduler.models.availability import Availability  # noqa: E402
from campus_scheduler.models.user import User  # noqa: E402


@pytest.fixture
def engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    ensure_schema_indexes(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make_user(username: str, role: str = 'student', department: str | None = 'Computer Science') -> User:
        user = User(
            username=username,
            email=f'{username.lower()}@college.edu',
            hashed_password='',
            role=role,
            full_name=username.replace('_', ' ').title(),
            department=department,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def professor(make_user) -> User:
    return make_user('professor_p1', role='professor')


@pytest.fixture
def student(make_user) -> User:
    return make_user('student_a1')


@pytest.fixture
def other_student(make_user) -> User:
    return make_user('student_a2')


@pytest.fixture
def tomorrow() -> date:
    return date.today() + timedelta(days=1)


@pytest.fixture
def make_slot(db, professor, tomorrow):
    def _make_slot(
        slot_date: date | None = None,
        start_time: str = '10:00',
        end_time: str = '11:00',
        owner: User | None = None,
    ) -> Availability:
        slot = Availability(
            professor_id=(owner or professor).id,
            date=slot_date or tomorrow,
            start_time=start_time,
            end_time=end_time,
            is_booked=False,
            duration=60,
        )
        db.add(slot)
        db.commit()
        db.refresh(slot)
        return slot

    return _make_slot


@pytest.fixture
def client(session_factory):
    from campus_scheduler.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """Register through the API and return (auth headers, user payload)."""

    def _register(username: str, role: str = 'student') -> tuple[dict, dict]:
        response = client.post(
            '/api/auth/register',
            json={
                'username': username,
                'email': f'{username.lower()}@college.edu',
                'password': 'password123',
                'role': role,
                'fullName': username.replace('_', ' ').title(),
                'department': 'Computer Science',
            },
        )
        assert response.status_code == 201, response.text
        data = response.json()['data']
        return {'Authorization': f"Bearer {data['token']}"}, data['user']

    return _register
