from threading import Lock

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from campus_scheduler.core import config


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(
    config.DATABASE_URL,
    echo=config.DATABASE_ECHO,
    **_engine_options(config.DATABASE_URL),
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_schema_checked = False

PARTIAL_INDEX_DIALECTS = {"sqlite", "postgresql"}

INDEX_STATEMENTS = (
    'CREATE INDEX IF NOT EXISTS idx_availability_professor_date ON availability(professor_id, date, start_time)',
    'CREATE INDEX IF NOT EXISTS idx_availability_booked_date ON availability(is_booked, date)',
    'CREATE INDEX IF NOT EXISTS idx_appointments_student_date ON appointments(student_id, date, start_time)',
    'CREATE INDEX IF NOT EXISTS idx_appointments_professor_date ON appointments(professor_id, date, start_time)',
    'CREATE INDEX IF NOT EXISTS idx_appointments_availability ON appointments(availability_id)',
)

# One scheduled appointment per (student, date, start_time).
SCHEDULED_SLOT_INDEX = (
    'CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_student_scheduled_slot '
    "ON appointments(student_id, date, start_time) WHERE status = 'scheduled'"
)


def _apply_indexes(bind: Engine) -> None:
    with bind.begin() as connection:
        for statement in INDEX_STATEMENTS:
            connection.execute(text(statement))
        if bind.dialect.name in PARTIAL_INDEX_DIALECTS:
            connection.execute(text(SCHEDULED_SLOT_INDEX))


def ensure_schema_indexes(bind: Engine | None = None) -> None:
    global _schema_checked

    if bind is not None:
        _apply_indexes(bind)
        return

    if _schema_checked:
        return

    with _schema_lock:
        if _schema_checked:
            return

        _apply_indexes(engine)
        _schema_checked = True


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
