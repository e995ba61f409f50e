import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from campus_scheduler.core.errors import ConflictError, InternalError
from campus_scheduler.services.stores import AppointmentStore, SlotStore

logger = logging.getLogger(__name__)


class UnitOfWork:
    """Groups slot and appointment writes into a single transaction.

    Use as a context manager: a clean exit commits, any exception rolls
    back every write made through ``slots`` and ``appointments``. Integrity
    violations surface as ``ConflictError`` and other database failures as
    ``InternalError``; domain errors propagate unchanged.
    """

    def __init__(self, session: Session, conflict_message: str | None = None):
        self.session = session
        self.conflict_message = conflict_message
        self.slots = SlotStore(session)
        self.appointments = AppointmentStore(session)
        self._active = False

    def begin(self) -> "UnitOfWork":
        if self._active:
            raise RuntimeError("Unit of work already started")
        if not self.session.in_transaction():
            self.session.begin()
        self._active = True
        return self

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.abort()
            self._raise_translated(exc)
        finally:
            self._active = False

    def abort(self) -> None:
        self.session.rollback()
        self._active = False

    def _raise_translated(self, exc: SQLAlchemyError) -> None:
        if isinstance(exc, IntegrityError):
            raise ConflictError(self.conflict_message) from exc
        logger.exception("Unit of work failed")
        raise InternalError() from exc

    def __enter__(self) -> "UnitOfWork":
        return self.begin()

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.commit()
            return False

        self.abort()
        if isinstance(exc, SQLAlchemyError):
            self._raise_translated(exc)
        return False
