"""Error taxonomy shared by the services and the HTTP layer.

Services raise these; ``campus_scheduler.main`` turns them into the
``{"success": false, "message": ...}`` envelope with the matching status.
"""


class SchedulerError(Exception):
    """Base class for every error the API reports to clients."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class RequestValidationFailed(SchedulerError):
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(SchedulerError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(SchedulerError):
    status_code = 400
    default_message = "Conflicting record already exists"


class InvalidStateError(SchedulerError):
    status_code = 400
    default_message = "Operation not allowed in the current state"


class PermissionDeniedError(SchedulerError):
    status_code = 403
    default_message = "Permission denied"


class AuthError(SchedulerError):
    status_code = 401
    default_message = "Authentication required"


class InternalError(SchedulerError):
    status_code = 500
    default_message = "Internal server error"
