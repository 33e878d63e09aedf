"""Caller-facing error taxonomy for the scheduling service.

Services raise these; ``app.main`` maps them onto HTTP status codes. None of
them is fatal: every check runs before the write it guards.
"""


class ScheduleError(Exception):
    code = "schedule_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ScheduleError):
    code = "not_found"
    status_code = 404


class InvalidArgumentError(ScheduleError):
    code = "invalid_argument"
    status_code = 400


class PastDateError(InvalidArgumentError):
    code = "past_date"


class ConflictError(ScheduleError):
    code = "conflict"
    status_code = 409
