"""Error kinds raised by services; main.py maps each to an HTTP status."""


class BambinoError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BambinoError):
    """Malformed input, out-of-range field, or a broken business rule."""
    status_code = 400


class NotFoundError(BambinoError):
    """Missing record, or one owned by somebody else. Deliberately the same response."""
    status_code = 404


class ConflictError(NotFoundError):
    """Lost a stop race: the open timer was closed by a concurrent request."""


class TimerRunningError(BambinoError):
    status_code = 409


class InternalError(BambinoError):
    status_code = 500
