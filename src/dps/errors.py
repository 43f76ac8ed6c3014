from __future__ import annotations


class DfacError(Exception):
    code = "DFAC_ERROR"
    retryable = False

    def __init__(self, message: str, *, field: str | None = None, value: object = None) -> None:
        super().__init__(f"{self.code}: {message}")
        self.message = message
        self.field = field
        self.value = value


class ValidationError(DfacError, ValueError):
    code = "DFAC_VALIDATION_FAILED"


class BadReferenceError(DfacError):
    code = "DFAC_BAD_REFERENCE"

    def __init__(self, field: str, value: object) -> None:
        super().__init__(f"Bad {field}: {value}", field=field, value=value)


class NotFoundError(DfacError):
    code = "DFAC_NOT_FOUND"


class IntegrityViolationError(DfacError):
    code = "DFAC_INTEGRITY_VIOLATION"


class InvalidTransitionError(DfacError):
    code = "ORDER_INVALID_TRANSITION"


class OrderAlreadyTerminalError(InvalidTransitionError):
    code = "ORDER_ALREADY_TERMINAL"


class OrderWindowClosedError(DfacError):
    code = "ORDER_WINDOW_CLOSED"


class DatastoreUnavailableError(DfacError):
    code = "DFAC_DATASTORE_UNAVAILABLE"
    retryable = True
