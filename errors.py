"""Failure kinds raised by the booking service.

Every failure carries a human-readable message; validation failures also
carry the ordered list of violated fields.
"""

from enum import Enum
from typing import NamedTuple, Optional, Sequence

from fastapi import status


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    SERVICE_UNAVAILABLE = "service_unavailable"


class Violation(NamedTuple):
    field: str
    message: str


class BookingError(Exception):
    kind: ErrorKind
    status_code: int

    def __init__(self, message: str, errors: Optional[Sequence[Violation]] = None):
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])


class InvalidInput(BookingError):
    kind = ErrorKind.INVALID_INPUT
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(BookingError):
    kind = ErrorKind.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(BookingError):
    kind = ErrorKind.CONFLICT
    status_code = status.HTTP_409_CONFLICT


class ServiceUnavailable(BookingError):
    kind = ErrorKind.SERVICE_UNAVAILABLE
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
