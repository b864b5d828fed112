"""
Scheduling error taxonomy.

Every admission and attendance failure is raised as a SchedulingError
subclass carrying a stable code and enough detail for the caller to render
a specific message. Unexpected persistence failures become StorageError.
"""

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator, Optional

logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    CLOSED_DAY = "CLOSED_DAY"
    PAST_CLOSING = "PAST_CLOSING"
    BEFORE_OPENING = "BEFORE_OPENING"
    PRIVILEGED_HOUR = "PRIVILEGED_HOUR"
    OVER_CAPACITY = "OVER_CAPACITY"
    DUPLICATE_CHECK_IN = "DUPLICATE_CHECK_IN"
    CHECK_IN_MISSING = "CHECK_IN_MISSING"
    ALREADY_CHECKED_OUT = "ALREADY_CHECKED_OUT"
    RESERVATION_NOT_FOUND = "RESERVATION_NOT_FOUND"
    RESERVATION_CANCELLED = "RESERVATION_CANCELLED"
    CHECK_IN_TOO_EARLY = "CHECK_IN_TOO_EARLY"
    CHECK_IN_WINDOW_CLOSED = "CHECK_IN_WINDOW_CLOSED"
    INVALID_REQUEST = "INVALID_REQUEST"
    STORAGE_ERROR = "STORAGE_ERROR"


class SchedulingError(Exception):
    """Base class for all engine failures."""

    code: ErrorCode = ErrorCode.INVALID_REQUEST

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "detail": self.message,
            "details": self.details,
        }


class InvalidRequestError(SchedulingError):
    code = ErrorCode.INVALID_REQUEST


class ClosedDayError(SchedulingError):
    code = ErrorCode.CLOSED_DAY


class PastClosingError(SchedulingError):
    code = ErrorCode.PAST_CLOSING


class BeforeOpeningError(SchedulingError):
    code = ErrorCode.BEFORE_OPENING


class PrivilegedHourError(SchedulingError):
    code = ErrorCode.PRIVILEGED_HOUR


class OverCapacityError(SchedulingError):
    """Carries the seats still available at the offending hour."""

    code = ErrorCode.OVER_CAPACITY

    def __init__(self, message: str, *, hour: int, remaining: int) -> None:
        super().__init__(message, hour=hour, remaining=remaining)
        self.hour = hour
        self.remaining = remaining


class DuplicateCheckInError(SchedulingError):
    code = ErrorCode.DUPLICATE_CHECK_IN


class CheckInMissingError(SchedulingError):
    code = ErrorCode.CHECK_IN_MISSING


class AlreadyCheckedOutError(SchedulingError):
    code = ErrorCode.ALREADY_CHECKED_OUT


class CheckInTooEarlyError(SchedulingError):
    code = ErrorCode.CHECK_IN_TOO_EARLY


class CheckInWindowClosedError(SchedulingError):
    code = ErrorCode.CHECK_IN_WINDOW_CLOSED


class ReservationNotFoundError(SchedulingError):
    code = ErrorCode.RESERVATION_NOT_FOUND


class ReservationCancelledError(SchedulingError):
    code = ErrorCode.RESERVATION_CANCELLED


class StorageError(SchedulingError):
    code = ErrorCode.STORAGE_ERROR


@contextmanager
def translate_storage_errors(operation: str, **context: Any) -> Iterator[None]:
    """
    Surface unexpected persistence failures as StorageError.

    SchedulingErrors pass through untouched.
    """
    try:
        yield
    except SchedulingError:
        raise
    except Exception as e:
        logger.error(
            "Storage operation failed",
            extra={"operation": operation, "error": str(e), **_stringify(context)},
        )
        raise StorageError(
            f"Storage operation '{operation}' failed",
            operation=operation,
        ) from e


def _stringify(context: dict[str, Any]) -> dict[str, Optional[str]]:
    return {key: None if value is None else str(value) for key, value in context.items()}
