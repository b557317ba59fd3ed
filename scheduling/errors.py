"""
Scheduling error taxonomy.

- InvalidRequestError: malformed input, rejected before touching the store
- StoreUnavailableError: transient store failure or timeout; retry the whole attempt
- NotFoundError: unknown barbershop, or unknown appointment id for the barbershop
  (AppointmentNotFoundError)
- ConflictError: raised by CalendarStore.try_reserve and CalendarStore.reschedule,
  surfaced as SLOT_TAKEN; re-query availability, never blind-retry

INVALID_SLOT (outside resolved open hours or inside the lead time) is reported
through a ValidationResult from validate_slot_window, not raised.

An empty slot list is the normal representation of zero availability and is
never an error.
"""

from enum import Enum
from typing import Any


class BookingErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    SLOT_TAKEN = "SLOT_TAKEN"
    INVALID_SLOT = "INVALID_SLOT"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    NOT_FOUND = "NOT_FOUND"


class SchedulingError(Exception):
    """Base class carrying a machine-readable code and structured details."""

    code: BookingErrorCode = BookingErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidRequestError(SchedulingError):
    code = BookingErrorCode.VALIDATION_ERROR


class StoreUnavailableError(SchedulingError):
    code = BookingErrorCode.STORE_UNAVAILABLE


class InvalidTransitionError(SchedulingError):
    code = BookingErrorCode.INVALID_TRANSITION


class NotFoundError(SchedulingError):
    code = BookingErrorCode.NOT_FOUND


class AppointmentNotFoundError(NotFoundError):
    pass


class ConflictError(SchedulingError):
    """An existing PENDING/CONFIRMED appointment overlaps the requested interval."""

    code = BookingErrorCode.SLOT_TAKEN
