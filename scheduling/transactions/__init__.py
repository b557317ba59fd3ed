"""
Booking transaction handlers.

BookingTransaction is the single entry point for creating appointments and
changing their status. It validates against resolved opening hours and the
lead time, then delegates to the calendar store's atomic check-and-insert.
"""

from scheduling.transactions.booking_transaction import (
    ALLOWED_TRANSITIONS,
    AppointmentSummary,
    BookingConfirmation,
    BookingResult,
    BookingTransaction,
    can_transition,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "AppointmentSummary",
    "BookingConfirmation",
    "BookingResult",
    "BookingTransaction",
    "can_transition",
]
