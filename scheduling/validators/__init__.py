"""
Booking validators.

Validators for inputs and business rules that must hold before the
BookingTransaction or the AvailabilityEngine touch the calendar store.
"""

from scheduling.validators.booking_validators import (
    ValidationResult,
    validate_catalog_membership,
    validate_customer_info,
    validate_date_range,
    validate_slot_window,
)

__all__ = [
    "ValidationResult",
    "validate_catalog_membership",
    "validate_customer_info",
    "validate_date_range",
    "validate_slot_window",
]
