"""
Booking Validators - checks run before the calendar store is touched.

- validate_customer_info: contact data captured by the booking wizard
- validate_date_range: availability query window
- validate_catalog_membership: barber/service active and owned by the shop
- validate_slot_window: slot inside the resolved open interval and past the lead time

Each validator returns a ValidationResult instead of raising, so callers can
decide whether a failure is a VALIDATION_ERROR or an INVALID_SLOT.
"""

import logging
import re
from datetime import datetime, timedelta
from typing import Any, Optional

from pydantic import BaseModel, Field

from scheduling.errors import BookingErrorCode
from scheduling.models import (
    BarberProfile,
    CustomerInfo,
    DateRange,
    ServiceProfile,
    ShopProfile,
    TimeInterval,
)

logger = logging.getLogger(__name__)

MAX_CUSTOMER_NAME_LENGTH = 100
MAX_NOTES_LENGTH = 500

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(
    r"^[+]?[(]?[0-9]{1,3}[)]?[-\s.]?[(]?[0-9]{1,4}[)]?[-\s.]?[0-9]{1,4}[-\s.]?[0-9]{1,9}$"
)


class ValidationResult(BaseModel):
    """Result of a booking validation step."""
    valid: bool
    error_code: Optional[BookingErrorCode] = None
    error_message: Optional[str] = None
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(
        cls, error_code: BookingErrorCode, error_message: str, **details: Any
    ) -> "ValidationResult":
        return cls(valid=False, error_code=error_code, error_message=error_message, details=details)


def validate_customer_info(customer: CustomerInfo) -> ValidationResult:
    """
    Validate customer contact data.

    Rules:
    - name required, at most 100 characters
    - email required and well-formed
    - phone optional; when present it must look like a phone number
    - notes optional, at most 500 characters
    """
    name = (customer.name or "").strip()
    if not name:
        return ValidationResult.fail(
            BookingErrorCode.VALIDATION_ERROR, "Customer name is required", field="name"
        )
    if len(name) > MAX_CUSTOMER_NAME_LENGTH:
        return ValidationResult.fail(
            BookingErrorCode.VALIDATION_ERROR,
            f"Customer name must be at most {MAX_CUSTOMER_NAME_LENGTH} characters",
            field="name",
        )

    email = (customer.email or "").strip()
    if not email or not EMAIL_PATTERN.match(email):
        return ValidationResult.fail(
            BookingErrorCode.VALIDATION_ERROR, "A valid email address is required", field="email"
        )

    if customer.phone and not PHONE_PATTERN.match(customer.phone.strip()):
        return ValidationResult.fail(
            BookingErrorCode.VALIDATION_ERROR, "Invalid phone number", field="phone"
        )

    if customer.notes and len(customer.notes) > MAX_NOTES_LENGTH:
        return ValidationResult.fail(
            BookingErrorCode.VALIDATION_ERROR,
            f"Notes must be at most {MAX_NOTES_LENGTH} characters",
            field="notes",
        )

    return ValidationResult.ok()


def validate_date_range(date_range: DateRange, max_days: int) -> ValidationResult:
    if date_range.start > date_range.end:
        return ValidationResult.fail(
            BookingErrorCode.VALIDATION_ERROR,
            "start_date must not be after end_date",
            start_date=date_range.start.isoformat(),
            end_date=date_range.end.isoformat(),
        )
    if date_range.length_days > max_days:
        return ValidationResult.fail(
            BookingErrorCode.VALIDATION_ERROR,
            f"Date range exceeds the maximum of {max_days} days",
            requested_days=date_range.length_days,
            max_days=max_days,
        )
    return ValidationResult.ok()


def validate_catalog_membership(
    shop: ShopProfile,
    barber: BarberProfile | None,
    service: ServiceProfile,
) -> ValidationResult:
    """Barbershop, barber and service must be active and belong together."""
    if not shop.is_active:
        return ValidationResult.fail(
            BookingErrorCode.VALIDATION_ERROR, "Barbershop is not active", barbershop_id=str(shop.id)
        )
    if service.barbershop_id != shop.id:
        return ValidationResult.fail(
            BookingErrorCode.VALIDATION_ERROR,
            "Service does not belong to this barbershop",
            service_id=str(service.id),
        )
    if not service.is_active:
        return ValidationResult.fail(
            BookingErrorCode.VALIDATION_ERROR, "Service is not active", service_id=str(service.id)
        )
    if barber is not None:
        if barber.barbershop_id != shop.id:
            return ValidationResult.fail(
                BookingErrorCode.VALIDATION_ERROR,
                "Barber does not belong to this barbershop",
                barber_id=str(barber.id),
            )
        if not barber.is_active:
            return ValidationResult.fail(
                BookingErrorCode.VALIDATION_ERROR, "Barber is not active", barber_id=str(barber.id)
            )
    return ValidationResult.ok()


def validate_slot_window(
    slot: TimeInterval,
    open_interval: TimeInterval | None,
    now: datetime,
    lead_time_minutes: int,
) -> ValidationResult:
    """
    Validate that a requested slot is bookable against resolved hours.

    Args:
        slot: Requested [start, end) in UTC
        open_interval: Resolved open interval for the shop-local date, None if closed
        now: Current instant from the injected clock
        lead_time_minutes: Minimum notice before the slot starts
    """
    if open_interval is None:
        return ValidationResult.fail(
            BookingErrorCode.INVALID_SLOT,
            "Barber is not working on the requested date",
            start=slot.start.isoformat(),
        )

    if not open_interval.contains(slot):
        return ValidationResult.fail(
            BookingErrorCode.INVALID_SLOT,
            "Requested time is outside opening hours",
            start=slot.start.isoformat(),
            end=slot.end.isoformat(),
            open=open_interval.start.isoformat(),
            close=open_interval.end.isoformat(),
        )

    earliest = now + timedelta(minutes=lead_time_minutes)
    if slot.start < earliest:
        return ValidationResult.fail(
            BookingErrorCode.INVALID_SLOT,
            f"Appointments must be booked at least {lead_time_minutes} minutes in advance",
            start=slot.start.isoformat(),
            earliest_start=earliest.isoformat(),
            lead_time_minutes=lead_time_minutes,
        )

    return ValidationResult.ok()
