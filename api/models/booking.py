"""Request/response models for the availability and booking routes."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from database.models import AppointmentStatus
from scheduling.errors import BookingErrorCode
from scheduling.models import CustomerInfo
from scheduling.transactions import AppointmentSummary, BookingConfirmation


class SlotResponse(BaseModel):
    barber_id: UUID
    service_id: UUID
    start: datetime
    end: datetime


class AvailabilityResponse(BaseModel):
    barbershop_id: UUID
    timezone: str
    service_id: UUID
    barber_id: Optional[UUID] = None
    slots: list[SlotResponse]


class BookingRequest(BaseModel):
    """
    Booking wizard submission.

    ``start`` may be timezone-aware or naive; naive values are read in the
    barbershop's timezone.
    """
    barber_id: UUID
    service_id: UUID
    start: datetime
    customer_name: str = Field(..., min_length=1, max_length=100)
    customer_email: str = Field(..., min_length=3, max_length=255)
    customer_phone: Optional[str] = Field(None, max_length=30)
    notes: Optional[str] = Field(None, max_length=500)

    def to_customer(self) -> CustomerInfo:
        return CustomerInfo(
            name=self.customer_name,
            email=self.customer_email,
            phone=self.customer_phone or None,
            notes=self.notes or None,
        )


class BookingResponse(BaseModel):
    appointment: AppointmentSummary
    confirmation: BookingConfirmation


class StatusChangeRequest(BaseModel):
    status: AppointmentStatus


class UpdateAppointmentRequest(BaseModel):
    """Edit of an existing appointment. Omitted fields keep their current value."""
    start: Optional[datetime] = None
    service_id: Optional[UUID] = None
    notes: Optional[str] = Field(None, max_length=500)
    customer_phone: Optional[str] = Field(None, max_length=30)


class AppointmentPageResponse(BaseModel):
    content: list[AppointmentSummary]
    page_number: int
    page_size: int
    total_elements: int
    total_pages: int
    first: bool
    last: bool


class ErrorResponse(BaseModel):
    error_code: BookingErrorCode
    error_message: str
    details: dict[str, Any] = Field(default_factory=dict)
