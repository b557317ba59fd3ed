"""
Barbershop Appointment Endpoints (authenticated)

Every route requires a Bearer token whose ``barbershop_ids`` claim includes
the barbershop in the path.

- POST   /api/barbershops/{barbershop_id}/appointments
- GET    /api/barbershops/{barbershop_id}/appointments
- GET    /api/barbershops/{barbershop_id}/appointments/{appointment_id}
- PUT    /api/barbershops/{barbershop_id}/appointments/{appointment_id}
- POST   /api/barbershops/{barbershop_id}/appointments/{appointment_id}/status
- DELETE /api/barbershops/{barbershop_id}/appointments/{appointment_id}
"""

import logging
from datetime import date, time, timedelta
from typing import Annotated, Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import get_booking_transaction, get_calendar_store, get_catalog_service
from api.errors import booking_failure_response
from api.models.booking import (
    AppointmentPageResponse,
    BookingRequest,
    BookingResponse,
    StatusChangeRequest,
    UpdateAppointmentRequest,
)
from api.security import require_barbershop_access
from database.models import AppointmentStatus
from scheduling.errors import AppointmentNotFoundError, InvalidRequestError, NotFoundError
from scheduling.services import AppointmentFilters, CalendarStore, CatalogService
from scheduling.services.schedule_resolver import get_zone, local_to_utc
from scheduling.transactions import AppointmentSummary, BookingTransaction

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/barbershops/{barbershop_id}/appointments", tags=["appointments"])

MAX_PAGE_SIZE = 100


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    barbershop_id: UUID,
    request: BookingRequest,
    current_user: Annotated[dict[str, Any], Depends(require_barbershop_access)],
    transaction: Annotated[BookingTransaction, Depends(get_booking_transaction)],
):
    """Book on behalf of the barbershop (same rules as the public wizard)."""
    result = await transaction.execute(
        barbershop_id=barbershop_id,
        barber_id=request.barber_id,
        service_id=request.service_id,
        requested_start=request.start,
        customer=request.to_customer(),
    )
    if not result.success:
        return booking_failure_response(result)

    logger.info(
        f"Appointment booked by {current_user.get('sub')}",
        extra={"barbershop_id": barbershop_id, "appointment_id": result.appointment.id},
    )
    return BookingResponse(appointment=result.appointment, confirmation=result.confirmation)


@router.get("", response_model=AppointmentPageResponse)
async def list_appointments(
    barbershop_id: UUID,
    current_user: Annotated[dict[str, Any], Depends(require_barbershop_access)],
    store: Annotated[CalendarStore, Depends(get_calendar_store)],
    catalog: Annotated[CatalogService, Depends(get_catalog_service)],
    barber_id: Optional[UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
):
    """
    Page through appointments ordered by start.

    start_date/end_date are barbershop-local, inclusive, and select
    appointments overlapping that span.
    """
    shop = await catalog.get_shop(barbershop_id)
    if shop is None:
        raise NotFoundError("Barbershop not found", {"barbershop_id": str(barbershop_id)})

    if start_date and end_date and start_date > end_date:
        raise InvalidRequestError(
            "start_date must not be after end_date",
            {"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
        )

    zone = get_zone(shop.timezone)
    filters = AppointmentFilters(
        barber_id=barber_id,
        window_start=local_to_utc(start_date, time.min, zone) if start_date else None,
        window_end=local_to_utc(end_date + timedelta(days=1), time.min, zone) if end_date else None,
        status=status_filter,
    )

    result = await store.list_appointments(barbershop_id, filters, page=page, size=size)
    return AppointmentPageResponse(
        content=[AppointmentSummary.model_validate(a) for a in result.content],
        page_number=result.page_number,
        page_size=result.page_size,
        total_elements=result.total_elements,
        total_pages=result.total_pages,
        first=result.first,
        last=result.last,
    )


@router.get("/{appointment_id}", response_model=AppointmentSummary)
async def get_appointment(
    barbershop_id: UUID,
    appointment_id: UUID,
    current_user: Annotated[dict[str, Any], Depends(require_barbershop_access)],
    store: Annotated[CalendarStore, Depends(get_calendar_store)],
):
    appointment = await store.get_appointment(appointment_id)
    if appointment is None or appointment.barbershop_id != barbershop_id:
        raise AppointmentNotFoundError(
            "Appointment not found", {"appointment_id": str(appointment_id)}
        )
    return AppointmentSummary.model_validate(appointment)


@router.put("/{appointment_id}", response_model=BookingResponse)
async def update_appointment(
    barbershop_id: UUID,
    appointment_id: UUID,
    request: UpdateAppointmentRequest,
    current_user: Annotated[dict[str, Any], Depends(require_barbershop_access)],
    transaction: Annotated[BookingTransaction, Depends(get_booking_transaction)],
):
    """
    Reschedule an appointment or edit its notes and phone.

    A new start or service is checked like a new booking: 422 INVALID_SLOT
    outside hours or inside the lead time, 409 SLOT_TAKEN when another
    appointment overlaps.
    """
    result = await transaction.update(
        barbershop_id,
        appointment_id,
        requested_start=request.start,
        service_id=request.service_id,
        notes=request.notes,
        customer_phone=request.customer_phone,
    )
    if not result.success:
        return booking_failure_response(result)

    logger.info(
        f"Appointment updated by {current_user.get('sub')}",
        extra={"barbershop_id": barbershop_id, "appointment_id": appointment_id},
    )
    return BookingResponse(appointment=result.appointment, confirmation=result.confirmation)


@router.post("/{appointment_id}/status", response_model=AppointmentSummary)
async def change_appointment_status(
    barbershop_id: UUID,
    appointment_id: UUID,
    request: StatusChangeRequest,
    current_user: Annotated[dict[str, Any], Depends(require_barbershop_access)],
    transaction: Annotated[BookingTransaction, Depends(get_booking_transaction)],
):
    """
    Apply a lifecycle transition.

    CONFIRMED is the explicit confirmation event (payment webhook or manual
    confirmation). Disallowed transitions return 409 INVALID_TRANSITION.
    """
    result = await transaction.transition(barbershop_id, appointment_id, request.status)
    if not result.success:
        return booking_failure_response(result)
    return result.appointment


@router.delete("/{appointment_id}", response_model=AppointmentSummary)
async def cancel_appointment(
    barbershop_id: UUID,
    appointment_id: UUID,
    current_user: Annotated[dict[str, Any], Depends(require_barbershop_access)],
    transaction: Annotated[BookingTransaction, Depends(get_booking_transaction)],
):
    """Cancel an appointment; its interval becomes bookable again."""
    result = await transaction.cancel(barbershop_id, appointment_id)
    if not result.success:
        return booking_failure_response(result)
    return result.appointment
