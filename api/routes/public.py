"""
Public API Endpoints for the booking wizard

Unauthenticated and rate limited (see RateLimitMiddleware):
- GET  /api/public/barbershops/{barbershop_id}/availability
- POST /api/public/barbershops/{barbershop_id}/bookings
"""

import logging
from datetime import date
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from api.dependencies import (
    get_availability_engine,
    get_booking_transaction,
    get_catalog_service,
)
from api.errors import booking_failure_response
from api.models.booking import (
    AvailabilityResponse,
    BookingRequest,
    BookingResponse,
    SlotResponse,
)
from scheduling.errors import InvalidRequestError, NotFoundError
from scheduling.models import DateRange
from scheduling.services import AvailabilityEngine, CatalogService
from scheduling.transactions import BookingTransaction

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/public/barbershops", tags=["public"])


async def query_availability(
    barbershop_id: UUID,
    service_id: UUID,
    start_date: date,
    end_date: Optional[date],
    barber_id: Optional[UUID],
    granularity: Optional[int],
    engine: AvailabilityEngine,
    catalog: CatalogService,
) -> AvailabilityResponse:
    """
    Load catalog records by id and run the availability engine.

    Raises:
        NotFoundError: unknown barbershop
        InvalidRequestError: unknown service or barber, bad range
    """
    shop = await catalog.get_shop(barbershop_id)
    if shop is None:
        raise NotFoundError("Barbershop not found", {"barbershop_id": str(barbershop_id)})

    service = await catalog.get_service(service_id)
    if service is None:
        raise InvalidRequestError("Service not found", {"service_id": str(service_id)})

    date_range = DateRange(start=start_date, end=end_date or start_date)

    if barber_id is not None:
        barber = await catalog.get_barber(barber_id)
        if barber is None:
            raise InvalidRequestError("Barber not found", {"barber_id": str(barber_id)})
        slots = await engine.find_slots(shop, barber, service, date_range, granularity)
    else:
        barbers = await catalog.list_active_barbers(barbershop_id)
        slots = await engine.find_shop_slots(shop, barbers, service, date_range, granularity)

    return AvailabilityResponse(
        barbershop_id=shop.id,
        timezone=shop.timezone,
        service_id=service.id,
        barber_id=barber_id,
        slots=[
            SlotResponse(barber_id=s.barber_id, service_id=s.service_id, start=s.start, end=s.end)
            for s in slots
        ],
    )


@router.get("/{barbershop_id}/availability", response_model=AvailabilityResponse)
async def get_availability(
    barbershop_id: UUID,
    engine: Annotated[AvailabilityEngine, Depends(get_availability_engine)],
    catalog: Annotated[CatalogService, Depends(get_catalog_service)],
    service_id: UUID,
    start_date: date,
    end_date: Optional[date] = None,
    barber_id: Optional[UUID] = None,
    granularity: Optional[int] = Query(None, description="Minutes between slot starts"),
):
    """
    Bookable slots for a service, optionally restricted to one barber.

    Dates are barbershop-local and inclusive; end_date defaults to start_date.
    An empty ``slots`` list means no availability.
    """
    return await query_availability(
        barbershop_id, service_id, start_date, end_date, barber_id, granularity, engine, catalog
    )


@router.post(
    "/{barbershop_id}/bookings",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_public_booking(
    barbershop_id: UUID,
    request: BookingRequest,
    transaction: Annotated[BookingTransaction, Depends(get_booking_transaction)],
):
    """Book a slot from the public wizard. Failures return a typed error body."""
    result = await transaction.execute(
        barbershop_id=barbershop_id,
        barber_id=request.barber_id,
        service_id=request.service_id,
        requested_start=request.start,
        customer=request.to_customer(),
    )
    if not result.success:
        return booking_failure_response(result)

    return BookingResponse(appointment=result.appointment, confirmation=result.confirmation)
