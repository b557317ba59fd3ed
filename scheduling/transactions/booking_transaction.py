"""
Booking Transaction Coordinator.

BookingTransaction is the only component that creates appointments or changes
their status. Every request runs this flow:

1. Validate customer contact data
2. Load barbershop, barber and service by id and check they belong together
3. Normalise the requested start to UTC (naive values are shop-local)
4. Recompute end = start + service duration
5. Re-resolve the open interval for the shop-local date and enforce the lead time
   (client-side slot lists may be stale)
6. Delegate to CalendarStore.try_reserve (atomic check-and-insert)

update() reruns steps 1-5 for the edited values and moves the appointment with
CalendarStore.reschedule, whose overlap check ignores the appointment itself.

Failures are returned as a BookingResult with an error code rather than raised:

    VALIDATION_ERROR   malformed input, unknown/inactive/foreign catalog ids
    INVALID_SLOT       outside opening hours or inside the lead time
    SLOT_TAKEN         lost the race; re-query availability, never blind-retry
    STORE_UNAVAILABLE  timeout or store failure; nothing is reported as booked
    INVALID_TRANSITION status change not allowed from the current status
    NOT_FOUND          unknown appointment for this barbershop

Status lifecycle:
    PENDING   -> CONFIRMED | CANCELLED
    CONFIRMED -> CANCELLED | COMPLETED | NO_SHOW
    CANCELLED, COMPLETED, NO_SHOW are terminal

PENDING -> CONFIRMED only happens through confirm(), the explicit external
event (payment webhook or manual confirmation from the dashboard).
"""

import logging
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from database.models import BLOCKING_STATUSES, Appointment, AppointmentStatus
from scheduling.errors import (
    BookingErrorCode,
    ConflictError,
    SchedulingError,
    StoreUnavailableError,
)
from scheduling.models import (
    BarberProfile,
    Clock,
    CustomerInfo,
    ServiceProfile,
    ShopProfile,
    TimeInterval,
    system_clock,
)
from scheduling.services import schedule_resolver
from scheduling.services.calendar_store import CalendarStore
from scheduling.services.catalog_service import CatalogService
from scheduling.validators import (
    ValidationResult,
    validate_catalog_membership,
    validate_customer_info,
    validate_slot_window,
)
from shared.config import get_settings

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW}
    ),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}


def can_transition(current: AppointmentStatus, new: AppointmentStatus) -> bool:
    return new in ALLOWED_TRANSITIONS[current]


class AppointmentSummary(BaseModel):
    """Read model of a persisted appointment."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    barbershop_id: UUID
    barber_id: UUID
    service_id: UUID
    appointment_date_time: datetime
    end_date_time: datetime
    status: AppointmentStatus
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    price: Decimal
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class BookingConfirmation(BaseModel):
    """Data shown on the booking confirmation view."""
    appointment_id: UUID
    barbershop_name: str
    barber_name: str
    service_name: str
    local_date: date
    local_time: str
    start: datetime
    end: datetime
    timezone: str
    duration_minutes: int
    price: Decimal


class BookingResult(BaseModel):
    success: bool
    appointment: Optional[AppointmentSummary] = None
    confirmation: Optional[BookingConfirmation] = None
    error_code: Optional[BookingErrorCode] = None
    error_message: Optional[str] = None
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def failure(
        cls,
        error_code: BookingErrorCode,
        error_message: str,
        details: dict[str, Any] | None = None,
    ) -> "BookingResult":
        return cls(
            success=False,
            error_code=error_code,
            error_message=error_message,
            details=details or {},
        )

    @classmethod
    def from_validation(cls, result: ValidationResult) -> "BookingResult":
        return cls.failure(
            result.error_code or BookingErrorCode.VALIDATION_ERROR,
            result.error_message or "Invalid request",
            result.details,
        )


class BookingTransaction:
    """
    Coordinates booking and status changes against the calendar store.

    Usage:
        transaction = BookingTransaction(store, catalog)
        result = await transaction.execute(shop_id, barber_id, service_id, start, customer)
        if not result.success:
            print(result.error_code, result.error_message)
    """

    def __init__(
        self,
        store: CalendarStore,
        catalog: CatalogService,
        clock: Clock = system_clock,
        lead_time_minutes: int | None = None,
    ):
        self.store = store
        self.catalog = catalog
        self.clock = clock
        self.lead_time_minutes = (
            get_settings().MIN_LEAD_TIME_MINUTES if lead_time_minutes is None else lead_time_minutes
        )

    async def execute(
        self,
        barbershop_id: UUID,
        barber_id: UUID,
        service_id: UUID,
        requested_start: datetime,
        customer: CustomerInfo,
    ) -> BookingResult:
        """
        Book a slot.

        Args:
            barbershop_id: Barbershop UUID
            barber_id: Barber UUID
            service_id: Service UUID
            requested_start: Chosen start instant. Naive values are shop-local.
            customer: Customer contact data

        Returns:
            BookingResult. On success it carries the committed appointment and the
            confirmation data; on failure an error code, message and details.
        """
        trace_id = f"{barber_id}_{requested_start.isoformat()}"
        logger.info(
            f"[{trace_id}] Starting booking transaction",
            extra={
                "trace_id": trace_id,
                "barbershop_id": barbershop_id,
                "barber_id": barber_id,
                "service_id": service_id,
            },
        )

        # Step 1: Customer data
        validation = validate_customer_info(customer)
        if not validation.valid:
            logger.warning(
                f"[{trace_id}] Customer info validation failed: {validation.error_message}",
                extra={"trace_id": trace_id, "error_code": validation.error_code},
            )
            return BookingResult.from_validation(validation)

        try:
            # Step 2: Catalog records
            shop, barber, service = await self._load_catalog(barbershop_id, barber_id, service_id)
            if shop is None or barber is None or service is None:
                missing = {
                    "barbershop_id": str(barbershop_id) if shop is None else None,
                    "barber_id": str(barber_id) if barber is None else None,
                    "service_id": str(service_id) if service is None else None,
                }
                logger.warning(f"[{trace_id}] Catalog lookup failed: {missing}")
                return BookingResult.failure(
                    BookingErrorCode.VALIDATION_ERROR,
                    "Unknown barbershop, barber or service",
                    {key: value for key, value in missing.items() if value is not None},
                )

            validation = validate_catalog_membership(shop, barber, service)
            if not validation.valid:
                logger.warning(f"[{trace_id}] Catalog validation failed: {validation.error_message}")
                return BookingResult.from_validation(validation)

            # Steps 3-4: Normalise start and compute end
            start = self._to_utc(requested_start, shop)
            end = start + service.duration
            slot = TimeInterval(start=start, end=end)

            # Step 5: Re-validate against resolved hours and lead time
            local_day = schedule_resolver.local_date_of(start, shop)
            open_interval = schedule_resolver.resolve(shop, barber, local_day)
            validation = validate_slot_window(slot, open_interval, self.clock(), self.lead_time_minutes)
            if not validation.valid:
                logger.warning(
                    f"[{trace_id}] Slot validation failed: {validation.error_message}",
                    extra={"trace_id": trace_id, "error_code": validation.error_code},
                )
                return BookingResult.from_validation(validation)

            # Step 6: Atomic reserve
            appointment = await self.store.try_reserve(
                barbershop_id=shop.id,
                barber_id=barber.id,
                service_id=service.id,
                start=start,
                end=end,
                customer=customer,
                price=service.price,
            )

        except ConflictError as e:
            logger.warning(
                f"[{trace_id}] Slot taken by a concurrent booking",
                extra={"trace_id": trace_id, "error_code": e.code},
            )
            return BookingResult.failure(
                BookingErrorCode.SLOT_TAKEN,
                "This time slot was just booked. Please choose another one.",
                e.details,
            )

        except StoreUnavailableError as e:
            logger.error(
                f"[{trace_id}] Calendar store unavailable: {e.message}",
                extra={"trace_id": trace_id, "error_code": e.code},
            )
            return BookingResult.failure(
                BookingErrorCode.STORE_UNAVAILABLE,
                "Booking could not be completed. Please try again.",
                e.details,
            )

        except SchedulingError as e:
            logger.warning(f"[{trace_id}] Booking rejected: {e.message}", extra={"error_code": e.code})
            return BookingResult.failure(e.code, e.message, e.details)

        logger.info(
            f"[{trace_id}] Appointment created (PENDING)",
            extra={"trace_id": trace_id, "appointment_id": appointment.id},
        )

        return BookingResult(
            success=True,
            appointment=AppointmentSummary.model_validate(appointment),
            confirmation=self._confirmation(appointment, shop, barber, service),
        )

    async def transition(
        self,
        barbershop_id: UUID,
        appointment_id: UUID,
        new_status: AppointmentStatus,
    ) -> BookingResult:
        """Move an appointment to new_status if the lifecycle allows it."""
        try:
            appointment = await self.store.get_appointment(appointment_id)
            if appointment is None or appointment.barbershop_id != barbershop_id:
                return BookingResult.failure(
                    BookingErrorCode.NOT_FOUND,
                    "Appointment not found",
                    {"appointment_id": str(appointment_id)},
                )

            if not can_transition(appointment.status, new_status):
                logger.warning(
                    f"Rejected transition {appointment.status.value} -> {new_status.value}",
                    extra={"appointment_id": appointment_id},
                )
                return BookingResult.failure(
                    BookingErrorCode.INVALID_TRANSITION,
                    f"Cannot change status from {appointment.status.value} to {new_status.value}",
                    {
                        "appointment_id": str(appointment_id),
                        "current_status": appointment.status.value,
                        "requested_status": new_status.value,
                    },
                )

            updated = await self.store.set_status(appointment_id, appointment.status, new_status)

        except SchedulingError as e:
            logger.warning(
                f"Status change failed: {e.message}",
                extra={"appointment_id": appointment_id, "error_code": e.code},
            )
            return BookingResult.failure(e.code, e.message, e.details)

        return BookingResult(success=True, appointment=AppointmentSummary.model_validate(updated))

    async def confirm(self, barbershop_id: UUID, appointment_id: UUID) -> BookingResult:
        """PENDING -> CONFIRMED, triggered by an explicit external event."""
        return await self.transition(barbershop_id, appointment_id, AppointmentStatus.CONFIRMED)

    async def cancel(self, barbershop_id: UUID, appointment_id: UUID) -> BookingResult:
        """Cancel and free the interval for new bookings."""
        return await self.transition(barbershop_id, appointment_id, AppointmentStatus.CANCELLED)

    async def update(
        self,
        barbershop_id: UUID,
        appointment_id: UUID,
        requested_start: datetime | None = None,
        service_id: UUID | None = None,
        notes: str | None = None,
        customer_phone: str | None = None,
    ) -> BookingResult:
        """
        Reschedule an appointment or edit its notes and phone.

        Omitted fields keep their current value. A new start or service goes
        through the same hours and lead-time checks as a new booking, and the
        overlap check ignores the appointment's own old interval. Only PENDING
        and CONFIRMED appointments can be edited.
        """
        trace_id = f"{appointment_id}_update"
        logger.info(
            f"[{trace_id}] Starting appointment update",
            extra={"trace_id": trace_id, "barbershop_id": barbershop_id, "appointment_id": appointment_id},
        )

        try:
            appointment = await self.store.get_appointment(appointment_id)
            if appointment is None or appointment.barbershop_id != barbershop_id:
                return BookingResult.failure(
                    BookingErrorCode.NOT_FOUND,
                    "Appointment not found",
                    {"appointment_id": str(appointment_id)},
                )

            if appointment.status not in BLOCKING_STATUSES:
                logger.warning(
                    f"[{trace_id}] Cannot edit a {appointment.status.value} appointment",
                    extra={"trace_id": trace_id, "appointment_id": appointment_id},
                )
                return BookingResult.failure(
                    BookingErrorCode.INVALID_TRANSITION,
                    f"Cannot edit an appointment in status {appointment.status.value}",
                    {
                        "appointment_id": str(appointment_id),
                        "current_status": appointment.status.value,
                    },
                )

            # Step 1: Contact fields, checked with the stored name and email
            new_notes = appointment.notes if notes is None else notes
            new_phone = appointment.customer_phone if customer_phone is None else customer_phone
            validation = validate_customer_info(
                CustomerInfo(
                    name=appointment.customer_name,
                    email=appointment.customer_email,
                    phone=new_phone,
                    notes=new_notes,
                )
            )
            if not validation.valid:
                return BookingResult.from_validation(validation)

            # Step 2: Catalog records
            new_service_id = appointment.service_id if service_id is None else service_id
            shop, barber, service = await self._load_catalog(
                barbershop_id, appointment.barber_id, new_service_id
            )
            if shop is None or barber is None or service is None:
                return BookingResult.failure(
                    BookingErrorCode.VALIDATION_ERROR,
                    "Unknown barbershop, barber or service",
                    {"service_id": str(new_service_id)},
                )

            validation = validate_catalog_membership(shop, barber, service)
            if not validation.valid:
                return BookingResult.from_validation(validation)

            # Steps 3-4: New interval; end and price snapshots only move with the service
            service_changed = new_service_id != appointment.service_id
            start = (
                appointment.appointment_date_time
                if requested_start is None
                else self._to_utc(requested_start, shop)
            )
            if service_changed:
                end = start + service.duration
                price = service.price
            else:
                end = start + (appointment.end_date_time - appointment.appointment_date_time)
                price = appointment.price

            # Step 5: Re-validate when the interval moves
            if service_changed or start != appointment.appointment_date_time:
                slot = TimeInterval(start=start, end=end)
                local_day = schedule_resolver.local_date_of(start, shop)
                open_interval = schedule_resolver.resolve(shop, barber, local_day)
                validation = validate_slot_window(
                    slot, open_interval, self.clock(), self.lead_time_minutes
                )
                if not validation.valid:
                    logger.warning(
                        f"[{trace_id}] Slot validation failed: {validation.error_message}",
                        extra={"trace_id": trace_id, "error_code": validation.error_code},
                    )
                    return BookingResult.from_validation(validation)

            # Step 6: Atomic move
            updated = await self.store.reschedule(
                appointment_id,
                expected_status=appointment.status,
                start=start,
                end=end,
                service_id=service.id,
                price=price,
                notes=new_notes,
                customer_phone=new_phone,
            )

        except ConflictError as e:
            logger.warning(
                f"[{trace_id}] Reschedule lost to an overlapping appointment",
                extra={"trace_id": trace_id, "error_code": e.code},
            )
            return BookingResult.failure(
                BookingErrorCode.SLOT_TAKEN,
                "This time slot is already booked. Please choose another one.",
                e.details,
            )

        except SchedulingError as e:
            logger.warning(
                f"[{trace_id}] Update rejected: {e.message}",
                extra={"trace_id": trace_id, "error_code": e.code},
            )
            return BookingResult.failure(e.code, e.message, e.details)

        logger.info(
            f"[{trace_id}] Appointment updated",
            extra={"trace_id": trace_id, "appointment_id": appointment_id},
        )
        return BookingResult(
            success=True,
            appointment=AppointmentSummary.model_validate(updated),
            confirmation=self._confirmation(updated, shop, barber, service),
        )

    async def _load_catalog(
        self, barbershop_id: UUID, barber_id: UUID, service_id: UUID
    ) -> tuple[ShopProfile | None, BarberProfile | None, ServiceProfile | None]:
        shop = await self.catalog.get_shop(barbershop_id)
        barber = await self.catalog.get_barber(barber_id)
        service = await self.catalog.get_service(service_id)
        return shop, barber, service

    @staticmethod
    def _to_utc(requested_start: datetime, shop: ShopProfile) -> datetime:
        if requested_start.tzinfo is None:
            zone = schedule_resolver.get_zone(shop.timezone)
            return schedule_resolver.local_to_utc(
                requested_start.date(), requested_start.time(), zone
            )
        return requested_start.astimezone(UTC)

    @staticmethod
    def _confirmation(
        appointment: Appointment,
        shop: ShopProfile,
        barber: BarberProfile,
        service: ServiceProfile,
    ) -> BookingConfirmation:
        local_start = appointment.appointment_date_time.astimezone(
            schedule_resolver.get_zone(shop.timezone)
        )
        return BookingConfirmation(
            appointment_id=appointment.id,
            barbershop_name=shop.name,
            barber_name=barber.name,
            service_name=service.name,
            local_date=local_start.date(),
            local_time=local_start.strftime("%H:%M"),
            start=appointment.appointment_date_time,
            end=appointment.end_date_time,
            timezone=shop.timezone,
            duration_minutes=service.duration_minutes,
            price=appointment.price,
        )
