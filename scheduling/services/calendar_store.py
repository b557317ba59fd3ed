"""
Calendar Store - durable record of appointments per barber.

The store is the single source of truth for occupied intervals and the only
shared mutable resource of the scheduling engine. There is no occupancy cache.

Atomicity of try_reserve() and reschedule():
- a per-barber asyncio.Lock serialises reservations for one barber inside this
  process (different barbers never wait on each other)
- inside a single DB transaction the barber row is locked with
  SELECT ... FOR UPDATE (SERIALIZABLE isolation on PostgreSQL), which
  serialises reservations across processes
- the overlap check and the insert run under both, so concurrent overlapping
  requests yield exactly one success and ConflictError for the rest

Every operation is bounded by STORE_TIMEOUT_SECONDS. A timeout or a driver
failure raises StoreUnavailableError; a reservation that timed out is never
reported as committed.
"""

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import TypeVar
from uuid import UUID

from sqlalchemy import func, select, text
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.connection import AsyncSessionLocal
from database.models import BLOCKING_STATUSES, Appointment, AppointmentStatus, Barber
from scheduling.errors import (
    AppointmentNotFoundError,
    ConflictError,
    InvalidRequestError,
    InvalidTransitionError,
    StoreUnavailableError,
)
from scheduling.models import CustomerInfo, TimeInterval
from shared.config import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# PostgreSQL SQLSTATE for serialization_failure
SERIALIZATION_FAILURE = "40001"


@dataclass(frozen=True)
class AppointmentFilters:
    """Listing filters. window bounds are UTC instants (derived from shop-local dates)."""

    barber_id: UUID | None = None
    window_start: datetime | None = None
    window_end: datetime | None = None
    status: AppointmentStatus | None = None


@dataclass(frozen=True)
class AppointmentPage:
    content: list[Appointment]
    page_number: int
    page_size: int
    total_elements: int

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return (self.total_elements + self.page_size - 1) // self.page_size

    @property
    def first(self) -> bool:
        return self.page_number == 0

    @property
    def last(self) -> bool:
        return self.page_number >= self.total_pages - 1


def _is_serialization_failure(error: DBAPIError) -> bool:
    orig = getattr(error, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return sqlstate == SERIALIZATION_FAILURE


async def bounded(operation: str, awaitable: Awaitable[T], timeout: float) -> T:
    """
    Await a store operation under a timeout, translating driver failures.

    Raises:
        StoreUnavailableError: timeout, connection or driver failure
        ConflictError: PostgreSQL serialization failure or integrity constraint violation
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except TimeoutError as e:
        logger.error(f"Calendar store timed out during {operation} after {timeout}s")
        raise StoreUnavailableError(
            f"Calendar store timed out during {operation}",
            {"operation": operation, "timeout_seconds": timeout},
        ) from e
    except DBAPIError as e:
        if _is_serialization_failure(e):
            raise ConflictError(
                "Concurrent reservation won the slot", {"operation": operation}
            ) from e
        if isinstance(e, IntegrityError):
            raise ConflictError(
                "Appointment violates a database constraint",
                {"operation": operation, "error": str(e.orig)},
            ) from e
        logger.error(f"Calendar store failure during {operation}: {e}", exc_info=True)
        raise StoreUnavailableError(
            f"Calendar store unavailable during {operation}", {"operation": operation}
        ) from e
    except (OSError, SQLAlchemyError) as e:
        logger.error(f"Calendar store failure during {operation}: {e}", exc_info=True)
        raise StoreUnavailableError(
            f"Calendar store unavailable during {operation}", {"operation": operation}
        ) from e


class CalendarStore:
    """
    Transactional interface over the appointments table.

    Usage:
        store = CalendarStore()
        busy = await store.occupied_intervals(barber_id, window)
        appointment = await store.try_reserve(...)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        timeout_seconds: float | None = None,
    ):
        self._session_factory = session_factory or AsyncSessionLocal
        if timeout_seconds is None:
            timeout_seconds = get_settings().STORE_TIMEOUT_SECONDS
        self._timeout = timeout_seconds
        self._barber_locks: dict[UUID, asyncio.Lock] = {}

    def _lock_for(self, barber_id: UUID) -> asyncio.Lock:
        return self._barber_locks.setdefault(barber_id, asyncio.Lock())

    async def _bounded(self, operation: str, awaitable: Awaitable[T]) -> T:
        return await bounded(operation, awaitable, self._timeout)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def occupied_intervals(self, barber_id: UUID, window: TimeInterval) -> list[TimeInterval]:
        """
        PENDING/CONFIRMED intervals of a barber overlapping window, ascending by start.
        """
        return await self._bounded("occupied_intervals", self._occupied(barber_id, window))

    async def _occupied(self, barber_id: UUID, window: TimeInterval) -> list[TimeInterval]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Appointment.appointment_date_time, Appointment.end_date_time)
                .where(
                    Appointment.barber_id == barber_id,
                    Appointment.status.in_(BLOCKING_STATUSES),
                    Appointment.appointment_date_time < window.end,
                    Appointment.end_date_time > window.start,
                )
                .order_by(Appointment.appointment_date_time, Appointment.end_date_time)
            )
            intervals = [TimeInterval(start=start, end=end) for start, end in result.all()]

        logger.debug(
            f"Found {len(intervals)} occupied intervals for barber {barber_id} "
            f"between {window.start.isoformat()} and {window.end.isoformat()}"
        )
        return intervals

    async def get_appointment(self, appointment_id: UUID) -> Appointment | None:
        return await self._bounded("get_appointment", self._get(appointment_id))

    async def _get(self, appointment_id: UUID) -> Appointment | None:
        async with self._session_factory() as session:
            return await session.get(Appointment, appointment_id)

    async def list_appointments(
        self,
        barbershop_id: UUID,
        filters: AppointmentFilters,
        page: int = 0,
        size: int = 20,
    ) -> AppointmentPage:
        """Page through a barbershop's appointments ordered by start."""
        return await self._bounded(
            "list_appointments", self._list(barbershop_id, filters, page, size)
        )

    async def _list(
        self, barbershop_id: UUID, filters: AppointmentFilters, page: int, size: int
    ) -> AppointmentPage:
        conditions = [Appointment.barbershop_id == barbershop_id]
        if filters.barber_id is not None:
            conditions.append(Appointment.barber_id == filters.barber_id)
        if filters.window_start is not None:
            conditions.append(Appointment.end_date_time > filters.window_start)
        if filters.window_end is not None:
            conditions.append(Appointment.appointment_date_time < filters.window_end)
        if filters.status is not None:
            conditions.append(Appointment.status == filters.status)

        async with self._session_factory() as session:
            total = await session.scalar(
                select(func.count()).select_from(Appointment).where(*conditions)
            )
            result = await session.execute(
                select(Appointment)
                .where(*conditions)
                .order_by(Appointment.appointment_date_time, Appointment.id)
                .offset(page * size)
                .limit(size)
            )
            content = list(result.scalars().all())

        return AppointmentPage(
            content=content, page_number=page, page_size=size, total_elements=total or 0
        )

    # ------------------------------------------------------------------
    # Writes (called only by BookingTransaction)
    # ------------------------------------------------------------------

    async def try_reserve(
        self,
        barbershop_id: UUID,
        barber_id: UUID,
        service_id: UUID,
        start: datetime,
        end: datetime,
        customer: CustomerInfo,
        price: Decimal = Decimal("0.00"),
    ) -> Appointment:
        """
        Atomically insert a PENDING appointment if [start, end) is free.

        Returns:
            The committed Appointment with server-assigned id and timestamps.

        Raises:
            ConflictError: a PENDING/CONFIRMED appointment of this barber overlaps.
                Callers must re-query availability, never retry the same slot.
            StoreUnavailableError: timeout or store failure; nothing was committed
                as far as the caller can tell.
        """
        return await self._bounded(
            "try_reserve",
            self._reserve(barbershop_id, barber_id, service_id, start, end, customer, price),
        )

    async def _reserve(
        self,
        barbershop_id: UUID,
        barber_id: UUID,
        service_id: UUID,
        start: datetime,
        end: datetime,
        customer: CustomerInfo,
        price: Decimal,
    ) -> Appointment:
        async with self._lock_for(barber_id):
            async with self._session_factory() as session:
                if session.get_bind().dialect.name == "postgresql":
                    await session.execute(text("SET TRANSACTION ISOLATION LEVEL SERIALIZABLE"))

                # Row lock on the barber serialises reservations across processes
                locked = await session.execute(
                    select(Barber.id).where(Barber.id == barber_id).with_for_update()
                )
                if locked.scalar_one_or_none() is None:
                    await session.rollback()
                    raise InvalidRequestError("Barber not found", {"barber_id": str(barber_id)})

                result = await session.execute(
                    select(Appointment.id)
                    .where(
                        Appointment.barber_id == barber_id,
                        Appointment.status.in_(BLOCKING_STATUSES),
                        Appointment.appointment_date_time < end,
                        Appointment.end_date_time > start,
                    )
                    .limit(1)
                )
                conflicting_id = result.scalar_one_or_none()

                if conflicting_id is not None:
                    await session.rollback()
                    logger.warning(
                        f"Slot conflict detected: {start.isoformat()} - {end.isoformat()}",
                        extra={"barber_id": barber_id, "appointment_id": conflicting_id},
                    )
                    raise ConflictError(
                        "Slot is no longer available",
                        {
                            "barber_id": str(barber_id),
                            "conflicting_appointment_id": str(conflicting_id),
                        },
                    )

                appointment = Appointment(
                    barbershop_id=barbershop_id,
                    barber_id=barber_id,
                    service_id=service_id,
                    appointment_date_time=start,
                    end_date_time=end,
                    status=AppointmentStatus.PENDING,
                    customer_name=customer.name,
                    customer_email=customer.email,
                    customer_phone=customer.phone,
                    notes=customer.notes,
                    price=price,
                )
                session.add(appointment)
                await session.commit()

        logger.info(
            f"Appointment reserved: {start.isoformat()} - {end.isoformat()}",
            extra={"barber_id": barber_id, "appointment_id": appointment.id},
        )
        return appointment

    async def set_status(
        self,
        appointment_id: UUID,
        expected_status: AppointmentStatus,
        new_status: AppointmentStatus,
    ) -> Appointment:
        """
        Compare-and-set an appointment's status under the barber's lock.

        Raises:
            AppointmentNotFoundError: unknown id
            InvalidTransitionError: status changed since it was read
        """
        return await self._bounded(
            "set_status", self._set_status(appointment_id, expected_status, new_status)
        )

    async def _set_status(
        self,
        appointment_id: UUID,
        expected_status: AppointmentStatus,
        new_status: AppointmentStatus,
    ) -> Appointment:
        current = await self._get(appointment_id)
        if current is None:
            raise AppointmentNotFoundError(
                "Appointment not found", {"appointment_id": str(appointment_id)}
            )

        async with self._lock_for(current.barber_id):
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Appointment).where(Appointment.id == appointment_id).with_for_update()
                )
                appointment = result.scalar_one()

                current_status = appointment.status
                if current_status != expected_status:
                    await session.rollback()
                    raise InvalidTransitionError(
                        "Appointment status changed concurrently",
                        {
                            "appointment_id": str(appointment_id),
                            "expected_status": expected_status.value,
                            "current_status": current_status.value,
                        },
                    )

                appointment.status = new_status
                if new_status == AppointmentStatus.CANCELLED:
                    appointment.cancelled_at = datetime.now(UTC)
                await session.commit()

        logger.info(
            f"Appointment status {expected_status.value} -> {new_status.value}",
            extra={"appointment_id": appointment_id, "barber_id": appointment.barber_id},
        )
        return appointment

    async def reschedule(
        self,
        appointment_id: UUID,
        expected_status: AppointmentStatus,
        start: datetime,
        end: datetime,
        service_id: UUID,
        price: Decimal,
        notes: str | None,
        customer_phone: str | None,
    ) -> Appointment:
        """
        Atomically move an appointment to [start, end) and update its editable fields.

        The overlap check ignores the appointment itself, so a move that only
        overlaps its own old interval succeeds.

        Raises:
            AppointmentNotFoundError: unknown id
            InvalidTransitionError: status changed since it was read
            ConflictError: another PENDING/CONFIRMED appointment of the barber overlaps
        """
        return await self._bounded(
            "reschedule",
            self._reschedule(
                appointment_id, expected_status, start, end, service_id, price, notes, customer_phone
            ),
        )

    async def _reschedule(
        self,
        appointment_id: UUID,
        expected_status: AppointmentStatus,
        start: datetime,
        end: datetime,
        service_id: UUID,
        price: Decimal,
        notes: str | None,
        customer_phone: str | None,
    ) -> Appointment:
        current = await self._get(appointment_id)
        if current is None:
            raise AppointmentNotFoundError(
                "Appointment not found", {"appointment_id": str(appointment_id)}
            )
        barber_id = current.barber_id

        async with self._lock_for(barber_id):
            async with self._session_factory() as session:
                if session.get_bind().dialect.name == "postgresql":
                    await session.execute(text("SET TRANSACTION ISOLATION LEVEL SERIALIZABLE"))

                await session.execute(
                    select(Barber.id).where(Barber.id == barber_id).with_for_update()
                )
                result = await session.execute(
                    select(Appointment).where(Appointment.id == appointment_id).with_for_update()
                )
                appointment = result.scalar_one()

                current_status = appointment.status
                if current_status != expected_status:
                    await session.rollback()
                    raise InvalidTransitionError(
                        "Appointment status changed concurrently",
                        {
                            "appointment_id": str(appointment_id),
                            "expected_status": expected_status.value,
                            "current_status": current_status.value,
                        },
                    )

                result = await session.execute(
                    select(Appointment.id)
                    .where(
                        Appointment.barber_id == barber_id,
                        Appointment.id != appointment_id,
                        Appointment.status.in_(BLOCKING_STATUSES),
                        Appointment.appointment_date_time < end,
                        Appointment.end_date_time > start,
                    )
                    .limit(1)
                )
                conflicting_id = result.scalar_one_or_none()

                if conflicting_id is not None:
                    await session.rollback()
                    logger.warning(
                        f"Reschedule conflict detected: {start.isoformat()} - {end.isoformat()}",
                        extra={"barber_id": barber_id, "appointment_id": appointment_id},
                    )
                    raise ConflictError(
                        "Slot is no longer available",
                        {
                            "barber_id": str(barber_id),
                            "conflicting_appointment_id": str(conflicting_id),
                        },
                    )

                appointment.appointment_date_time = start
                appointment.end_date_time = end
                appointment.service_id = service_id
                appointment.price = price
                appointment.notes = notes
                appointment.customer_phone = customer_phone
                await session.commit()

        logger.info(
            f"Appointment rescheduled: {start.isoformat()} - {end.isoformat()}",
            extra={"barber_id": barber_id, "appointment_id": appointment_id},
        )
        return appointment
