"""
Catalog lookups - barbershop, barber and service records fetched by id.

Records are owned by the dashboard CRUD screens; this module only reads them
and turns ORM rows into the immutable profiles used by the scheduling engine.
Weekly hours rows are folded into ShopProfile.weekly_hours (barber_id NULL)
and BarberProfile.override_hours (barber_id set).
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.connection import AsyncSessionLocal
from database.models import Barber, Barbershop, BusinessHours, Service
from scheduling.models import BarberProfile, DayHours, ServiceProfile, ShopProfile
from scheduling.services.calendar_store import bounded
from shared.config import get_settings

logger = logging.getLogger(__name__)


def _day_hours(row: BusinessHours) -> DayHours:
    if not row.is_open:
        return DayHours.closed()
    return DayHours(is_open=True, open_time=row.open_time, close_time=row.close_time)


def _barber_profile(barber: Barber, hours: list[BusinessHours]) -> BarberProfile:
    return BarberProfile(
        id=barber.id,
        barbershop_id=barber.barbershop_id,
        name=barber.full_name,
        override_hours={row.day_of_week: _day_hours(row) for row in hours},
        is_active=barber.is_active,
    )


class CatalogService:
    """Read-only access to the catalog records the scheduling engine needs."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        timeout_seconds: float | None = None,
    ):
        self._session_factory = session_factory or AsyncSessionLocal
        if timeout_seconds is None:
            timeout_seconds = get_settings().STORE_TIMEOUT_SECONDS
        self._timeout = timeout_seconds

    async def get_shop(self, barbershop_id: UUID) -> ShopProfile | None:
        return await bounded("get_shop", self._get_shop(barbershop_id), self._timeout)

    async def _get_shop(self, barbershop_id: UUID) -> ShopProfile | None:
        async with self._session_factory() as session:
            shop = await session.get(Barbershop, barbershop_id)
            if shop is None:
                return None
            result = await session.execute(
                select(BusinessHours).where(
                    BusinessHours.barbershop_id == barbershop_id,
                    BusinessHours.barber_id.is_(None),
                )
            )
            weekly = {row.day_of_week: _day_hours(row) for row in result.scalars().all()}

        return ShopProfile(
            id=shop.id,
            name=shop.name,
            timezone=shop.timezone,
            weekly_hours=weekly,
            is_active=shop.is_active,
        )

    async def get_barber(self, barber_id: UUID) -> BarberProfile | None:
        return await bounded("get_barber", self._get_barber(barber_id), self._timeout)

    async def _get_barber(self, barber_id: UUID) -> BarberProfile | None:
        async with self._session_factory() as session:
            barber = await session.get(Barber, barber_id)
            if barber is None:
                return None
            result = await session.execute(
                select(BusinessHours).where(BusinessHours.barber_id == barber_id)
            )
            return _barber_profile(barber, list(result.scalars().all()))

    async def list_active_barbers(self, barbershop_id: UUID) -> list[BarberProfile]:
        return await bounded(
            "list_active_barbers", self._list_active_barbers(barbershop_id), self._timeout
        )

    async def _list_active_barbers(self, barbershop_id: UUID) -> list[BarberProfile]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Barber)
                .where(Barber.barbershop_id == barbershop_id, Barber.is_active.is_(True))
                .order_by(Barber.id)
            )
            barbers = list(result.scalars().all())
            if not barbers:
                return []

            hours_result = await session.execute(
                select(BusinessHours).where(
                    BusinessHours.barber_id.in_([barber.id for barber in barbers])
                )
            )
            hours_by_barber: dict[UUID, list[BusinessHours]] = {}
            for row in hours_result.scalars().all():
                hours_by_barber.setdefault(row.barber_id, []).append(row)

        return [_barber_profile(barber, hours_by_barber.get(barber.id, [])) for barber in barbers]

    async def get_service(self, service_id: UUID) -> ServiceProfile | None:
        return await bounded("get_service", self._get_service(service_id), self._timeout)

    async def _get_service(self, service_id: UUID) -> ServiceProfile | None:
        async with self._session_factory() as session:
            service = await session.get(Service, service_id)
            if service is None:
                return None
            return ServiceProfile(
                id=service.id,
                barbershop_id=service.barbershop_id,
                name=service.name,
                duration_minutes=service.duration_minutes,
                price=service.price,
                is_active=service.is_active,
            )
