"""
Service providers for route dependencies.

A single CalendarStore instance is shared by every request of the process so
that its per-barber locks serialise concurrent reservations. Tests replace
these providers through ``app.dependency_overrides``.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from scheduling.services import AvailabilityEngine, CalendarStore, CatalogService
from scheduling.transactions import BookingTransaction


@lru_cache
def get_calendar_store() -> CalendarStore:
    return CalendarStore()


@lru_cache
def get_catalog_service() -> CatalogService:
    return CatalogService()


def get_availability_engine(
    store: Annotated[CalendarStore, Depends(get_calendar_store)],
) -> AvailabilityEngine:
    return AvailabilityEngine(store)


def get_booking_transaction(
    store: Annotated[CalendarStore, Depends(get_calendar_store)],
    catalog: Annotated[CatalogService, Depends(get_catalog_service)],
) -> BookingTransaction:
    return BookingTransaction(store, catalog)
