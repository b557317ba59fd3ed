"""
Scheduling services.

Services:
- schedule_resolver: open interval for a barber on a shop-local date (pure)
- slot_generator: candidate start instants inside an open interval (pure)
- calendar_store: durable appointments, atomic reserve, status compare-and-set
- catalog_service: barbershop/barber/service records by id
- availability_engine: bookable slots over a date range (read-only)
"""

from scheduling.services import schedule_resolver, slot_generator
from scheduling.services.availability_engine import AvailabilityEngine
from scheduling.services.calendar_store import (
    AppointmentFilters,
    AppointmentPage,
    CalendarStore,
)
from scheduling.services.catalog_service import CatalogService

__all__ = [
    "schedule_resolver",
    "slot_generator",
    "AppointmentFilters",
    "AppointmentPage",
    "AvailabilityEngine",
    "CalendarStore",
    "CatalogService",
]
