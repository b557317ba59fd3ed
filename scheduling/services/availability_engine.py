"""
Availability Engine - bookable slots for a barber and service over a date range.

Per shop-local date (ascending):
1. resolve the barber's open interval (skip closed days)
2. generate candidate starts at the requested granularity
3. read occupied PENDING/CONFIRMED intervals for the open interval
4. drop candidates overlapping an occupied interval or starting before
   now + lead time
5. emit the survivors as Slots in ascending order

The engine performs no writes. With a pinned clock, identical inputs and an
unchanged calendar store always produce identical output.

Usage:
    engine = AvailabilityEngine(store)
    slots = await engine.find_slots(shop, barber, service, DateRange(d, d))
"""

import asyncio
import logging
from datetime import timedelta

from scheduling.errors import InvalidRequestError
from scheduling.models import (
    BarberProfile,
    Clock,
    DateRange,
    ServiceProfile,
    ShopProfile,
    Slot,
    overlaps,
    system_clock,
)
from scheduling.services import schedule_resolver, slot_generator
from scheduling.services.calendar_store import CalendarStore
from scheduling.validators import (
    ValidationResult,
    validate_catalog_membership,
    validate_date_range,
)
from shared.config import get_settings

logger = logging.getLogger(__name__)


def _raise_if_invalid(result: ValidationResult) -> None:
    if not result.valid:
        raise InvalidRequestError(result.error_message or "Invalid request", result.details)


class AvailabilityEngine:
    def __init__(
        self,
        store: CalendarStore,
        clock: Clock = system_clock,
        lead_time_minutes: int | None = None,
        max_range_days: int | None = None,
        default_granularity_minutes: int | None = None,
    ):
        settings = get_settings()
        self.store = store
        self.clock = clock
        self.lead_time_minutes = (
            settings.MIN_LEAD_TIME_MINUTES if lead_time_minutes is None else lead_time_minutes
        )
        self.max_range_days = (
            settings.MAX_QUERY_RANGE_DAYS if max_range_days is None else max_range_days
        )
        self.default_granularity_minutes = (
            default_granularity_minutes or settings.SLOT_GRANULARITY_MINUTES
        )

    async def find_slots(
        self,
        shop: ShopProfile,
        barber: BarberProfile,
        service: ServiceProfile,
        date_range: DateRange,
        granularity_minutes: int | None = None,
    ) -> list[Slot]:
        """
        Ordered bookable slots for one barber.

        Returns:
            Slots ascending by start. An empty list means no availability.

        Raises:
            InvalidRequestError: inactive/foreign barber or service, reversed or
                oversized range, non-positive duration or granularity
            StoreUnavailableError: calendar store timeout or failure
        """
        _raise_if_invalid(validate_catalog_membership(shop, barber, service))
        _raise_if_invalid(validate_date_range(date_range, self.max_range_days))
        granularity = (
            self.default_granularity_minutes if granularity_minutes is None else granularity_minutes
        )
        if granularity <= 0:
            raise InvalidRequestError(
                "Slot granularity must be a positive number of minutes",
                {"granularity_minutes": granularity},
            )

        # Single "now" for the whole query keeps the result self-consistent
        earliest_start = self.clock() + timedelta(minutes=self.lead_time_minutes)
        duration = service.duration

        slots: list[Slot] = []
        for day, interval in schedule_resolver.resolve_range(shop, barber, date_range):
            candidates = slot_generator.generate(interval, service.duration_minutes, granularity)
            if len(candidates) == 0:
                continue

            occupied = await self.store.occupied_intervals(barber.id, interval)

            for start in candidates:
                if start < earliest_start:
                    continue
                end = start + duration
                if any(overlaps(start, end, busy.start, busy.end) for busy in occupied):
                    continue
                slots.append(Slot(barber_id=barber.id, service_id=service.id, start=start, end=end))

            logger.debug(
                f"{day}: {len(candidates)} candidates, {len(occupied)} occupied",
                extra={"barbershop_id": shop.id, "barber_id": barber.id},
            )

        logger.info(
            f"Found {len(slots)} available slots from {date_range.start} to {date_range.end}",
            extra={"barbershop_id": shop.id, "barber_id": barber.id, "service_id": service.id},
        )
        return slots

    async def find_shop_slots(
        self,
        shop: ShopProfile,
        barbers: list[BarberProfile],
        service: ServiceProfile,
        date_range: DateRange,
        granularity_minutes: int | None = None,
    ) -> list[Slot]:
        """
        Slots of every active barber in the shop, ordered by (start, barber_id).

        Used when the caller did not pick a barber.
        """
        _raise_if_invalid(validate_catalog_membership(shop, None, service))
        _raise_if_invalid(validate_date_range(date_range, self.max_range_days))

        active = [b for b in barbers if b.is_active and b.barbershop_id == shop.id]
        per_barber = await asyncio.gather(
            *(
                self.find_slots(shop, barber, service, date_range, granularity_minutes)
                for barber in active
            )
        )

        merged = [slot for slots in per_barber for slot in slots]
        merged.sort(key=lambda slot: (slot.start, slot.barber_id))
        return merged
