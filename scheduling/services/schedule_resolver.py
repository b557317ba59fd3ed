"""
Schedule Resolver - single source of truth for a barber's open interval on a date.

Merges barbershop-level and barber-level weekly hours:
- a barber override for the weekday wins
- otherwise the barbershop's hours for that weekday apply
- a weekday with no entry at all is closed

Local open/close times are converted to UTC through the shop's IANA zone.

DST handling:
    A local wall time is mapped to UTC by evaluating both PEP 495 folds and
    taking the LATER of the two UTC instants. On a spring-forward day a
    non-existent time (02:30 in a 02:00->03:00 gap) therefore resolves with
    the pre-transition offset, i.e. the instant that reads 03:30 after the
    jump. On a fall-back day an ambiguous time resolves to its second
    occurrence. Ordinary times have a single candidate.

Usage:
    from scheduling.services.schedule_resolver import resolve

    interval = resolve(shop, barber, date(2025, 6, 10))
    if interval is None:
        print("closed")
"""

import logging
from collections.abc import Iterator
from datetime import UTC, date, datetime, time
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from scheduling.errors import InvalidRequestError
from scheduling.models import BarberProfile, DateRange, DayHours, ShopProfile, TimeInterval

logger = logging.getLogger(__name__)

DAY_NAMES = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


@lru_cache(maxsize=128)
def get_zone(timezone_name: str) -> ZoneInfo:
    """Load an IANA zone, rejecting unknown names as invalid input."""
    try:
        return ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidRequestError(
            f"Unknown timezone: {timezone_name}", {"timezone": timezone_name}
        ) from e


def local_to_utc(target_date: date, wall_time: time, zone: ZoneInfo) -> datetime:
    """Convert a local wall-clock time on target_date to UTC (later-fold rule)."""
    naive = datetime.combine(target_date, wall_time)
    candidates = (
        naive.replace(tzinfo=zone, fold=0).astimezone(UTC),
        naive.replace(tzinfo=zone, fold=1).astimezone(UTC),
    )
    return max(candidates)


def hours_for_day(shop: ShopProfile, barber: BarberProfile | None, day_of_week: int) -> DayHours:
    """Barber override if present, else shop hours, else closed."""
    if barber is not None and day_of_week in barber.override_hours:
        return barber.override_hours[day_of_week]
    return shop.weekly_hours.get(day_of_week, DayHours.closed())


def resolve(shop: ShopProfile, barber: BarberProfile | None, target_date: date) -> TimeInterval | None:
    """
    Resolve the open interval for a barber on a shop-local date.

    Args:
        shop: Barbershop profile (timezone + weekly hours)
        barber: Barber profile, or None for plain shop hours
        target_date: Shop-local calendar date

    Returns:
        TimeInterval in UTC, or None when the barber is not working that day.

    Example:
        >>> resolve(shop, barber, date(2025, 6, 10))  # Tuesday, 09:00-18:00 Madrid
        TimeInterval(start=2025-06-10 07:00 UTC, end=2025-06-10 16:00 UTC)
    """
    day_of_week = target_date.weekday()
    hours = hours_for_day(shop, barber, day_of_week)

    if not hours.is_open:
        logger.debug(f"{target_date} ({DAY_NAMES[day_of_week]}): closed")
        return None

    zone = get_zone(shop.timezone)
    start = local_to_utc(target_date, hours.open_time, zone)
    end = local_to_utc(target_date, hours.close_time, zone)

    if start >= end:
        # Both bounds fell into the same DST transition
        logger.warning(
            f"Open interval collapsed on {target_date} in {shop.timezone}: "
            f"{hours.open_time}-{hours.close_time}",
            extra={"barbershop_id": shop.id},
        )
        return None

    return TimeInterval(start=start, end=end)


def resolve_range(
    shop: ShopProfile,
    barber: BarberProfile | None,
    date_range: DateRange,
) -> Iterator[tuple[date, TimeInterval]]:
    """Yield (date, interval) for every open day of date_range, ascending."""
    for day in date_range.days():
        interval = resolve(shop, barber, day)
        if interval is not None:
            yield day, interval


def local_date_of(instant: datetime, shop: ShopProfile) -> date:
    """Shop-local calendar date of a UTC instant."""
    return instant.astimezone(get_zone(shop.timezone)).date()
