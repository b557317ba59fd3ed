"""
Unit tests for schedule_resolver.py - open interval resolution.

Tests coverage:
- Shop hours, barber overrides, closed and missing weekdays
- Local -> UTC conversion through the shop's IANA zone
- DST spring-forward gap and fall-back overlap (later-fold rule)
- Collapsed intervals resolve to None instead of raising
"""

from datetime import UTC, date, datetime, time
from uuid import uuid4

import pytest

from scheduling.errors import InvalidRequestError
from scheduling.models import BarberProfile, DateRange, DayHours, ShopProfile
from scheduling.services import schedule_resolver
from scheduling.services.schedule_resolver import get_zone, local_to_utc, resolve, resolve_range


def make_shop(timezone: str = "Europe/Madrid", weekly_hours: dict | None = None) -> ShopProfile:
    if weekly_hours is None:
        weekly_hours = {
            day: DayHours(is_open=True, open_time=time(9, 0), close_time=time(18, 0))
            for day in range(6)
        }
        weekly_hours[6] = DayHours.closed()
    return ShopProfile(id=uuid4(), name="Test Shop", timezone=timezone, weekly_hours=weekly_hours)


def make_barber(shop: ShopProfile, overrides: dict | None = None) -> BarberProfile:
    return BarberProfile(id=uuid4(), barbershop_id=shop.id, name="Marco Ruiz", override_hours=overrides or {})


class TestResolveOrdinaryDays:
    """Hours lookup without DST transitions."""

    def test_shop_hours_converted_to_utc(self):
        """Madrid is UTC+2 in June: 09:00-18:00 local is 07:00-16:00 UTC."""
        shop = make_shop()

        interval = resolve(shop, make_barber(shop), date(2025, 6, 10))

        assert interval.start == datetime(2025, 6, 10, 7, 0, tzinfo=UTC)
        assert interval.end == datetime(2025, 6, 10, 16, 0, tzinfo=UTC)

    def test_winter_offset(self):
        """Madrid is UTC+1 in January."""
        shop = make_shop()

        interval = resolve(shop, None, date(2025, 1, 14))

        assert interval.start == datetime(2025, 1, 14, 8, 0, tzinfo=UTC)
        assert interval.end == datetime(2025, 1, 14, 17, 0, tzinfo=UTC)

    def test_closed_day_returns_none(self):
        shop = make_shop()

        assert resolve(shop, make_barber(shop), date(2025, 6, 15)) is None  # Sunday

    def test_missing_weekday_is_closed(self):
        shop = make_shop(weekly_hours={1: DayHours(is_open=True, open_time=time(9), close_time=time(17))})

        assert resolve(shop, None, date(2025, 6, 9)) is None  # Monday, no entry
        assert resolve(shop, None, date(2025, 6, 10)) is not None  # Tuesday

    def test_barber_override_wins(self):
        shop = make_shop()
        barber = make_barber(
            shop, {1: DayHours(is_open=True, open_time=time(14, 0), close_time=time(18, 0))}
        )

        interval = resolve(shop, barber, date(2025, 6, 10))

        assert interval.start == datetime(2025, 6, 10, 12, 0, tzinfo=UTC)
        assert interval.end == datetime(2025, 6, 10, 16, 0, tzinfo=UTC)

    def test_barber_closed_override_on_open_shop_day(self):
        shop = make_shop()
        barber = make_barber(shop, {1: DayHours.closed()})

        assert resolve(shop, barber, date(2025, 6, 10)) is None

    def test_barber_override_on_closed_shop_day(self):
        """An override opens the barber even when the shop row is closed."""
        shop = make_shop()
        barber = make_barber(
            shop, {6: DayHours(is_open=True, open_time=time(10, 0), close_time=time(12, 0))}
        )

        interval = resolve(shop, barber, date(2025, 6, 15))

        assert interval is not None
        assert interval.start == datetime(2025, 6, 15, 8, 0, tzinfo=UTC)

    def test_other_weekdays_inherit_shop_hours(self):
        shop = make_shop()
        barber = make_barber(shop, {1: DayHours.closed()})

        interval = resolve(shop, barber, date(2025, 6, 11))  # Wednesday

        assert interval.start == datetime(2025, 6, 11, 7, 0, tzinfo=UTC)

    def test_unknown_timezone_is_invalid_request(self):
        shop = make_shop(timezone="Mars/Olympus_Mons")

        with pytest.raises(InvalidRequestError):
            resolve(shop, None, date(2025, 6, 10))


class TestResolveDST:
    """Later-fold rule for non-existent and ambiguous local times."""

    def test_spring_forward_gap_does_not_crash(self):
        """
        Madrid 2025-03-30: 02:00 jumps to 03:00.

        02:30 does not exist; the later candidate uses the pre-transition
        offset (+01:00), i.e. 01:30 UTC.
        """
        shop = make_shop(
            weekly_hours={6: DayHours(is_open=True, open_time=time(2, 30), close_time=time(10, 0))}
        )

        interval = resolve(shop, None, date(2025, 3, 30))

        assert interval.start == datetime(2025, 3, 30, 1, 30, tzinfo=UTC)
        assert interval.end == datetime(2025, 3, 30, 8, 0, tzinfo=UTC)

    def test_spring_forward_is_deterministic(self):
        shop = make_shop(
            weekly_hours={6: DayHours(is_open=True, open_time=time(2, 30), close_time=time(10, 0))}
        )

        first = resolve(shop, None, date(2025, 3, 30))
        second = resolve(shop, None, date(2025, 3, 30))

        assert first == second

    def test_fall_back_ambiguous_time_takes_second_occurrence(self):
        """New York 2025-11-02: 01:30 happens twice; the EST occurrence is 06:30 UTC."""
        zone = get_zone("America/New_York")

        assert local_to_utc(date(2025, 11, 2), time(1, 30), zone) == datetime(
            2025, 11, 2, 6, 30, tzinfo=UTC
        )

    def test_fall_back_day_interval_is_25_hours_wide(self):
        shop = make_shop(
            timezone="Europe/Madrid",
            weekly_hours={6: DayHours(is_open=True, open_time=time(0, 0), close_time=time(23, 59))},
        )

        interval = resolve(shop, None, date(2025, 10, 26))

        # 00:00 CEST (+2) -> 22:00 UTC previous day; 23:59 CET (+1) -> 22:59 UTC
        assert interval.start == datetime(2025, 10, 25, 22, 0, tzinfo=UTC)
        assert interval.end == datetime(2025, 10, 26, 22, 59, tzinfo=UTC)

    def test_interval_collapsed_by_gap_resolves_to_none(self):
        """02:30 -> 01:30 UTC and 03:00 -> 01:00 UTC, so start >= end."""
        shop = make_shop(
            weekly_hours={6: DayHours(is_open=True, open_time=time(2, 30), close_time=time(3, 0))}
        )

        assert resolve(shop, None, date(2025, 3, 30)) is None


class TestResolveRange:

    def test_yields_only_open_days_in_order(self):
        shop = make_shop()

        days = [day for day, _ in resolve_range(shop, None, DateRange(date(2025, 6, 13), date(2025, 6, 17)))]

        # Friday, Saturday, (Sunday closed), Monday, Tuesday
        assert days == [date(2025, 6, 13), date(2025, 6, 14), date(2025, 6, 16), date(2025, 6, 17)]

    def test_local_date_of_uses_shop_zone(self):
        shop = make_shop()

        # 23:30 UTC on the 10th is 01:30 on the 11th in Madrid
        instant = datetime(2025, 6, 10, 23, 30, tzinfo=UTC)

        assert schedule_resolver.local_date_of(instant, shop) == date(2025, 6, 11)


class TestDayHours:

    def test_open_requires_both_times(self):
        with pytest.raises(ValueError):
            DayHours(is_open=True, open_time=time(9, 0))

    def test_open_must_precede_close(self):
        with pytest.raises(ValueError):
            DayHours(is_open=True, open_time=time(18, 0), close_time=time(9, 0))

    def test_closed_cannot_carry_times(self):
        with pytest.raises(ValueError):
            DayHours(is_open=False, open_time=time(9, 0), close_time=time(18, 0))
