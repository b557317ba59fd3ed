"""
Scheduling data models.

Plain value objects passed between the resolver, the slot generator, the
availability engine and the booking transaction. None of them touch the
database; catalog_service builds them from ORM rows.

- TimeInterval: half-open [start, end) range of UTC instants
- DayHours: opening hours for one weekday (local wall-clock times)
- ShopProfile / BarberProfile / ServiceProfile: catalog snapshots, id-based
- DateRange: inclusive range of shop-local calendar dates
- Slot: bookable candidate produced by the availability engine
- CustomerInfo: contact data captured by the booking wizard
"""

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time, timedelta
from decimal import Decimal
from uuid import UUID


Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Current UTC instant. Engines take a Clock so tests can pin 'now'."""
    return datetime.now(UTC)


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open interval overlap: [a, b) and [c, d) overlap iff a < d and c < b."""
    return a_start < b_end and b_start < a_end


@dataclass(frozen=True)
class TimeInterval:
    """Half-open [start, end) range of timezone-aware instants."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("TimeInterval bounds must be timezone-aware")
        if self.start >= self.end:
            raise ValueError(f"Empty interval: {self.start.isoformat()} >= {self.end.isoformat()}")

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def contains(self, other: "TimeInterval") -> bool:
        return self.start <= other.start and other.end <= self.end


@dataclass(frozen=True)
class DayHours:
    """
    Opening hours for one weekday.

    Closed days carry no times; open days need open_time < close_time.
    """

    is_open: bool
    open_time: time | None = None
    close_time: time | None = None

    def __post_init__(self) -> None:
        if not self.is_open:
            if self.open_time is not None or self.close_time is not None:
                raise ValueError("Closed day cannot define open/close times")
            return
        if self.open_time is None or self.close_time is None:
            raise ValueError("Open day requires both open_time and close_time")
        if self.open_time >= self.close_time:
            raise ValueError(
                f"open_time must be before close_time "
                f"({self.open_time.isoformat()} >= {self.close_time.isoformat()})"
            )

    @classmethod
    def closed(cls) -> "DayHours":
        return cls(is_open=False)


@dataclass(frozen=True)
class ShopProfile:
    """Barbershop snapshot: timezone plus weekly hours keyed by weekday (0=Monday)."""

    id: UUID
    name: str
    timezone: str
    weekly_hours: dict[int, DayHours] = field(default_factory=dict)
    is_active: bool = True


@dataclass(frozen=True)
class BarberProfile:
    """Barber snapshot. A weekday missing from override_hours inherits shop hours."""

    id: UUID
    barbershop_id: UUID
    name: str
    override_hours: dict[int, DayHours] = field(default_factory=dict)
    is_active: bool = True


@dataclass(frozen=True)
class ServiceProfile:
    id: UUID
    barbershop_id: UUID
    name: str
    duration_minutes: int
    price: Decimal = Decimal("0.00")
    is_active: bool = True

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.duration_minutes)


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar dates, interpreted in the shop's timezone."""

    start: date
    end: date

    @property
    def length_days(self) -> int:
        return (self.end - self.start).days + 1

    def days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)


@dataclass(frozen=True)
class Slot:
    """Bookable candidate of exactly the service duration. Never persisted."""

    barber_id: UUID
    service_id: UUID
    start: datetime
    end: datetime


@dataclass(frozen=True)
class CustomerInfo:
    name: str
    email: str
    phone: str | None = None
    notes: str | None = None
