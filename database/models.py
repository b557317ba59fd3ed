"""
SQLAlchemy ORM models for the booking tables.

This module defines:
- barbershops: shops with their IANA timezone
- barbers: professionals owned by a barbershop
- services: bookable services with price and fixed duration
- business_hours: weekly opening hours, shop-level or per-barber override
- appointments: reserved intervals on a barber's calendar

All models use:
- UUID primary keys (auto-generated)
- UTC timestamps (UTCDateTime) for every instant
- id-based references only; cross-entity lookups go through
  scheduling.services.catalog_service
"""

from datetime import UTC, datetime, time
from decimal import Decimal
from enum import Enum as PyEnum
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy import (
    Enum as SQLEnum,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from shared.config import get_settings

# ============================================================================
# Base Class
# ============================================================================


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def utc_now() -> datetime:
    return datetime.now(UTC)


def default_timezone() -> str:
    return get_settings().DEFAULT_TIMEZONE


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime column that always round-trips as UTC.

    PostgreSQL stores TIMESTAMP WITH TIME ZONE natively. SQLite has no zone
    support, so values are written as naive UTC and re-tagged on read.
    Naive datetimes are rejected on write.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError(f"Naive datetime cannot be stored as an instant: {value!r}")
        value = value.astimezone(UTC)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: datetime | None, dialect: Any) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


# ============================================================================
# Enums
# ============================================================================


class AppointmentStatus(str, PyEnum):
    """Appointment lifecycle status."""

    PENDING = "PENDING"        # Reserved, awaiting confirmation event
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"

    def __str__(self):
        return self.value


# Statuses that occupy a barber's calendar
BLOCKING_STATUSES = (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)


# ============================================================================
# Catalog Models
# ============================================================================


class Barbershop(Base):
    """Barbershop - owns barbers, services and weekly business hours."""

    __tablename__ = "barbershops"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    name: Mapped[str] = mapped_column(String(150), nullable=False)
    # IANA zone name, e.g. "Europe/Madrid"
    timezone: Mapped[str] = mapped_column(String(64), default=default_timezone, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, onupdate=utc_now, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Barbershop(id={self.id}, name='{self.name}', timezone='{self.timezone}')>"


class Barber(Base):
    """
    Barber model - professional whose calendar receives appointments.

    Per-day override hours live in business_hours rows carrying this barber's id.
    Inactive barbers are excluded from availability queries.
    """

    __tablename__ = "barbers"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    barbershop_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("barbershops.id", ondelete="CASCADE"), nullable=False, index=True
    )

    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, onupdate=utc_now, nullable=False
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<Barber(id={self.id}, name='{self.full_name}')>"


class Service(Base):
    """Service model - bookable service with a fixed duration."""

    __tablename__ = "services"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    barbershop_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("barbershops.id", ondelete="CASCADE"), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="check_duration_positive"),
    )

    def __repr__(self) -> str:
        return f"<Service(id={self.id}, name='{self.name}', duration={self.duration_minutes})>"


class BusinessHours(Base):
    """
    Weekly opening hours.

    barber_id NULL  -> barbershop-level hours for that weekday
    barber_id set   -> override for that barber (absent row = inherit shop hours)

    Day of week: 0=Monday, 1=Tuesday, ..., 6=Sunday
    Times are local wall-clock times in the barbershop's timezone.
    """

    __tablename__ = "business_hours"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    barbershop_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("barbershops.id", ondelete="CASCADE"), nullable=False, index=True
    )
    barber_id: Mapped[UUID | None] = mapped_column(
        Uuid, ForeignKey("barbers.id", ondelete="CASCADE"), nullable=True, index=True
    )

    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    is_open: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    open_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    close_time: Mapped[time | None] = mapped_column(Time, nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="valid_day_of_week"),
        CheckConstraint(
            "(is_open = false AND open_time IS NULL AND close_time IS NULL) OR "
            "(is_open = true AND open_time IS NOT NULL AND close_time IS NOT NULL "
            "AND open_time < close_time)",
            name="valid_open_interval",
        ),
        UniqueConstraint("barbershop_id", "barber_id", "day_of_week", name="uq_business_hours_day"),
    )

    def __repr__(self) -> str:
        return (
            f"<BusinessHours(barbershop_id={self.barbershop_id}, barber_id={self.barber_id}, "
            f"day={self.day_of_week}, open={self.is_open})>"
        )


# ============================================================================
# Transactional Models
# ============================================================================


class Appointment(Base):
    """
    Appointment model - a reserved [appointment_date_time, end_date_time) interval.

    end_date_time and price are snapshots taken at booking; later edits to the
    service never move an existing appointment. Only a reschedule to another
    service recomputes them. For one barber, appointments in
    BLOCKING_STATUSES never overlap.
    """

    __tablename__ = "appointments"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    barbershop_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("barbershops.id", ondelete="CASCADE"), nullable=False, index=True
    )
    barber_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("barbers.id", ondelete="RESTRICT"), nullable=False
    )
    service_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("services.id", ondelete="RESTRICT"), nullable=False
    )

    # Scheduling (UTC)
    appointment_date_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_date_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    status: Mapped[AppointmentStatus] = mapped_column(
        SQLEnum(
            AppointmentStatus,
            name="appointment_status",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=AppointmentStatus.PENDING,
        nullable=False,
        index=True,
    )

    # Customer data captured by the booking wizard
    customer_name: Mapped[str] = mapped_column(String(100), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"), nullable=False)

    cancelled_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (
        CheckConstraint(
            "end_date_time > appointment_date_time", name="check_appointment_end_after_start"
        ),
        Index("idx_appointments_barber_start", "barber_id", "appointment_date_time"),
    )

    def __repr__(self) -> str:
        return f"<Appointment(id={self.id}, barber_id={self.barber_id}, status='{self.status.value}')>"
