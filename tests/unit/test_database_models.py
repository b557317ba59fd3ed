"""
Unit tests for database models.

Tests cover:
- Model creation and defaults
- CHECK constraints (opening hours, appointment interval)
- Unique constraints
- UTC round-trip of timestamp columns
"""

from datetime import UTC, datetime, time, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, StatementError

from database.models import (
    Appointment,
    AppointmentStatus,
    Barber,
    Barbershop,
    BusinessHours,
    Service,
)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def shop(session):
    shop = Barbershop(name="Test Shop")
    session.add(shop)
    await session.commit()
    return shop


async def test_barbershop_defaults(session, shop):
    assert shop.id is not None
    assert shop.timezone == "Europe/Madrid"
    assert shop.is_active is True
    assert shop.created_at.tzinfo is not None


async def test_barber_full_name(session, shop):
    barber = Barber(barbershop_id=shop.id, first_name="Marco", last_name="Ruiz")
    session.add(barber)
    await session.commit()

    assert barber.full_name == "Marco Ruiz"
    assert barber.is_active is True


async def test_closed_day_must_not_carry_times(session, shop):
    session.add(
        BusinessHours(barbershop_id=shop.id, day_of_week=6, is_open=False, open_time=time(9, 0),
                      close_time=time(18, 0))
    )

    with pytest.raises(IntegrityError):
        await session.commit()


async def test_open_day_requires_open_before_close(session, shop):
    session.add(
        BusinessHours(barbershop_id=shop.id, day_of_week=1, is_open=True, open_time=time(18, 0),
                      close_time=time(9, 0))
    )

    with pytest.raises(IntegrityError):
        await session.commit()


async def test_day_of_week_range(session, shop):
    session.add(BusinessHours(barbershop_id=shop.id, day_of_week=7, is_open=False))

    with pytest.raises(IntegrityError):
        await session.commit()


async def test_one_override_per_barber_weekday(session, shop):
    barber = Barber(barbershop_id=shop.id, first_name="Luis", last_name="Ortega")
    session.add(barber)
    await session.flush()
    session.add_all(
        [
            BusinessHours(barbershop_id=shop.id, barber_id=barber.id, day_of_week=2, is_open=False),
            BusinessHours(barbershop_id=shop.id, barber_id=barber.id, day_of_week=2, is_open=False),
        ]
    )

    with pytest.raises(IntegrityError):
        await session.commit()


async def test_appointment_end_after_start(session, shop):
    barber = Barber(barbershop_id=shop.id, first_name="Marco", last_name="Ruiz")
    service = Service(barbershop_id=shop.id, name="Haircut", duration_minutes=30)
    session.add_all([barber, service])
    await session.flush()
    start = datetime(2025, 6, 10, 8, 0, tzinfo=UTC)
    session.add(
        Appointment(barbershop_id=shop.id, barber_id=barber.id, service_id=service.id,
                    appointment_date_time=start, end_date_time=start,
                    customer_name="Jane", customer_email="jane@example.com")
    )

    with pytest.raises(IntegrityError):
        await session.commit()


async def test_appointment_instants_round_trip_as_utc(session_factory, session, shop):
    barber = Barber(barbershop_id=shop.id, first_name="Marco", last_name="Ruiz")
    service = Service(barbershop_id=shop.id, name="Haircut", duration_minutes=30, price=Decimal("20.00"))
    session.add_all([barber, service])
    await session.flush()
    local_start = datetime(2025, 6, 10, 10, 0, tzinfo=ZoneInfo("Europe/Madrid"))
    appointment = Appointment(
        barbershop_id=shop.id, barber_id=barber.id, service_id=service.id,
        appointment_date_time=local_start, end_date_time=local_start + timedelta(minutes=30),
        customer_name="Jane", customer_email="jane@example.com", price=service.price,
    )
    session.add(appointment)
    await session.commit()

    async with session_factory() as fresh:
        loaded = (await fresh.execute(select(Appointment).where(Appointment.id == appointment.id))).scalar_one()

    assert loaded.status == AppointmentStatus.PENDING
    assert loaded.appointment_date_time == datetime(2025, 6, 10, 8, 0, tzinfo=UTC)
    assert loaded.appointment_date_time.utcoffset() == timedelta(0)


async def test_naive_datetime_rejected(session, shop):
    barber = Barber(barbershop_id=shop.id, first_name="Marco", last_name="Ruiz")
    service = Service(barbershop_id=shop.id, name="Haircut", duration_minutes=30)
    session.add_all([barber, service])
    await session.flush()
    naive = datetime(2025, 6, 10, 8, 0)
    session.add(
        Appointment(barbershop_id=shop.id, barber_id=barber.id, service_id=service.id,
                    appointment_date_time=naive, end_date_time=naive + timedelta(minutes=30),
                    customer_name="Jane", customer_email="jane@example.com")
    )

    with pytest.raises(StatementError):
        await session.commit()
