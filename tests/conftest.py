"""
Test configuration and fixtures.

Every test gets its own SQLite database file (aiosqlite driver) in tmp_path,
so the suite needs neither PostgreSQL nor Redis.
"""

import os
from dataclasses import dataclass
from datetime import UTC, datetime, time
from decimal import Decimal
from uuid import UUID

import pytest

# Must be set BEFORE any imports of database.connection or shared.config
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["REDIS_URL"] = "redis://localhost:6379/15"
os.environ["JWT_SECRET"] = "test-secret-key-with-at-least-32-characters"
os.environ["LOG_LEVEL"] = "WARNING"

from database.connection import create_engine_from_url, create_session_factory, init_models  # noqa: E402
from database.models import Barber, Barbershop, BusinessHours, Service  # noqa: E402
from scheduling.services import CalendarStore, CatalogService  # noqa: E402

SHOP_ID = UUID("11111111-1111-4111-8111-111111111111")
OTHER_SHOP_ID = UUID("22222222-2222-4222-8222-222222222222")
BARBER_ID = UUID("33333333-3333-4333-8333-333333333331")
SECOND_BARBER_ID = UUID("33333333-3333-4333-8333-333333333332")
INACTIVE_BARBER_ID = UUID("33333333-3333-4333-8333-333333333333")
FOREIGN_BARBER_ID = UUID("33333333-3333-4333-8333-333333333334")
SERVICE_ID = UUID("44444444-4444-4444-8444-444444444441")
LONG_SERVICE_ID = UUID("44444444-4444-4444-8444-444444444442")
INACTIVE_SERVICE_ID = UUID("44444444-4444-4444-8444-444444444443")

# Tuesday; Europe/Madrid is UTC+2 in June, so 09:00 local == 07:00 UTC
BOOKING_DATE = datetime(2025, 6, 10).date()
FIXED_NOW = datetime(2025, 6, 1, 8, 0, tzinfo=UTC)


def fixed_clock() -> datetime:
    return FIXED_NOW


@dataclass
class SeededIds:
    shop_id: UUID = SHOP_ID
    other_shop_id: UUID = OTHER_SHOP_ID
    barber_id: UUID = BARBER_ID
    second_barber_id: UUID = SECOND_BARBER_ID
    inactive_barber_id: UUID = INACTIVE_BARBER_ID
    foreign_barber_id: UUID = FOREIGN_BARBER_ID
    service_id: UUID = SERVICE_ID
    long_service_id: UUID = LONG_SERVICE_ID
    inactive_service_id: UUID = INACTIVE_SERVICE_ID


@pytest.fixture
async def db_engine(tmp_path):
    """Fresh SQLite database with all tables created."""
    engine = create_engine_from_url(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_models(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture
def store(session_factory):
    return CalendarStore(session_factory, timeout_seconds=5.0)


@pytest.fixture
def catalog(session_factory):
    return CatalogService(session_factory, timeout_seconds=5.0)


@pytest.fixture
async def seeded(session_factory) -> SeededIds:
    """
    Madrid barbershop open 09:00-18:00 Monday to Saturday, closed Sunday.

    - second barber works only 14:00-18:00 on Tuesdays (override)
    - one inactive barber, one barber belonging to another shop
    - 30 min haircut, 60 min combo, inactive service
    """
    async with session_factory() as session:
        session.add_all(
            [
                Barbershop(id=SHOP_ID, name="Fade Factory", timezone="Europe/Madrid"),
                Barbershop(id=OTHER_SHOP_ID, name="Other Shop", timezone="Europe/Madrid"),
            ]
        )
        await session.flush()
        session.add_all(
            [
                Barber(id=BARBER_ID, barbershop_id=SHOP_ID, first_name="Marco", last_name="Ruiz"),
                Barber(id=SECOND_BARBER_ID, barbershop_id=SHOP_ID, first_name="Luis", last_name="Ortega"),
                Barber(
                    id=INACTIVE_BARBER_ID,
                    barbershop_id=SHOP_ID,
                    first_name="Ana",
                    last_name="Vidal",
                    is_active=False,
                ),
                Barber(id=FOREIGN_BARBER_ID, barbershop_id=OTHER_SHOP_ID, first_name="Pau", last_name="Soler"),
                Service(
                    id=SERVICE_ID,
                    barbershop_id=SHOP_ID,
                    name="Haircut",
                    price=Decimal("20.00"),
                    duration_minutes=30,
                ),
                Service(
                    id=LONG_SERVICE_ID,
                    barbershop_id=SHOP_ID,
                    name="Cut & Beard",
                    price=Decimal("28.00"),
                    duration_minutes=60,
                ),
                Service(
                    id=INACTIVE_SERVICE_ID,
                    barbershop_id=SHOP_ID,
                    name="Perm",
                    price=Decimal("50.00"),
                    duration_minutes=90,
                    is_active=False,
                ),
            ]
        )
        await session.flush()
        for day in range(6):
            session.add(
                BusinessHours(
                    barbershop_id=SHOP_ID,
                    day_of_week=day,
                    is_open=True,
                    open_time=time(9, 0),
                    close_time=time(18, 0),
                )
            )
        session.add(BusinessHours(barbershop_id=SHOP_ID, day_of_week=6, is_open=False))
        session.add(
            BusinessHours(
                barbershop_id=SHOP_ID,
                barber_id=SECOND_BARBER_ID,
                day_of_week=1,
                is_open=True,
                open_time=time(14, 0),
                close_time=time(18, 0),
            )
        )
        await session.commit()

    return SeededIds()
