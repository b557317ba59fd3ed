"""
Integration tests for the demo barbershop seed.
"""

from datetime import time

import pytest
from sqlalchemy import func, select

from database.models import BusinessHours
from database.seeds.demo_barbershop import (
    DEMO_BARBER_IDS,
    DEMO_BARBERSHOP_ID,
    SERVICES_DATA,
    seed_demo_barbershop,
)
from scheduling.models import DayHours

pytestmark = pytest.mark.integration


async def test_seed_loads_through_catalog(session_factory, catalog):
    await seed_demo_barbershop(session_factory)

    shop = await catalog.get_shop(DEMO_BARBERSHOP_ID)
    barbers = await catalog.list_active_barbers(DEMO_BARBERSHOP_ID)
    luis = await catalog.get_barber(DEMO_BARBER_IDS["luis"])

    assert shop.timezone == "Europe/Madrid"
    assert shop.weekly_hours[0] == DayHours.closed()
    assert shop.weekly_hours[5] == DayHours(is_open=True, open_time=time(9, 0), close_time=time(14, 0))
    assert {barber.id for barber in barbers} == set(DEMO_BARBER_IDS.values())
    assert luis.override_hours[5].open_time == time(12, 0)
    for service_data in SERVICES_DATA:
        service = await catalog.get_service(service_data["id"])
        assert service.duration_minutes == service_data["duration_minutes"]


async def test_seed_is_idempotent(session_factory):
    await seed_demo_barbershop(session_factory)
    await seed_demo_barbershop(session_factory)

    async with session_factory() as session:
        count = await session.scalar(
            select(func.count()).select_from(BusinessHours).where(
                BusinessHours.barbershop_id == DEMO_BARBERSHOP_ID
            )
        )

    assert count == 8
