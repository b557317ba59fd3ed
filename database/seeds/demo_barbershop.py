"""
Seed script for a demo barbershop.

Populates the database with one shop the booking wizard can be tried against:
- Monday: CLOSED
- Tuesday-Friday: 09:00 - 18:00
- Saturday: 09:00 - 14:00
- Sunday: CLOSED
- Two barbers; Luis works Saturday afternoons only (override)
- Three services

Ids are fixed so re-running the seed updates rows instead of duplicating them.
"""

import asyncio
from datetime import time
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.connection import AsyncSessionLocal, init_models
from database.models import Barber, Barbershop, BusinessHours, Service

DEMO_BARBERSHOP_ID = UUID("5b0c9a64-3a51-4f5e-9a4e-2d1f3b7c0a01")
DEMO_BARBER_IDS = {
    "marco": UUID("5b0c9a64-3a51-4f5e-9a4e-2d1f3b7c0b01"),
    "luis": UUID("5b0c9a64-3a51-4f5e-9a4e-2d1f3b7c0b02"),
}

# Day of week: 0=Monday, 1=Tuesday, ..., 6=Sunday
SHOP_HOURS_DATA: list[dict[str, Any]] = [
    {"day_of_week": 0, "is_open": False, "open_time": None, "close_time": None},
    {"day_of_week": 1, "is_open": True, "open_time": time(9, 0), "close_time": time(18, 0)},
    {"day_of_week": 2, "is_open": True, "open_time": time(9, 0), "close_time": time(18, 0)},
    {"day_of_week": 3, "is_open": True, "open_time": time(9, 0), "close_time": time(18, 0)},
    {"day_of_week": 4, "is_open": True, "open_time": time(9, 0), "close_time": time(18, 0)},
    {"day_of_week": 5, "is_open": True, "open_time": time(9, 0), "close_time": time(14, 0)},
    {"day_of_week": 6, "is_open": False, "open_time": None, "close_time": None},
]

BARBERS_DATA: list[dict[str, Any]] = [
    {"id": DEMO_BARBER_IDS["marco"], "first_name": "Marco", "last_name": "Ruiz", "email": "marco@example.com"},
    {"id": DEMO_BARBER_IDS["luis"], "first_name": "Luis", "last_name": "Ortega", "email": "luis@example.com"},
]

# Barber-level overrides
BARBER_HOURS_DATA: list[dict[str, Any]] = [
    {
        "barber_id": DEMO_BARBER_IDS["luis"],
        "day_of_week": 5,
        "is_open": True,
        "open_time": time(12, 0),
        "close_time": time(14, 0),
    },
]

SERVICES_DATA: list[dict[str, Any]] = [
    {
        "id": UUID("5b0c9a64-3a51-4f5e-9a4e-2d1f3b7c0c01"),
        "name": "Haircut",
        "description": "Classic cut and style",
        "price": Decimal("20.00"),
        "duration_minutes": 30,
    },
    {
        "id": UUID("5b0c9a64-3a51-4f5e-9a4e-2d1f3b7c0c02"),
        "name": "Beard Trim",
        "description": "Shape and line-up",
        "price": Decimal("12.00"),
        "duration_minutes": 20,
    },
    {
        "id": UUID("5b0c9a64-3a51-4f5e-9a4e-2d1f3b7c0c03"),
        "name": "Cut & Beard",
        "description": "Haircut plus beard trim",
        "price": Decimal("28.00"),
        "duration_minutes": 60,
    },
]


async def _upsert_hours(session: AsyncSession, barber_id: UUID | None, data: dict[str, Any]) -> bool:
    """Create or update one business hours row; returns True when created."""
    result = await session.execute(
        select(BusinessHours).where(
            BusinessHours.barbershop_id == DEMO_BARBERSHOP_ID,
            BusinessHours.barber_id.is_(None) if barber_id is None else BusinessHours.barber_id == barber_id,
            BusinessHours.day_of_week == data["day_of_week"],
        )
    )
    existing = result.scalar_one_or_none()
    if existing is None:
        session.add(BusinessHours(barbershop_id=DEMO_BARBERSHOP_ID, barber_id=barber_id, **data))
        return True

    existing.is_open = data["is_open"]
    existing.open_time = data["open_time"]
    existing.close_time = data["close_time"]
    return False


async def seed_demo_barbershop(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> None:
    """Create or update the demo barbershop with its hours, barbers and services."""
    factory = session_factory or AsyncSessionLocal
    created_count = 0
    updated_count = 0

    async with factory() as session:
        async with session.begin():
            shop = await session.get(Barbershop, DEMO_BARBERSHOP_ID)
            if shop is None:
                session.add(
                    Barbershop(id=DEMO_BARBERSHOP_ID, name="Demo Barbershop", timezone="Europe/Madrid")
                )
                created_count += 1
                print("✓ Created: Demo Barbershop")

            for barber_data in BARBERS_DATA:
                barber = await session.get(Barber, barber_data["id"])
                if barber is None:
                    session.add(Barber(barbershop_id=DEMO_BARBERSHOP_ID, **barber_data))
                    created_count += 1
                    print(f"✓ Created barber: {barber_data['first_name']}")
                else:
                    barber.first_name = barber_data["first_name"]
                    barber.last_name = barber_data["last_name"]
                    barber.email = barber_data["email"]
                    updated_count += 1

            for service_data in SERVICES_DATA:
                service = await session.get(Service, service_data["id"])
                if service is None:
                    session.add(Service(barbershop_id=DEMO_BARBERSHOP_ID, **service_data))
                    created_count += 1
                    print(f"✓ Created service: {service_data['name']}")
                else:
                    service.name = service_data["name"]
                    service.description = service_data["description"]
                    service.price = service_data["price"]
                    service.duration_minutes = service_data["duration_minutes"]
                    updated_count += 1

            # Barbershop/barber rows must exist before their hours reference them
            await session.flush()

            for hours_data in SHOP_HOURS_DATA:
                if await _upsert_hours(session, None, hours_data):
                    created_count += 1
                else:
                    updated_count += 1

            for override in BARBER_HOURS_DATA:
                data = {key: value for key, value in override.items() if key != "barber_id"}
                if await _upsert_hours(session, override["barber_id"], data):
                    created_count += 1
                else:
                    updated_count += 1

    print("\n✓ Seeding complete!")
    print(f"  Created: {created_count} rows")
    print(f"  Updated: {updated_count} rows")


if __name__ == "__main__":
    print("Seeding demo barbershop...")
    print("=" * 60)

    async def _main() -> None:
        await init_models()
        await seed_demo_barbershop()

    asyncio.run(_main())
