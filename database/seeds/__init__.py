"""
Seed data orchestration module.

Provides seed_all() to create the schema and load the demo data.
Run standalone with: python -m database.seeds.demo_barbershop
"""

from database.connection import init_models
from database.seeds.demo_barbershop import seed_demo_barbershop


async def seed_all() -> None:
    """
    Create tables and execute all seed scripts in dependency order.

    Order:
    1. schema (create_all)
    2. demo barbershop with hours, barbers and services
    """
    print("Starting database seeding...")
    print("-" * 50)

    await init_models()
    await seed_demo_barbershop()

    print("-" * 50)
    print(" Database seeding complete!")

