"""
Fixtures for HTTP-level tests.

The ASGI app runs in-process through httpx.ASGITransport. Service providers are
overridden to use the per-test SQLite store and a fixed clock, and the Redis
client used by the rate limiter is replaced with an AsyncMock.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from api.dependencies import (
    get_availability_engine,
    get_booking_transaction,
    get_calendar_store,
    get_catalog_service,
)
from api.main import app
from api.security import create_access_token
from scheduling.services import AvailabilityEngine
from scheduling.transactions import BookingTransaction
from tests.conftest import SHOP_ID, fixed_clock


@pytest.fixture
def redis_mock():
    client = MagicMock()
    client.incr = AsyncMock(return_value=1)
    client.expire = AsyncMock(return_value=True)
    with patch("api.middleware.rate_limiting.get_redis_client", return_value=client):
        yield client


@pytest.fixture
def override_services(store, catalog):
    app.dependency_overrides[get_calendar_store] = lambda: store
    app.dependency_overrides[get_catalog_service] = lambda: catalog
    app.dependency_overrides[get_availability_engine] = lambda: AvailabilityEngine(
        store, clock=fixed_clock, lead_time_minutes=60
    )
    app.dependency_overrides[get_booking_transaction] = lambda: BookingTransaction(
        store, catalog, clock=fixed_clock, lead_time_minutes=60
    )
    yield
    app.dependency_overrides.clear()


@pytest.fixture
async def client(override_services, redis_mock, seeded):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    token = create_access_token("owner@fadefactory.test", [SHOP_ID])
    return {"Authorization": f"Bearer {token}"}
