"""
Liveness/readiness probe.

GET /health pings Redis and runs SELECT 1 on the database. Either failure
turns the response into 503 so the orchestrator stops routing traffic here.
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from database import connection
from shared import redis_client

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _redis_ok() -> bool:
    try:
        await redis_client.get_redis_client().ping()
    except Exception as e:
        logger.warning(f"Health probe: Redis unreachable: {e}")
        return False
    return True


async def _database_ok() -> bool:
    try:
        async with connection.get_async_session() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Health probe: database unreachable: {e}")
        return False
    return True


@router.get("/health")
async def health_check() -> JSONResponse:
    """200 when Redis and the database answer, 503 (degraded) otherwise."""
    probes = {
        "redis": await _redis_ok(),
        "postgres": await _database_ok(),
    }
    healthy = all(probes.values())
    body = {"status": "healthy" if healthy else "degraded"}
    body.update({name: "connected" if ok else "disconnected" for name, ok in probes.items()})
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body,
    )
