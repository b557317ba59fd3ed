"""
Async database engine and session factory.

Usage:
    from database.connection import get_async_session

    async with get_async_session() as session:
        result = await session.execute(select(Barber))
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from database.models import Base
from shared.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


def create_engine_from_url(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine; pool tuning only applies to server databases."""
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=echo)
    return create_async_engine(
        url,
        echo=echo,
        pool_size=10,
        max_overflow=10,
        pool_pre_ping=True,
    )


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False keeps returned appointments readable after commit
    return async_sessionmaker(bind, expire_on_commit=False)


engine = create_engine_from_url(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
AsyncSessionLocal = create_session_factory(engine)


@asynccontextmanager
async def get_async_session() -> AsyncIterator[AsyncSession]:
    """Yield a session from the application factory, closing it afterwards."""
    async with AsyncSessionLocal() as session:
        yield session


async def init_models(bind: AsyncEngine | None = None) -> None:
    """Create all tables (development and test databases)."""
    target = bind or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")
