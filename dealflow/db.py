"""Async database access for seekers, providers, matches and stored weights.

One engine per process, built from ``DB_URL`` (Postgres via asyncpg by
default). The API gets sessions through ``get_session``; scripts open
``AsyncSessionMaker()`` directly and call ``dispose_engine`` when done.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import settings

logger = logging.getLogger(__name__)


def safe_url(url: str) -> str:
    """Connection URL without credentials, for logs."""
    return url.split("@")[-1] if "@" in url else url


engine: AsyncEngine = create_async_engine(settings.db.url, echo=settings.db.echo)

AsyncSessionMaker = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


async def get_session() -> AsyncIterator[AsyncSession]:
    """Session per request; matches are committed by the pipeline calls."""
    async with AsyncSessionMaker() as session:
        yield session


async def dispose_engine() -> None:
    """Close pooled connections (API shutdown, end of a CLI run)."""
    await engine.dispose()
    logger.info(f"Closed database connections to {safe_url(settings.db.url)}")
