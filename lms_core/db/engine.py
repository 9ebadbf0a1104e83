"""Async SQLAlchemy engine lifecycle.

``lifespan_db`` owns the engine for the life of the process and yields
the session factory the Postgres repos are built with, or None when no
DATABASE_URL is configured and the in-memory repos are used instead.

Repos open one session per call from the factory; services are
process-wide, so no session outlives a single repo method.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from lms_core.core.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for lms_core.db.tables."""


def create_engine(settings: Settings) -> AsyncEngine:
    if not settings.database_url:
        raise RuntimeError("DATABASE_URL is not configured")
    return create_async_engine(
        settings.database_url,
        echo=settings.is_dev,  # SQL echo in dev only
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
    )


@asynccontextmanager
async def lifespan_db(
    settings: Settings,
) -> AsyncIterator[async_sessionmaker[AsyncSession] | None]:
    if not settings.database_url:
        logger.info("No DATABASE_URL configured, using in-memory repositories")
        yield None
        return

    engine = create_engine(settings)
    logger.info("Database engine created: %s", engine.url)
    try:
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()
        logger.info("Database engine disposed")
