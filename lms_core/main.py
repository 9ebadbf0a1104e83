from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from lms_core.api.health import router as health_router
from lms_core.api.metrics_endpoint import router as metrics_router
from lms_core.core.config import SETTINGS
from lms_core.core.logging import setup_logging
from lms_core.db.engine import lifespan_db
from lms_core.services.container import build_services, sweep_caches

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Services are built inside the DB lifespan so the engine outlives
    # every repo that holds its session factory.
    async with lifespan_db(SETTINGS) as session_factory:
        services = build_services(SETTINGS, session_factory)
        app.state.services = services

        sweeper = asyncio.create_task(
            sweep_caches(services, SETTINGS.cache_sweep_interval_seconds)
        )
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
            services.certificates.clear()
            services.progress_cache.clear()
            app.state.services = None


app = FastAPI(
    title="lms-core",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.include_router(metrics_router)
app.include_router(health_router)

logger.info(
    "lms-core started  env=%s log_level=%s port=%d database=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    "postgres" if SETTINGS.database_url else "in-memory",
)
