from __future__ import annotations

import asyncio

from lms_core.core.config import Settings
from lms_core.db.engine import lifespan_db
from lms_core.repos.progress_repo import InMemoryProgressRepo
from lms_core.services.container import build_services, sweep_once

SETTINGS = Settings(
    app_env="test",
    log_level="info",
    log_json=False,
    port=8000,
    database_url=None,
    certificate_generation_timeout_seconds=7,
)


def test_build_services_without_database_uses_in_memory_repos() -> None:
    services = build_services(SETTINGS)
    assert services.certificates.generation_timeout_seconds == 7
    assert len(services.progress_cache) == 0


def test_services_share_one_progress_cache() -> None:
    services = build_services(SETTINGS)
    # The oracle populates the same cache the health endpoint reports on.
    repo = services.completion._repo
    assert isinstance(repo, InMemoryProgressRepo)
    repo.set_course_lessons("c1", ["l1"])

    asyncio.run(services.completion.has_completed_course("u1", "c1"))

    assert services.progress_cache.stats().total_entries == 1


def test_sweep_once_on_fresh_services() -> None:
    assert sweep_once(build_services(SETTINGS)) == (0, 0)


def test_lifespan_db_without_database_yields_no_factory() -> None:
    async def scenario() -> object:
        async with lifespan_db(SETTINGS) as session_factory:
            return session_factory

    assert asyncio.run(scenario()) is None


def test_lesson_progress_shares_cache_and_coordinator() -> None:
    services = build_services(SETTINGS)
    assert services.lesson_progress._cache is services.progress_cache
    assert services.lesson_progress._certificates is services.certificates
