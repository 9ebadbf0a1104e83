"""Process-wide service wiring.

Each process gets exactly one ProgressCache and one CertificateCoordinator;
their in-flight state is only meaningful if every request in the process
shares them.  ``build_services`` is the single place that constructs them,
and the app lifespan is the single caller.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lms_core.core.config import Settings
from lms_core.repos.access_repo import AccessRepo, InMemoryAccessRepo
from lms_core.repos.certificate_repo import CertificateRepo, InMemoryCertificateRepo
from lms_core.repos.learning_path_repo import (
    InMemoryLearningPathRepo,
    LearningPathRepo,
)
from lms_core.repos.pg_access_repo import PgAccessRepo
from lms_core.repos.pg_certificate_repo import PgCertificateRepo
from lms_core.repos.pg_learning_path_repo import PgLearningPathRepo
from lms_core.repos.pg_progress_repo import PgProgressRepo
from lms_core.repos.progress_repo import InMemoryProgressRepo, ProgressRepo
from lms_core.services.certificates import (
    CertificateCoordinator,
    CertificateGenerator,
    LocalCertificateGenerator,
)
from lms_core.services.completion import CacheBackedCompletionOracle
from lms_core.services.entitlements import EntitlementService
from lms_core.services.lesson_progress import LessonProgressService
from lms_core.services.progress_cache import ProgressCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CoreServices:
    entitlements: EntitlementService
    progress_cache: ProgressCache
    completion: CacheBackedCompletionOracle
    certificates: CertificateCoordinator
    lesson_progress: LessonProgressService


def build_services(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    *,
    generator: CertificateGenerator | None = None,
) -> CoreServices:
    """Wire repos and services.  In-memory repos when no database is configured."""
    access_repo: AccessRepo
    progress_repo: ProgressRepo
    certificate_repo: CertificateRepo
    path_repo: LearningPathRepo
    if session_factory is None:
        access_repo = InMemoryAccessRepo()
        progress_repo = InMemoryProgressRepo()
        certificate_repo = InMemoryCertificateRepo()
        path_repo = InMemoryLearningPathRepo()
    else:
        access_repo = PgAccessRepo(session_factory)
        progress_repo = PgProgressRepo(session_factory)
        certificate_repo = PgCertificateRepo(session_factory)
        path_repo = PgLearningPathRepo(session_factory)

    progress_cache = ProgressCache(ttl_seconds=settings.progress_cache_ttl_seconds)
    completion = CacheBackedCompletionOracle(progress_cache, progress_repo, path_repo)
    certificates = CertificateCoordinator(
        completion,
        certificate_repo,
        generator or LocalCertificateGenerator(),
        lookup_ttl_seconds=settings.certificate_cache_ttl_seconds,
        generation_timeout_seconds=settings.certificate_generation_timeout_seconds,
    )
    entitlements = EntitlementService(access_repo)
    return CoreServices(
        entitlements=entitlements,
        progress_cache=progress_cache,
        completion=completion,
        certificates=certificates,
        lesson_progress=LessonProgressService(
            access_repo, progress_repo, entitlements, progress_cache, certificates
        ),
    )


def sweep_once(services: CoreServices) -> tuple[int, int]:
    progress_swept = services.progress_cache.cleanup()
    certificates_swept = services.certificates.cleanup()
    if progress_swept or certificates_swept:
        logger.info(
            "Cache sweep removed progress=%d certificates=%d",
            progress_swept,
            certificates_swept,
        )
    return progress_swept, certificates_swept


async def sweep_caches(services: CoreServices, interval_seconds: float) -> None:
    """Run ``sweep_once`` forever; cancelled by the lifespan on shutdown.

    Reads already treat expired entries as misses, so this only bounds
    memory and wakes waiters on orphaned generations.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        sweep_once(services)
