from __future__ import annotations

import datetime
from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from lms_core.main import app
from lms_core.models.progress import LessonProgress
from lms_core.repos.access_repo import InMemoryAccessRepo
from lms_core.repos.certificate_repo import InMemoryCertificateRepo
from lms_core.repos.learning_path_repo import InMemoryLearningPathRepo
from lms_core.repos.progress_repo import InMemoryProgressRepo
from lms_core.services.completion import CacheBackedCompletionOracle
from lms_core.services.progress_cache import ProgressCache

FIXED_NOW = datetime.datetime(2026, 3, 1, 12, 0, tzinfo=datetime.UTC)


class FakeClock:
    """Monotonic clock the test moves by hand."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def progress_cache(clock: FakeClock) -> ProgressCache:
    return ProgressCache(ttl_seconds=300, clock=clock, now=lambda: FIXED_NOW)


@pytest.fixture
def access_repo() -> InMemoryAccessRepo:
    return InMemoryAccessRepo()


@pytest.fixture
def progress_repo() -> InMemoryProgressRepo:
    return InMemoryProgressRepo()


@pytest.fixture
def certificate_repo() -> InMemoryCertificateRepo:
    return InMemoryCertificateRepo()


@pytest.fixture
def path_repo() -> InMemoryLearningPathRepo:
    return InMemoryLearningPathRepo()


@pytest.fixture
def completion(
    progress_cache: ProgressCache,
    progress_repo: InMemoryProgressRepo,
    path_repo: InMemoryLearningPathRepo,
) -> CacheBackedCompletionOracle:
    return CacheBackedCompletionOracle(progress_cache, progress_repo, path_repo)


@pytest.fixture
def client() -> Iterator[TestClient]:
    # Entering the client runs the lifespan, which builds app.state.services.
    with TestClient(app) as c:
        yield c


# ---------------------------------------------------------------------------
# Progress helpers
# ---------------------------------------------------------------------------


def seed_course(
    repo: InMemoryProgressRepo,
    *,
    actor_id: str,
    course_id: str,
    total: int,
    completed: int,
) -> list[str]:
    """Create ``total`` lessons and mark the first ``completed`` as done."""
    lesson_ids = [f"{course_id}-l{i}" for i in range(1, total + 1)]
    repo.set_course_lessons(course_id, lesson_ids)
    for lesson_id in lesson_ids[:completed]:
        repo.record_lesson(
            actor_id,
            LessonProgress(
                lesson_id=lesson_id, completed_at=FIXED_NOW, completion_percent=100
            ),
        )
    return lesson_ids
