"""Completion oracle: has this actor finished this course or learning path?

Reads the progress cache first; on a miss, reads the durable store and
populates the cache (read-through) so the next progress request for the
same course is served from memory.

A learning path is complete when every one of its courses is.  A path
with no courses, or one that does not exist, is never complete.
"""

from __future__ import annotations

import logging
from typing import Protocol

from lms_core.repos.learning_path_repo import LearningPathRepo
from lms_core.repos.progress_repo import ProgressRepo
from lms_core.services.progress_cache import ProgressCache

logger = logging.getLogger(__name__)


class CompletionOracle(Protocol):
    async def has_completed_course(self, actor_id: str, course_id: str) -> bool: ...
    async def has_completed_path(self, actor_id: str, path_id: str) -> bool: ...


class CacheBackedCompletionOracle:
    def __init__(
        self,
        cache: ProgressCache,
        progress_repo: ProgressRepo,
        path_repo: LearningPathRepo,
    ) -> None:
        self._cache = cache
        self._repo = progress_repo
        self._path_repo = path_repo

    async def has_completed_course(self, actor_id: str, course_id: str) -> bool:
        cached = self._cache.get(actor_id, course_id)
        if cached is not None:
            return cached.is_completed

        snapshot = await self._repo.read_progress(actor_id, course_id)
        if snapshot is None:
            logger.debug(
                "No progress source for course",
                extra={"user_id": actor_id, "course_id": course_id},
            )
            return False

        self._cache.set(actor_id, course_id, snapshot)
        return snapshot.is_completed

    async def has_completed_path(self, actor_id: str, path_id: str) -> bool:
        path = await self._path_repo.get_learning_path(path_id)
        if path is None or not path.course_ids:
            logger.debug(
                "Learning path missing or empty",
                extra={"user_id": actor_id, "learning_path_id": path_id},
            )
            return False

        # Stops at the first unfinished course.
        for course_id in path.course_ids:
            if not await self.has_completed_course(actor_id, course_id):
                return False
        return True
