"""In-process cache of per-course progress snapshots.

WHERE IT SITS
--------------
  Read:   handler -> cache.get -> hit  -> return
                               -> miss -> ProgressRepo.read_progress
                                          -> cache.set -> return
  Write:  handler -> store write (durable) -> cache.update_lesson
                     (write-through: the cached snapshot is patched in
                      place instead of being dropped and re-read)

The durable progress store is the source of truth.  This cache only
saves round-trips; losing it (restart, eviction) costs a re-read, never
data.

INVALIDATION
-------------
Two mechanisms, same as any read-through cache:

  1. TTL: every entry carries an expiry.  ``get`` treats an expired
     entry as a miss even if ``cleanup`` has not swept it yet, so
     correctness never depends on the sweep running.

  2. Explicit: ``invalidate`` drops one (actor, course) entry,
     ``invalidate_for_actor`` drops all of an actor's entries (role
     change, enrollment reset).

SCOPE
------
Single process only.  Two API workers each hold their own copy; nothing
here tries to keep them coherent.  Construct one per process and hand it
to whatever needs it.
"""

from __future__ import annotations

import datetime
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from lms_core.core.metrics import PROGRESS_CACHE_OPERATIONS
from lms_core.models.progress import (
    CourseProgressSnapshot,
    LessonProgress,
    LessonProgressUpdate,
)

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str]  # (actor_id, course_id)


@dataclass(frozen=True, slots=True)
class ProgressCacheStats:
    total_entries: int
    completed_courses: int
    active_courses: int

    def to_dict(self) -> dict[str, int]:
        return {
            "totalEntries": self.total_entries,
            "completedCourses": self.completed_courses,
            "activeCourses": self.active_courses,
        }


@dataclass(slots=True)
class _Entry:
    snapshot: CourseProgressSnapshot
    expires_at: float


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class ProgressCache:
    """TTL-bounded map of (actor_id, course_id) -> CourseProgressSnapshot.

    Snapshots are copied on the way in and on the way out, so the only
    way to change a cached entry is through the methods below.

    ``clock`` drives expiry (monotonic seconds); ``now`` stamps
    ``last_updated``.  Both are injectable so tests can move time.
    """

    def __init__(
        self,
        ttl_seconds: float = 300,
        *,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime.datetime] = _utcnow,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = ttl_seconds
        self._clock = clock
        self._now = now
        self._entries: dict[CacheKey, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def _live_entry(self, key: CacheKey) -> _Entry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            return None
        return entry

    def set(
        self, actor_id: str, course_id: str, snapshot: CourseProgressSnapshot
    ) -> None:
        stored = snapshot.copy()
        stored.last_updated = self._now()
        self._entries[(actor_id, course_id)] = _Entry(
            snapshot=stored, expires_at=self._clock() + self._ttl
        )
        PROGRESS_CACHE_OPERATIONS.labels(operation="set").inc()

    def get(self, actor_id: str, course_id: str) -> CourseProgressSnapshot | None:
        entry = self._live_entry((actor_id, course_id))
        if entry is None:
            PROGRESS_CACHE_OPERATIONS.labels(operation="miss").inc()
            return None
        PROGRESS_CACHE_OPERATIONS.labels(operation="hit").inc()
        return entry.snapshot.copy()

    def update_lesson(
        self,
        actor_id: str,
        course_id: str,
        lesson_id: str,
        update: LessonProgressUpdate,
    ) -> CourseProgressSnapshot | None:
        """Patch one lesson and recompute the course totals.

        Returns the updated snapshot, or None when nothing is cached
        (the caller populates from the store first).
        """
        entry = self._live_entry((actor_id, course_id))
        if entry is None:
            PROGRESS_CACHE_OPERATIONS.labels(operation="miss").inc()
            return None

        snapshot = entry.snapshot
        index = snapshot.find_lesson(lesson_id)
        if index is None:
            snapshot.lessons.append(update.apply(LessonProgress(lesson_id=lesson_id)))
        else:
            snapshot.lessons[index] = update.apply(snapshot.lessons[index])

        snapshot.recompute()
        snapshot.last_updated = self._now()
        # The entry now mirrors the store write that triggered it.
        entry.expires_at = self._clock() + self._ttl
        PROGRESS_CACHE_OPERATIONS.labels(operation="update").inc()

        logger.debug(
            "Lesson progress cached  completed=%d/%d overall=%d%%",
            snapshot.completed_lessons,
            snapshot.total_lessons,
            snapshot.overall_progress,
            extra={
                "user_id": actor_id,
                "course_id": course_id,
                "lesson_id": lesson_id,
            },
        )
        return snapshot.copy()

    def invalidate(self, actor_id: str, course_id: str) -> None:
        if self._entries.pop((actor_id, course_id), None) is not None:
            PROGRESS_CACHE_OPERATIONS.labels(operation="evict").inc()

    def invalidate_for_actor(self, actor_id: str) -> int:
        keys = [key for key in self._entries if key[0] == actor_id]
        for key in keys:
            del self._entries[key]
        if keys:
            PROGRESS_CACHE_OPERATIONS.labels(operation="evict").inc(len(keys))
            logger.info(
                "Invalidated %d cached progress entries",
                len(keys),
                extra={"user_id": actor_id},
            )
        return len(keys)

    def stats(self) -> ProgressCacheStats:
        now = self._clock()
        live = [e.snapshot for e in self._entries.values() if e.expires_at > now]
        return ProgressCacheStats(
            total_entries=len(live),
            completed_courses=sum(1 for s in live if s.is_completed),
            active_courses=sum(1 for s in live if 0 < s.overall_progress < 100),
        )

    def cleanup(self) -> int:
        """Physically remove expired entries; returns how many were swept."""
        now = self._clock()
        expired = [key for key, e in self._entries.items() if e.expires_at <= now]
        for key in expired:
            del self._entries[key]
        if expired:
            PROGRESS_CACHE_OPERATIONS.labels(operation="evict").inc(len(expired))
            logger.debug("Swept %d expired progress entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
