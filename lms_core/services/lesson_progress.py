"""Recording lesson progress, end to end.

  update_lesson_progress(actor, lesson, update)
    1. lesson -> course; unknown lesson or course   -> LessonNotFoundError
    2. entitlements deny                            -> CourseAccessDeniedError
    3. durable upsert of the lesson row
    4. patch the cached snapshot (or read it from the store on a miss)
    5. snapshot now complete                        -> issue the certificate

The store write happens before the cache patch, so a crash between the
two leaves the cache stale for at most one TTL, never ahead of the store.

Step 5 runs on every update that leaves the course complete, not only
the one that crossed the line.  The coordinator makes repeats cheap
(lookup cache hit), and a retry after a failed generation needs exactly
that.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass

from lms_core.models.actor import Actor
from lms_core.models.progress import CourseProgressSnapshot, LessonProgressUpdate
from lms_core.repos.access_repo import AccessRepo
from lms_core.repos.progress_repo import ProgressRepo
from lms_core.services.certificates import CertificateCoordinator, CertificateResult
from lms_core.services.entitlements import EntitlementService
from lms_core.services.progress_cache import ProgressCache

logger = logging.getLogger(__name__)


class LessonNotFoundError(Exception):
    pass


class CourseAccessDeniedError(Exception):
    pass


@dataclass(frozen=True, slots=True)
class LessonProgressOutcome:
    course_id: str
    snapshot: CourseProgressSnapshot | None
    certificate: CertificateResult | None = None


class LessonProgressService:
    def __init__(
        self,
        access_repo: AccessRepo,
        progress_repo: ProgressRepo,
        entitlements: EntitlementService,
        progress_cache: ProgressCache,
        certificates: CertificateCoordinator,
    ) -> None:
        self._access_repo = access_repo
        self._progress_repo = progress_repo
        self._entitlements = entitlements
        self._cache = progress_cache
        self._certificates = certificates

    async def update_lesson_progress(
        self,
        actor: Actor,
        lesson_id: str,
        update: LessonProgressUpdate,
        *,
        now: datetime.datetime | None = None,
    ) -> LessonProgressOutcome:
        log_ctx = {"user_id": actor.id, "lesson_id": lesson_id}

        course_id = await self._progress_repo.find_lesson_course(lesson_id)
        course = (
            await self._access_repo.get_course(course_id) if course_id else None
        )
        if course is None:
            logger.warning("Progress for unknown lesson", extra=log_ctx)
            raise LessonNotFoundError(lesson_id)

        decision = await self._entitlements.get_course_access(actor, course, now=now)
        if not decision.granted:
            logger.warning(
                "Rejected progress update without course access",
                extra={**log_ctx, "course_id": course.id},
            )
            raise CourseAccessDeniedError(course.id)

        await self._progress_repo.upsert_lesson(actor.id, lesson_id, update)

        snapshot = self._cache.update_lesson(actor.id, course.id, lesson_id, update)
        if snapshot is None:
            # Cold cache: the store already holds the write above.
            snapshot = await self._progress_repo.read_progress(actor.id, course.id)
            if snapshot is not None:
                self._cache.set(actor.id, course.id, snapshot)

        certificate = None
        if snapshot is not None and snapshot.is_completed:
            certificate = await self._certificates.check_and_generate(
                actor.id, course.id
            )

        return LessonProgressOutcome(
            course_id=course.id, snapshot=snapshot, certificate=certificate
        )
