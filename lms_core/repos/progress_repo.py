from __future__ import annotations

from typing import Protocol

from lms_core.models.progress import (
    CourseProgressSnapshot,
    LessonProgress,
    LessonProgressUpdate,
)


class ProgressRepo(Protocol):
    async def read_progress(
        self, actor_id: str, course_id: str
    ) -> CourseProgressSnapshot | None: ...
    async def find_lesson_course(self, lesson_id: str) -> str | None: ...
    async def upsert_lesson(
        self, actor_id: str, lesson_id: str, update: LessonProgressUpdate
    ) -> LessonProgress: ...


class InMemoryProgressRepo:
    """Lesson progress rows keyed by (user, lesson), plus each course's lessons."""

    def __init__(self) -> None:
        self._course_lessons: dict[str, list[str]] = {}
        self._lesson_course: dict[str, str] = {}
        self._rows: dict[tuple[str, str], LessonProgress] = {}
        self.reads = 0

    def set_course_lessons(self, course_id: str, lesson_ids: list[str]) -> None:
        self._course_lessons[course_id] = list(lesson_ids)
        for lesson_id in lesson_ids:
            self._lesson_course[lesson_id] = course_id

    def record_lesson(self, actor_id: str, progress: LessonProgress) -> None:
        self._rows[(actor_id, progress.lesson_id)] = progress

    async def read_progress(
        self, actor_id: str, course_id: str
    ) -> CourseProgressSnapshot | None:
        self.reads += 1
        lesson_ids = self._course_lessons.get(course_id)
        if lesson_ids is None:
            return None

        lessons = [
            self._rows[(actor_id, lesson_id)]
            for lesson_id in lesson_ids
            if (actor_id, lesson_id) in self._rows
        ]
        return CourseProgressSnapshot.from_lessons(
            course_id=course_id,
            total_lessons=len(lesson_ids),
            lessons=lessons,
        )

    async def find_lesson_course(self, lesson_id: str) -> str | None:
        return self._lesson_course.get(lesson_id)

    async def upsert_lesson(
        self, actor_id: str, lesson_id: str, update: LessonProgressUpdate
    ) -> LessonProgress:
        current = self._rows.get((actor_id, lesson_id)) or LessonProgress(
            lesson_id=lesson_id
        )
        updated = update.apply(current)
        self._rows[(actor_id, lesson_id)] = updated
        return updated
