from __future__ import annotations

import datetime
from dataclasses import dataclass, field, replace
from typing import Final


class _Unset:
    """Marker for 'field not supplied' in a partial lesson update."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()


@dataclass(frozen=True, slots=True)
class LessonProgress:
    """Per-lesson state.

    ``completed_at`` being set is the only thing that makes a lesson
    count as done; ``completion_percent`` is what the player reports and
    is not reconciled against it.
    """

    lesson_id: str
    completed_at: datetime.datetime | None = None
    completion_percent: int = 0
    last_position: int = 0

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None


@dataclass(frozen=True, slots=True)
class LessonProgressUpdate:
    """Partial update for one lesson; UNSET fields are left untouched.

    ``completed_at=None`` is a real value (un-complete the lesson), which
    is why absence is spelled UNSET rather than None.
    """

    completed_at: datetime.datetime | None | _Unset = UNSET
    completion_percent: int | _Unset = UNSET
    last_position: int | _Unset = UNSET

    def changes(self) -> dict[str, object]:
        """The supplied fields only, by name."""
        changes: dict[str, object] = {}
        if not isinstance(self.completed_at, _Unset):
            changes["completed_at"] = self.completed_at
        if not isinstance(self.completion_percent, _Unset):
            changes["completion_percent"] = self.completion_percent
        if not isinstance(self.last_position, _Unset):
            changes["last_position"] = self.last_position
        return changes

    def apply(self, lesson: LessonProgress) -> LessonProgress:
        return replace(lesson, **self.changes())


def overall_percent(completed_lessons: int, total_lessons: int) -> int:
    """Whole-number percentage, rounding halves up (1 of 8 -> 13)."""
    if total_lessons <= 0:
        return 0
    # floor(100 * c / t + 0.5) in integer arithmetic, capped at 100 when
    # the lesson list holds entries beyond total_lessons
    percent = (200 * completed_lessons + total_lessons) // (2 * total_lessons)
    return min(percent, 100)


@dataclass(slots=True)
class CourseProgressSnapshot:
    """A learner's completion state for one course.

    Derived fields (completed_lessons, overall_progress, is_completed)
    are only ever written by ``recompute``.
    """

    course_id: str
    total_lessons: int
    completed_lessons: int = 0
    overall_progress: int = 0
    lessons: list[LessonProgress] = field(default_factory=list)
    is_completed: bool = False
    last_updated: datetime.datetime | None = None

    @staticmethod
    def from_lessons(
        *,
        course_id: str,
        total_lessons: int,
        lessons: list[LessonProgress],
        last_updated: datetime.datetime | None = None,
    ) -> CourseProgressSnapshot:
        snapshot = CourseProgressSnapshot(
            course_id=course_id,
            total_lessons=total_lessons,
            lessons=list(lessons),
            last_updated=last_updated,
        )
        snapshot.recompute()
        return snapshot

    def recompute(self) -> None:
        self.completed_lessons = sum(
            1 for lesson in self.lessons if lesson.is_completed
        )
        self.overall_progress = overall_percent(
            self.completed_lessons, self.total_lessons
        )
        # A course with no lessons is never complete (0 != 100).
        self.is_completed = self.overall_progress == 100

    def find_lesson(self, lesson_id: str) -> int | None:
        for index, lesson in enumerate(self.lessons):
            if lesson.lesson_id == lesson_id:
                return index
        return None

    def copy(self) -> CourseProgressSnapshot:
        # LessonProgress is frozen, so a new list is a full copy.
        return replace(self, lessons=list(self.lessons))
