from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LearningPath:
    """An ordered bundle of courses, certified as a whole."""

    id: str
    course_ids: tuple[str, ...] = ()
    title: str = ""

    @staticmethod
    def new(*, id: str, course_ids: list[str], title: str = "") -> LearningPath:
        return LearningPath(id=id, course_ids=tuple(course_ids), title=title)
