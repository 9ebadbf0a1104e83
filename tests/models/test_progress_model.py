from __future__ import annotations

import datetime

import pytest

from lms_core.models.progress import (
    UNSET,
    CourseProgressSnapshot,
    LessonProgress,
    LessonProgressUpdate,
    overall_percent,
)

DONE = datetime.datetime(2026, 3, 1, tzinfo=datetime.UTC)


@pytest.mark.parametrize(
    ("completed", "total", "expected"),
    [
        (0, 0, 0),
        (0, 5, 0),
        (1, 8, 13),  # 12.5 rounds half up
        (1, 3, 33),
        (2, 3, 67),
        (3, 5, 60),
        (5, 5, 100),
    ],
)
def test_overall_percent(completed: int, total: int, expected: int) -> None:
    assert overall_percent(completed, total) == expected


def test_snapshot_counts_only_lessons_with_completed_at() -> None:
    snapshot = CourseProgressSnapshot.from_lessons(
        course_id="c1",
        total_lessons=4,
        lessons=[
            LessonProgress(lesson_id="a", completed_at=DONE),
            LessonProgress(lesson_id="b", completion_percent=100),
        ],
    )
    assert snapshot.completed_lessons == 1
    assert snapshot.overall_progress == 25
    assert snapshot.is_completed is False


def test_course_without_lessons_is_never_complete() -> None:
    snapshot = CourseProgressSnapshot.from_lessons(
        course_id="c1", total_lessons=0, lessons=[]
    )
    assert snapshot.overall_progress == 0
    assert snapshot.is_completed is False


def test_copy_does_not_share_lesson_list() -> None:
    snapshot = CourseProgressSnapshot.from_lessons(
        course_id="c1", total_lessons=2, lessons=[LessonProgress(lesson_id="a")]
    )
    clone = snapshot.copy()
    clone.lessons.append(LessonProgress(lesson_id="b"))
    assert len(snapshot.lessons) == 1


def test_update_leaves_unset_fields_untouched() -> None:
    lesson = LessonProgress(lesson_id="a", completion_percent=40, last_position=120)
    updated = LessonProgressUpdate(last_position=300).apply(lesson)
    assert updated.completion_percent == 40
    assert updated.last_position == 300
    assert updated.completed_at is None


def test_update_can_clear_completed_at() -> None:
    lesson = LessonProgress(lesson_id="a", completed_at=DONE)
    updated = LessonProgressUpdate(completed_at=None).apply(lesson)
    assert updated.is_completed is False


def test_unset_is_falsy_singleton() -> None:
    assert not UNSET
    assert repr(UNSET) == "UNSET"
