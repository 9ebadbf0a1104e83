"""PostgreSQL implementation of ProgressRepo."""

from __future__ import annotations

import datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lms_core.db.tables import CourseRow, LessonProgressRow, LessonRow
from lms_core.models.progress import (
    CourseProgressSnapshot,
    LessonProgress,
    LessonProgressUpdate,
)


class PgProgressRepo:
    """Builds a course snapshot from the course's lessons and the learner's rows."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def read_progress(
        self, actor_id: str, course_id: str
    ) -> CourseProgressSnapshot | None:
        async with self._session_factory() as session:
            course_exists = (
                await session.execute(
                    select(CourseRow.id).where(CourseRow.id == course_id)
                )
            ).scalar_one_or_none()
            if course_exists is None:
                return None

            lesson_ids = list(
                (
                    await session.execute(
                        select(LessonRow.id)
                        .where(LessonRow.course_id == course_id)
                        .order_by(LessonRow.position)
                    )
                ).scalars()
            )

            rows: list[LessonProgressRow] = []
            if lesson_ids:
                rows = list(
                    (
                        await session.execute(
                            select(LessonProgressRow).where(
                                LessonProgressRow.user_id == actor_id,
                                LessonProgressRow.lesson_id.in_(lesson_ids),
                            )
                        )
                    ).scalars()
                )

        by_lesson = {row.lesson_id: row for row in rows}
        lessons = [
            LessonProgress(
                lesson_id=lesson_id,
                completed_at=by_lesson[lesson_id].completed_at,
                completion_percent=by_lesson[lesson_id].completion_percent,
                last_position=by_lesson[lesson_id].last_position,
            )
            for lesson_id in lesson_ids
            if lesson_id in by_lesson
        ]
        return CourseProgressSnapshot.from_lessons(
            course_id=course_id,
            total_lessons=len(lesson_ids),
            lessons=lessons,
        )

    async def find_lesson_course(self, lesson_id: str) -> str | None:
        async with self._session_factory() as session:
            stmt = select(LessonRow.course_id).where(LessonRow.id == lesson_id)
            return (await session.execute(stmt)).scalar_one_or_none()

    async def upsert_lesson(
        self, actor_id: str, lesson_id: str, update: LessonProgressUpdate
    ) -> LessonProgress:
        """Insert or patch one lesson row in a single statement.

        Only the fields the update supplies are written on conflict, so
        a position ping never clears an earlier completion.
        """
        changes = update.changes()
        changes["updated_at"] = datetime.datetime.now(datetime.UTC)

        stmt = insert(LessonProgressRow).values(
            user_id=actor_id, lesson_id=lesson_id, **changes
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[LessonProgressRow.user_id, LessonProgressRow.lesson_id],
            set_=changes,
        ).returning(
            LessonProgressRow.completed_at,
            LessonProgressRow.completion_percent,
            LessonProgressRow.last_position,
        )
        async with self._session_factory() as session:
            row = (await session.execute(stmt)).one()
            await session.commit()

        return LessonProgress(
            lesson_id=lesson_id,
            completed_at=row.completed_at,
            completion_percent=row.completion_percent,
            last_position=row.last_position,
        )
