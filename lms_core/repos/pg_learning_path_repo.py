"""PostgreSQL implementation of LearningPathRepo."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lms_core.db.tables import LearningPathCourseRow, LearningPathRow
from lms_core.models.learning_path import LearningPath


class PgLearningPathRepo:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_learning_path(self, path_id: str) -> LearningPath | None:
        async with self._session_factory() as session:
            row = (
                await session.execute(
                    select(LearningPathRow).where(LearningPathRow.id == path_id)
                )
            ).scalar_one_or_none()
            if row is None:
                return None

            course_ids = list(
                (
                    await session.execute(
                        select(LearningPathCourseRow.course_id)
                        .where(LearningPathCourseRow.learning_path_id == path_id)
                        .order_by(LearningPathCourseRow.position)
                    )
                ).scalars()
            )
        return LearningPath(id=row.id, course_ids=tuple(course_ids), title=row.title)
