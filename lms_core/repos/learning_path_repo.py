from __future__ import annotations

from typing import Protocol

from lms_core.models.learning_path import LearningPath


class LearningPathRepo(Protocol):
    async def get_learning_path(self, path_id: str) -> LearningPath | None: ...


class InMemoryLearningPathRepo:
    def __init__(self) -> None:
        self._paths: dict[str, LearningPath] = {}

    def add_learning_path(self, path: LearningPath) -> None:
        self._paths[path.id] = path

    async def get_learning_path(self, path_id: str) -> LearningPath | None:
        return self._paths.get(path_id)
