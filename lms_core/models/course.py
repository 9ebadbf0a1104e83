from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class CourseTier(StrEnum):
    STANDARD = "STANDARD"
    PREMIUM = "PREMIUM"


def normalize_course_tier(raw: str | CourseTier) -> CourseTier:
    if isinstance(raw, CourseTier):
        return raw
    try:
        return CourseTier(raw.strip().upper())
    except ValueError:
        raise ValueError(f"unknown course tier {raw!r}") from None


@dataclass(frozen=True, slots=True)
class Course:
    id: str
    tier: CourseTier = CourseTier.STANDARD
    title: str = ""
    is_published: bool = True

    @staticmethod
    def new(
        *,
        id: str,
        tier: str | CourseTier = CourseTier.STANDARD,
        title: str = "",
        is_published: bool = True,
    ) -> Course:
        return Course(
            id=id,
            tier=normalize_course_tier(tier),
            title=title,
            is_published=is_published,
        )
