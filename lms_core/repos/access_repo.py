from __future__ import annotations

import datetime
from typing import Protocol

from lms_core.models.course import Course
from lms_core.models.purchase import OwnershipRecord
from lms_core.models.subscription import Subscription


class AccessRepo(Protocol):
    async def get_course(self, course_id: str) -> Course | None: ...
    async def find_paid_ownership(
        self, actor_id: str, course_id: str
    ) -> OwnershipRecord | None: ...
    async def find_effective_subscription(
        self, actor_id: str, now: datetime.datetime | None = None
    ) -> Subscription | None: ...


class InMemoryAccessRepo:
    def __init__(self) -> None:
        self._courses: dict[str, Course] = {}
        self._purchases: list[OwnershipRecord] = []
        self._subscriptions: list[Subscription] = []

    def add_course(self, course: Course) -> None:
        self._courses[course.id] = course

    def add_purchase(self, purchase: OwnershipRecord) -> None:
        self._purchases.append(purchase)

    def add_subscription(self, subscription: Subscription) -> None:
        self._subscriptions.append(subscription)

    async def get_course(self, course_id: str) -> Course | None:
        return self._courses.get(course_id)

    async def find_paid_ownership(
        self, actor_id: str, course_id: str
    ) -> OwnershipRecord | None:
        for p in self._purchases:
            if p.user_id == actor_id and p.course_id == course_id and p.is_paid:
                return p
        return None

    async def find_effective_subscription(
        self, actor_id: str, now: datetime.datetime | None = None
    ) -> Subscription | None:
        now = now or datetime.datetime.now(datetime.UTC)
        # At most one should match; upstream enforces that.
        for s in self._subscriptions:
            if s.user_id == actor_id and s.is_effective(now):
                return s
        return None
