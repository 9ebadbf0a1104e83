"""PostgreSQL implementation of AccessRepo."""

from __future__ import annotations

import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lms_core.db.tables import (
    CourseRow,
    PurchaseRow,
    SubscriptionPlanRow,
    SubscriptionRow,
)
from lms_core.models.course import Course, normalize_course_tier
from lms_core.models.purchase import OwnershipRecord, PurchaseStatus
from lms_core.models.subscription import (
    ACTIVE_EQUIVALENT_STATUSES,
    Subscription,
    SubscriptionStatus,
    normalize_subscription_tier,
)


class PgAccessRepo:
    """Satisfies the AccessRepo Protocol using PostgreSQL via SQLAlchemy.

    Takes a session factory rather than a session: the services that use
    it live for the whole process, so each lookup is its own unit of work.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_course(self, course_id: str) -> Course | None:
        async with self._session_factory() as session:
            stmt = select(CourseRow).where(CourseRow.id == course_id)
            row = (await session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return Course(
            id=row.id,
            tier=normalize_course_tier(row.tier),
            title=row.title,
            is_published=row.is_published,
        )

    async def find_paid_ownership(
        self, actor_id: str, course_id: str
    ) -> OwnershipRecord | None:
        async with self._session_factory() as session:
            stmt = (
                select(PurchaseRow)
                .where(
                    PurchaseRow.user_id == actor_id,
                    PurchaseRow.course_id == course_id,
                    PurchaseRow.status == PurchaseStatus.PAID.value,
                )
                .limit(1)
            )
            row = (await session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return OwnershipRecord(
            id=row.id,
            user_id=row.user_id,
            course_id=row.course_id,
            status=PurchaseStatus(row.status),
            purchased_at=row.purchased_at,
        )

    async def find_effective_subscription(
        self, actor_id: str, now: datetime.datetime | None = None
    ) -> Subscription | None:
        now = now or datetime.datetime.now(datetime.UTC)
        async with self._session_factory() as session:
            stmt = (
                select(SubscriptionRow, SubscriptionPlanRow.tier)
                .join(
                    SubscriptionPlanRow,
                    SubscriptionPlanRow.id == SubscriptionRow.plan_id,
                )
                .where(
                    SubscriptionRow.user_id == actor_id,
                    SubscriptionRow.status.in_(
                        [s.value for s in ACTIVE_EQUIVALENT_STATUSES]
                    ),
                    SubscriptionRow.current_period_end > now,
                )
                .order_by(SubscriptionRow.current_period_end.desc())
                .limit(1)
            )
            result = (await session.execute(stmt)).first()
        if result is None:
            return None
        row, plan_tier = result
        return Subscription(
            id=row.id,
            user_id=row.user_id,
            plan_tier=normalize_subscription_tier(plan_tier),
            status=SubscriptionStatus(row.status),
            current_period_end=row.current_period_end,
        )
