"""Course entitlement resolution.

Decides whether an actor may view a course right now.  First match wins:

  1. admin role                                   -> granted, source=admin
  2. a paid one-time purchase of this course      -> granted, source=purchase, owned
  3. no currently-effective subscription          -> denied
  4. subscription tier >= the course's required   -> granted, source=subscription
     otherwise                                    -> denied

``resolve`` is a pure function over records the caller already has.
``EntitlementService`` does the two store lookups and then calls it.

A denial carries no detail (no "your plan almost qualified"), so it can
be returned to the client as-is without leaking catalog or billing state.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from enum import StrEnum

from lms_core.core.metrics import ACCESS_DECISIONS
from lms_core.models.actor import Actor
from lms_core.models.course import Course, CourseTier
from lms_core.models.purchase import OwnershipRecord
from lms_core.models.subscription import (
    Subscription,
    SubscriptionTier,
    tier_satisfies,
)
from lms_core.repos.access_repo import AccessRepo

logger = logging.getLogger(__name__)


class AccessSource(StrEnum):
    PURCHASE = "purchase"
    SUBSCRIPTION = "subscription"
    ADMIN = "admin"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class AccessDecision:
    granted: bool
    source: AccessSource
    owned: bool = False

    @staticmethod
    def denied() -> AccessDecision:
        return AccessDecision(granted=False, source=AccessSource.NONE, owned=False)

    def to_dict(self) -> dict[str, object]:
        return {
            "granted": self.granted,
            "source": self.source.value,
            "owned": self.owned,
        }


_REQUIRED_TIER: dict[CourseTier, SubscriptionTier] = {
    CourseTier.STANDARD: SubscriptionTier.STARTER,
    CourseTier.PREMIUM: SubscriptionTier.PROFESSIONAL,
}


def required_tier_for(course_tier: CourseTier) -> SubscriptionTier:
    return _REQUIRED_TIER[course_tier]


def resolve(
    actor: Actor,
    course: Course,
    *,
    ownership: OwnershipRecord | None = None,
    subscription: Subscription | None = None,
    now: datetime.datetime | None = None,
) -> AccessDecision:
    if actor.is_admin():
        return AccessDecision(granted=True, source=AccessSource.ADMIN)

    # Refunded/pending purchases never count, whatever the caller passed.
    if (
        ownership is not None
        and ownership.is_paid
        and ownership.user_id == actor.id
        and ownership.course_id == course.id
    ):
        return AccessDecision(granted=True, source=AccessSource.PURCHASE, owned=True)

    if subscription is None or not subscription.is_effective(now):
        return AccessDecision.denied()

    if tier_satisfies(subscription.plan_tier, required_tier_for(course.tier)):
        return AccessDecision(granted=True, source=AccessSource.SUBSCRIPTION)

    return AccessDecision.denied()


class EntitlementService:
    """Looks up an actor's purchase and subscription, then resolves access."""

    def __init__(self, access_repo: AccessRepo) -> None:
        self._repo = access_repo

    async def get_course_access(
        self,
        actor: Actor,
        course: Course,
        *,
        now: datetime.datetime | None = None,
    ) -> AccessDecision:
        if actor.is_admin():
            decision = resolve(actor, course)
        else:
            ownership = await self._repo.find_paid_ownership(actor.id, course.id)
            subscription = None
            if ownership is None:
                subscription = await self._repo.find_effective_subscription(
                    actor.id, now
                )
            decision = resolve(
                actor,
                course,
                ownership=ownership,
                subscription=subscription,
                now=now,
            )

        ACCESS_DECISIONS.labels(source=decision.source.value).inc()
        logger.debug(
            "Access %s via %s",
            "granted" if decision.granted else "denied",
            decision.source.value,
            extra={"user_id": actor.id, "course_id": course.id},
        )
        return decision

    async def has_course_access(
        self,
        actor: Actor,
        course: Course,
        *,
        now: datetime.datetime | None = None,
    ) -> bool:
        decision = await self.get_course_access(actor, course, now=now)
        return decision.granted
