"""Subscription records, plan tiers and the status lifecycle.

Plan tiers were renamed at one point (pro -> professional, elite ->
founder).  Old rows and webhook payloads still carry the legacy names,
so every tier string goes through ``normalize_subscription_tier`` at the
boundary and the rest of the code only ever compares enum ranks.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from enum import StrEnum
from uuid import uuid4


class SubscriptionTier(StrEnum):
    STARTER = "starter"
    PROFESSIONAL = "professional"
    FOUNDER = "founder"


_LEGACY_TIERS: dict[str, SubscriptionTier] = {
    "pro": SubscriptionTier.PROFESSIONAL,
    "elite": SubscriptionTier.FOUNDER,
}

_TIER_RANK: dict[SubscriptionTier, int] = {
    SubscriptionTier.STARTER: 1,
    SubscriptionTier.PROFESSIONAL: 2,
    SubscriptionTier.FOUNDER: 3,
}


def normalize_subscription_tier(raw: str | SubscriptionTier) -> SubscriptionTier:
    if isinstance(raw, SubscriptionTier):
        return raw
    value = raw.strip().lower()
    if value in _LEGACY_TIERS:
        return _LEGACY_TIERS[value]
    try:
        return SubscriptionTier(value)
    except ValueError:
        raise ValueError(f"unknown subscription tier {raw!r}") from None


def tier_rank(tier: SubscriptionTier) -> int:
    return _TIER_RANK[tier]


def tier_satisfies(have: SubscriptionTier, need: SubscriptionTier) -> bool:
    return tier_rank(have) >= tier_rank(need)


class SubscriptionStatus(StrEnum):
    ACTIVE = "active"
    PENDING = "pending"
    PAST_DUE = "past_due"
    PAUSED = "paused"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


# past_due keeps access during the payment provider's retry window.
ACTIVE_EQUIVALENT_STATUSES: frozenset[SubscriptionStatus] = frozenset(
    {SubscriptionStatus.ACTIVE, SubscriptionStatus.PAST_DUE}
)


@dataclass(frozen=True, slots=True)
class Subscription:
    id: str
    user_id: str
    plan_tier: SubscriptionTier
    status: SubscriptionStatus
    current_period_end: datetime.datetime

    @staticmethod
    def new(
        *,
        user_id: str,
        plan_tier: str | SubscriptionTier,
        status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
        current_period_end: datetime.datetime,
    ) -> Subscription:
        return Subscription(
            id=str(uuid4()),
            user_id=user_id,
            plan_tier=normalize_subscription_tier(plan_tier),
            status=status,
            current_period_end=current_period_end,
        )

    def is_effective(self, now: datetime.datetime | None = None) -> bool:
        """Active-equivalent status AND the paid period has not ended yet."""
        if self.status not in ACTIVE_EQUIVALENT_STATUSES:
            return False
        now = now or datetime.datetime.now(datetime.UTC)
        return self.current_period_end > now


# ---------------------------------------------------------------------------
# Status lifecycle
# ---------------------------------------------------------------------------
# The payment webhooks and admin tools move subscriptions between states;
# these rules are what they check before writing.  The access resolver
# only reads the current state.

_TRANSITIONS: dict[SubscriptionStatus, tuple[SubscriptionStatus, ...]] = {
    SubscriptionStatus.PENDING: (
        SubscriptionStatus.ACTIVE,
        SubscriptionStatus.EXPIRED,
        SubscriptionStatus.CANCELLED,
    ),
    SubscriptionStatus.ACTIVE: (
        SubscriptionStatus.PAST_DUE,
        SubscriptionStatus.PAUSED,
        SubscriptionStatus.CANCELLED,
        SubscriptionStatus.EXPIRED,
    ),
    SubscriptionStatus.PAST_DUE: (
        SubscriptionStatus.ACTIVE,
        SubscriptionStatus.CANCELLED,
        SubscriptionStatus.EXPIRED,
    ),
    SubscriptionStatus.PAUSED: (
        SubscriptionStatus.ACTIVE,
        SubscriptionStatus.CANCELLED,
        SubscriptionStatus.EXPIRED,
    ),
    # Reactivation is allowed while the paid period is still running.
    SubscriptionStatus.CANCELLED: (
        SubscriptionStatus.ACTIVE,
        SubscriptionStatus.EXPIRED,
    ),
    SubscriptionStatus.EXPIRED: (SubscriptionStatus.ACTIVE,),
}


class InvalidStateTransitionError(ValueError):
    def __init__(self, current: SubscriptionStatus, target: SubscriptionStatus) -> None:
        super().__init__(f"INVALID_STATE_TRANSITION: {current} -> {target}")
        self.current = current
        self.target = target


def allowed_transitions(current: SubscriptionStatus) -> tuple[SubscriptionStatus, ...]:
    return _TRANSITIONS[current]


def can_transition(current: SubscriptionStatus, target: SubscriptionStatus) -> bool:
    if current is target:
        return True
    return target in _TRANSITIONS[current]


def assert_transition(current: SubscriptionStatus, target: SubscriptionStatus) -> None:
    if not can_transition(current, target):
        raise InvalidStateTransitionError(current, target)
