from __future__ import annotations

import datetime

import pytest

from lms_core.models.subscription import (
    InvalidStateTransitionError,
    Subscription,
    SubscriptionStatus,
    SubscriptionTier,
    allowed_transitions,
    assert_transition,
    can_transition,
    normalize_subscription_tier,
    tier_satisfies,
)

NOW = datetime.datetime(2026, 3, 1, tzinfo=datetime.UTC)


def _sub(status: SubscriptionStatus, *, days_left: int = 10) -> Subscription:
    return Subscription.new(
        user_id="u1",
        plan_tier="starter",
        status=status,
        current_period_end=NOW + datetime.timedelta(days=days_left),
    )


# ---- tiers ----


def test_legacy_tier_names_map_to_current_tiers() -> None:
    assert normalize_subscription_tier("pro") is SubscriptionTier.PROFESSIONAL
    assert normalize_subscription_tier("Elite") is SubscriptionTier.FOUNDER


def test_unknown_tier_is_rejected() -> None:
    with pytest.raises(ValueError, match="unknown subscription tier"):
        normalize_subscription_tier("platinum")


def test_tier_ordering() -> None:
    assert tier_satisfies(SubscriptionTier.FOUNDER, SubscriptionTier.PROFESSIONAL)
    assert tier_satisfies(SubscriptionTier.STARTER, SubscriptionTier.STARTER)
    assert not tier_satisfies(SubscriptionTier.STARTER, SubscriptionTier.PROFESSIONAL)


# ---- effectiveness ----


@pytest.mark.parametrize(
    "status", [SubscriptionStatus.ACTIVE, SubscriptionStatus.PAST_DUE]
)
def test_active_equivalent_status_with_open_period_is_effective(
    status: SubscriptionStatus,
) -> None:
    assert _sub(status).is_effective(NOW) is True


@pytest.mark.parametrize(
    "status",
    [
        SubscriptionStatus.PENDING,
        SubscriptionStatus.PAUSED,
        SubscriptionStatus.CANCELLED,
        SubscriptionStatus.EXPIRED,
    ],
)
def test_other_statuses_are_not_effective(status: SubscriptionStatus) -> None:
    assert _sub(status).is_effective(NOW) is False


def test_period_ending_exactly_now_is_not_effective() -> None:
    sub = _sub(SubscriptionStatus.ACTIVE, days_left=0)
    assert sub.is_effective(NOW) is False


# ---- status lifecycle ----


def test_pending_can_activate() -> None:
    assert can_transition(SubscriptionStatus.PENDING, SubscriptionStatus.ACTIVE)


def test_expired_can_only_reactivate() -> None:
    assert allowed_transitions(SubscriptionStatus.EXPIRED) == (
        SubscriptionStatus.ACTIVE,
    )


def test_same_status_is_always_allowed() -> None:
    for status in SubscriptionStatus:
        assert can_transition(status, status)


def test_invalid_transition_raises_with_both_states() -> None:
    with pytest.raises(InvalidStateTransitionError) as exc_info:
        assert_transition(SubscriptionStatus.EXPIRED, SubscriptionStatus.PAUSED)
    assert str(exc_info.value) == "INVALID_STATE_TRANSITION: expired -> paused"
    assert exc_info.value.current is SubscriptionStatus.EXPIRED
    assert exc_info.value.target is SubscriptionStatus.PAUSED
