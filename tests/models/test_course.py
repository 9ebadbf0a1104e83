from __future__ import annotations

import pytest

from lms_core.models.course import Course, CourseTier, normalize_course_tier
from lms_core.models.purchase import OwnershipRecord, PurchaseStatus


def test_course_tier_is_case_insensitive() -> None:
    assert normalize_course_tier("premium") is CourseTier.PREMIUM
    assert Course.new(id="c1", tier=" Standard ").tier is CourseTier.STANDARD


def test_unknown_course_tier_is_rejected() -> None:
    with pytest.raises(ValueError, match="unknown course tier"):
        normalize_course_tier("gold")


def test_only_paid_purchase_counts_as_paid() -> None:
    paid = OwnershipRecord.new(user_id="u1", course_id="c1")
    refunded = OwnershipRecord.new(
        user_id="u1", course_id="c1", status=PurchaseStatus.REFUNDED
    )
    assert paid.is_paid is True
    assert refunded.is_paid is False


def test_paid_check_accepts_raw_status_string() -> None:
    built = OwnershipRecord.new(user_id="u1", course_id="c1")
    raw = OwnershipRecord(
        id=built.id,
        user_id="u1",
        course_id="c1",
        status="paid",  # type: ignore[arg-type]
        purchased_at=built.purchased_at,
    )
    assert raw.is_paid is True
