from __future__ import annotations

import datetime
from dataclasses import dataclass
from enum import StrEnum
from uuid import uuid4


class PurchaseStatus(StrEnum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


@dataclass(frozen=True, slots=True)
class OwnershipRecord:
    """A one-time purchase of a course.

    Only ``paid`` grants access, and it never expires with time; the
    payment collaborator moves it to ``refunded`` when access ends.
    """

    id: str
    user_id: str
    course_id: str
    status: PurchaseStatus
    purchased_at: datetime.datetime

    @staticmethod
    def new(
        *,
        user_id: str,
        course_id: str,
        status: PurchaseStatus = PurchaseStatus.PAID,
        purchased_at: datetime.datetime | None = None,
    ) -> OwnershipRecord:
        return OwnershipRecord(
            id=str(uuid4()),
            user_id=user_id,
            course_id=course_id,
            status=status,
            purchased_at=purchased_at or datetime.datetime.now(datetime.UTC),
        )

    @property
    def is_paid(self) -> bool:
        return self.status == PurchaseStatus.PAID
