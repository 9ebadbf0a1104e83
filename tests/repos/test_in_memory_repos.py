from __future__ import annotations

import asyncio
import datetime

import pytest

from lms_core.models.certificate import (
    CertificateRecord,
    CertificateType,
    GeneratedCertificate,
)
from lms_core.models.course import Course
from lms_core.models.learning_path import LearningPath
from lms_core.models.progress import LessonProgress, LessonProgressUpdate
from lms_core.models.purchase import OwnershipRecord, PurchaseStatus
from lms_core.models.subscription import Subscription, SubscriptionStatus
from lms_core.repos.access_repo import InMemoryAccessRepo
from lms_core.repos.certificate_repo import (
    DuplicateCertificateError,
    InMemoryCertificateRepo,
)
from lms_core.repos.learning_path_repo import InMemoryLearningPathRepo
from lms_core.repos.progress_repo import InMemoryProgressRepo

NOW = datetime.datetime(2026, 3, 1, tzinfo=datetime.UTC)


def _generated() -> GeneratedCertificate:
    return GeneratedCertificate(certificate_id="CERT-9", issued_at=NOW)


def _record(certificate_id: str = "CERT-1", course_id: str = "c1") -> CertificateRecord:
    return CertificateRecord(
        certificate_id=certificate_id,
        user_id="u1",
        course_id=course_id,
        type=CertificateType.COURSE,
        issued_at=NOW,
    )


# ---- certificates ----


def test_certificate_round_trip(certificate_repo: InMemoryCertificateRepo) -> None:
    asyncio.run(certificate_repo.create_certificate(_record()))
    found = asyncio.run(
        certificate_repo.find_certificate("u1", "c1", CertificateType.COURSE)
    )
    assert found == _record()


def test_second_certificate_for_same_course_is_rejected(
    certificate_repo: InMemoryCertificateRepo,
) -> None:
    asyncio.run(certificate_repo.create_certificate(_record("CERT-1")))
    with pytest.raises(DuplicateCertificateError) as exc_info:
        asyncio.run(certificate_repo.create_certificate(_record("CERT-2")))
    assert exc_info.value.subject_id == "c1"
    assert [r.certificate_id for r in certificate_repo.all()] == ["CERT-1"]


def test_path_certificate_does_not_collide_with_course_certificate(
    certificate_repo: InMemoryCertificateRepo,
) -> None:
    asyncio.run(certificate_repo.create_certificate(_record()))
    found = asyncio.run(
        certificate_repo.find_certificate("u1", "c1", CertificateType.PATH)
    )
    assert found is None


def test_path_certificate_is_found_by_learning_path(
    certificate_repo: InMemoryCertificateRepo,
) -> None:
    record = CertificateRecord(
        certificate_id="CERT-P",
        user_id="u1",
        course_id=None,
        type=CertificateType.PATH,
        issued_at=NOW,
        learning_path_id="p1",
    )
    asyncio.run(certificate_repo.create_certificate(record))

    found = asyncio.run(
        certificate_repo.find_certificate("u1", "p1", CertificateType.PATH)
    )
    assert found == record
    with pytest.raises(DuplicateCertificateError):
        asyncio.run(
            certificate_repo.create_certificate(
                CertificateRecord.for_path(
                    user_id="u1", learning_path_id="p1", generated=_generated()
                )
            )
        )


# ---- progress ----


def test_progress_for_unknown_course_is_none(
    progress_repo: InMemoryProgressRepo,
) -> None:
    assert asyncio.run(progress_repo.read_progress("u1", "nope")) is None


def test_progress_snapshot_counts_recorded_lessons(
    progress_repo: InMemoryProgressRepo,
) -> None:
    progress_repo.set_course_lessons("c1", ["a", "b", "c", "d"])
    progress_repo.record_lesson("u1", LessonProgress(lesson_id="a", completed_at=NOW))
    progress_repo.record_lesson("u2", LessonProgress(lesson_id="b", completed_at=NOW))

    snapshot = asyncio.run(progress_repo.read_progress("u1", "c1"))

    assert snapshot is not None
    assert snapshot.total_lessons == 4
    assert snapshot.completed_lessons == 1
    assert snapshot.overall_progress == 25


def test_upsert_lesson_patches_only_supplied_fields(
    progress_repo: InMemoryProgressRepo,
) -> None:
    progress_repo.set_course_lessons("c1", ["a", "b"])

    first = asyncio.run(
        progress_repo.upsert_lesson(
            "u1", "a", LessonProgressUpdate(completed_at=NOW, completion_percent=100)
        )
    )
    second = asyncio.run(
        progress_repo.upsert_lesson("u1", "a", LessonProgressUpdate(last_position=30))
    )

    assert first.is_completed
    assert second.completed_at == NOW
    assert second.last_position == 30
    snapshot = asyncio.run(progress_repo.read_progress("u1", "c1"))
    assert snapshot is not None
    assert snapshot.completed_lessons == 1


def test_lesson_maps_to_its_course(progress_repo: InMemoryProgressRepo) -> None:
    progress_repo.set_course_lessons("c1", ["a", "b"])
    assert asyncio.run(progress_repo.find_lesson_course("b")) == "c1"
    assert asyncio.run(progress_repo.find_lesson_course("zz")) is None


# ---- learning paths ----


def test_learning_path_lookup() -> None:
    repo = InMemoryLearningPathRepo()
    repo.add_learning_path(LearningPath.new(id="p1", course_ids=["c1", "c2"]))

    path = asyncio.run(repo.get_learning_path("p1"))

    assert path is not None
    assert path.course_ids == ("c1", "c2")
    assert asyncio.run(repo.get_learning_path("p2")) is None


# ---- access ----


def test_only_paid_ownership_is_found(access_repo: InMemoryAccessRepo) -> None:
    access_repo.add_purchase(
        OwnershipRecord.new(
            user_id="u1", course_id="c1", status=PurchaseStatus.REFUNDED
        )
    )
    assert asyncio.run(access_repo.find_paid_ownership("u1", "c1")) is None

    access_repo.add_purchase(OwnershipRecord.new(user_id="u1", course_id="c1"))
    assert asyncio.run(access_repo.find_paid_ownership("u1", "c1")) is not None


def test_only_effective_subscription_is_found(access_repo: InMemoryAccessRepo) -> None:
    access_repo.add_subscription(
        Subscription.new(
            user_id="u1",
            plan_tier="founder",
            status=SubscriptionStatus.CANCELLED,
            current_period_end=NOW + datetime.timedelta(days=5),
        )
    )
    access_repo.add_subscription(
        Subscription.new(
            user_id="u1",
            plan_tier="starter",
            current_period_end=NOW + datetime.timedelta(days=5),
        )
    )

    found = asyncio.run(access_repo.find_effective_subscription("u1", NOW))

    assert found is not None
    assert found.status is SubscriptionStatus.ACTIVE


def test_course_lookup(access_repo: InMemoryAccessRepo) -> None:
    access_repo.add_course(Course.new(id="c1", tier="premium"))
    course = asyncio.run(access_repo.get_course("c1"))
    assert course is not None
    assert course.tier == "PREMIUM"
    assert asyncio.run(access_repo.get_course("c2")) is None
