from __future__ import annotations

import datetime
import re

from lms_core.models.certificate import (
    CertificateRecord,
    CertificateType,
    GeneratedCertificate,
    new_certificate_id,
)


def test_certificate_id_format() -> None:
    assert re.fullmatch(r"CERT-\d{13}-[0-9A-Z]{8}", new_certificate_id())


def test_certificate_ids_differ() -> None:
    assert len({new_certificate_id() for _ in range(50)}) == 50


def test_course_record_carries_generated_id() -> None:
    issued = datetime.datetime(2026, 3, 1, tzinfo=datetime.UTC)
    record = CertificateRecord.for_course(
        user_id="u1",
        course_id="c1",
        generated=GeneratedCertificate(certificate_id="CERT-1", issued_at=issued),
    )
    assert record.certificate_id == "CERT-1"
    assert record.type is CertificateType.COURSE
    assert record.learning_path_id is None
    assert record.issued_at == issued


def test_path_record_has_no_course() -> None:
    issued = datetime.datetime(2026, 3, 1, tzinfo=datetime.UTC)
    record = CertificateRecord.for_path(
        user_id="u1",
        learning_path_id="p1",
        generated=GeneratedCertificate(certificate_id="CERT-2", issued_at=issued),
    )
    assert record.type is CertificateType.PATH
    assert record.course_id is None
    assert record.learning_path_id == "p1"
    assert record.subject_id == "p1"
