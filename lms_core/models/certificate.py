from __future__ import annotations

import datetime
import secrets
import string
import time
from dataclasses import dataclass
from enum import StrEnum

_BASE36 = string.digits + string.ascii_uppercase


class CertificateType(StrEnum):
    COURSE = "course"
    PATH = "path"


def new_certificate_id() -> str:
    """Human-shareable id, e.g. ``CERT-1739600000000-K3F9A2QZ``.

    Uniqueness is ultimately enforced by the store; the random suffix
    only has to make collisions unlikely.
    """
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(8))
    return f"CERT-{millis}-{suffix}"


@dataclass(frozen=True, slots=True)
class GeneratedCertificate:
    """What the external generator hands back."""

    certificate_id: str
    issued_at: datetime.datetime


@dataclass(frozen=True, slots=True)
class CertificateRecord:
    """Issued certificate.

    At most one per (user_id, subject, type), where the subject is the
    course for ``course`` certificates and the learning path for ``path``
    ones; the store's unique constraints are the authority on that.
    """

    certificate_id: str
    user_id: str
    course_id: str | None
    type: CertificateType
    issued_at: datetime.datetime
    learning_path_id: str | None = None

    @staticmethod
    def for_course(
        *, user_id: str, course_id: str, generated: GeneratedCertificate
    ) -> CertificateRecord:
        return CertificateRecord(
            certificate_id=generated.certificate_id,
            user_id=user_id,
            course_id=course_id,
            type=CertificateType.COURSE,
            issued_at=generated.issued_at,
        )

    @staticmethod
    def for_path(
        *, user_id: str, learning_path_id: str, generated: GeneratedCertificate
    ) -> CertificateRecord:
        return CertificateRecord(
            certificate_id=generated.certificate_id,
            user_id=user_id,
            course_id=None,
            type=CertificateType.PATH,
            issued_at=generated.issued_at,
            learning_path_id=learning_path_id,
        )

    @property
    def subject_id(self) -> str | None:
        """The course or learning path this certificate was issued for."""
        if self.type == CertificateType.PATH:
            return self.learning_path_id
        return self.course_id
