from __future__ import annotations

from typing import Protocol

from lms_core.models.certificate import CertificateRecord, CertificateType


class DuplicateCertificateError(Exception):
    """The store already holds a certificate for (user, subject, type)."""

    def __init__(
        self, user_id: str, subject_id: str | None, type: CertificateType
    ) -> None:
        super().__init__(
            f"certificate already exists for user={user_id} "
            f"{type}={subject_id}"
        )
        self.user_id = user_id
        self.subject_id = subject_id
        self.type = type


class CertificateRepo(Protocol):
    async def find_certificate(
        self, actor_id: str, subject_id: str, type: CertificateType
    ) -> CertificateRecord | None:
        """``subject_id`` is a course id for COURSE, a path id for PATH."""
        ...

    async def create_certificate(self, record: CertificateRecord) -> None: ...


class InMemoryCertificateRepo:
    def __init__(self) -> None:
        self._by_key: dict[
            tuple[str, str | None, CertificateType], CertificateRecord
        ] = {}

    async def find_certificate(
        self, actor_id: str, subject_id: str, type: CertificateType
    ) -> CertificateRecord | None:
        return self._by_key.get((actor_id, subject_id, type))

    async def create_certificate(self, record: CertificateRecord) -> None:
        # Mirrors the unique constraints on (user_id, course_id, type)
        # and (user_id, learning_path_id, type).
        key = (record.user_id, record.subject_id, record.type)
        if key in self._by_key:
            raise DuplicateCertificateError(
                record.user_id, record.subject_id, record.type
            )
        self._by_key[key] = record

    def all(self) -> list[CertificateRecord]:
        return list(self._by_key.values())
