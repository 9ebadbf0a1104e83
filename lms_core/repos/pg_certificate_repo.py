"""PostgreSQL implementation of CertificateRepo."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lms_core.db.tables import CertificateRow
from lms_core.models.certificate import CertificateRecord, CertificateType
from lms_core.repos.certificate_repo import DuplicateCertificateError

_UNIQUE_CONSTRAINTS = (
    "uq_certificates_user_course_type",
    "uq_certificates_user_path_type",
)


class PgCertificateRepo:
    """Satisfies the CertificateRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_certificate(
        self, actor_id: str, subject_id: str, type: CertificateType
    ) -> CertificateRecord | None:
        subject_column = (
            CertificateRow.learning_path_id
            if type == CertificateType.PATH
            else CertificateRow.course_id
        )
        async with self._session_factory() as session:
            stmt = select(CertificateRow).where(
                CertificateRow.user_id == actor_id,
                subject_column == subject_id,
                CertificateRow.type == type.value,
            )
            row = (await session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_certificate(row)

    async def create_certificate(self, record: CertificateRecord) -> None:
        async with self._session_factory() as session:
            session.add(
                CertificateRow(
                    certificate_id=record.certificate_id,
                    user_id=record.user_id,
                    course_id=record.course_id,
                    learning_path_id=record.learning_path_id,
                    type=record.type.value,
                    issued_at=record.issued_at,
                )
            )
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                # Only the (user, subject, type) constraints mean "already
                # issued"; any other violation is a real fault.
                if not any(name in str(e.orig) for name in _UNIQUE_CONSTRAINTS):
                    raise
                raise DuplicateCertificateError(
                    record.user_id, record.subject_id, record.type
                ) from e


def _row_to_certificate(row: CertificateRow) -> CertificateRecord:
    return CertificateRecord(
        certificate_id=row.certificate_id,
        user_id=row.user_id,
        course_id=row.course_id,
        type=CertificateType(row.type),
        issued_at=row.issued_at,
        learning_path_id=row.learning_path_id,
    )
