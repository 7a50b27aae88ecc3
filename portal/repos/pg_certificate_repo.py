"""PostgreSQL implementation of CertificateRepo.

Uniqueness of the valid certificate per (user, course) is enforced by the
partial index ``uq_certificates_valid_user_course``; ``insert_if_absent``
targets it with ``ON CONFLICT DO NOTHING``.  A clash on the certificate id
or registry number keys is reported as IdentifierTaken instead.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.errors import IdentifierTaken, PersistenceError
from portal.db.tables import CertificateRow
from portal.models.certificate import Certificate
from portal.repos.pg_support import store_errors

_IDENTIFIER_KEYS = (
    "certificates_certificate_id_key",
    "uq_certificates_registry_number",
)


class PgCertificateRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_valid(self, user_id: str, course_id: UUID) -> Certificate | None:
        return await self._one(
            "load certificate",
            CertificateRow.user_id == user_id,
            CertificateRow.course_id == course_id,
        )

    async def get_by_certificate_id(self, certificate_id: str) -> Certificate | None:
        return await self._one(
            "look up certificate", CertificateRow.certificate_id == certificate_id
        )

    async def get_by_registry_number(
        self, registry_number: str
    ) -> Certificate | None:
        return await self._one(
            "look up certificate", CertificateRow.registry_number == registry_number
        )

    async def insert_if_absent(
        self, certificate: Certificate
    ) -> tuple[Certificate, bool]:
        stmt = (
            insert(CertificateRow)
            .values(
                id=certificate.id,
                certificate_id=certificate.certificate_id,
                registry_number=certificate.registry_number,
                user_id=certificate.user_id,
                course_id=certificate.course_id,
                student_name=certificate.student_name,
                course_name=certificate.course_name,
                completion_date=certificate.completion_date,
                issued_date=certificate.issued_date,
                valid_until=certificate.valid_until,
                is_valid=certificate.is_valid,
                meta=dict(certificate.metadata),
            )
            .on_conflict_do_nothing(
                index_elements=[CertificateRow.user_id, CertificateRow.course_id],
                index_where=CertificateRow.is_valid,
            )
            .returning(CertificateRow.id)
        )
        async with store_errors(self._session, "issue certificate"):
            try:
                inserted = (await self._session.execute(stmt)).scalar_one_or_none()
            except IntegrityError as e:
                if not any(key in str(e) for key in _IDENTIFIER_KEYS):
                    raise
                await self._session.rollback()
                raise IdentifierTaken(
                    f"identifier {certificate.registry_number} already issued"
                ) from e
            await self._session.commit()
        if inserted is not None:
            return certificate, True

        existing = await self.find_valid(certificate.user_id, certificate.course_id)
        if existing is None:
            # Conflicting row was revoked between insert and read
            raise PersistenceError("certificate changed during issuance, try again")
        return existing, False

    async def list_for_user(self, user_id: str) -> list[Certificate]:
        stmt = (
            select(CertificateRow)
            .where(CertificateRow.user_id == user_id)
            .order_by(CertificateRow.issued_date.desc())
        )
        async with store_errors(self._session, "list certificates"):
            rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_certificate(r) for r in rows]

    async def count_valid(self) -> int:
        stmt = select(func.count()).select_from(CertificateRow).where(
            CertificateRow.is_valid.is_(True)
        )
        async with store_errors(self._session, "count certificates"):
            return int((await self._session.execute(stmt)).scalar_one())

    async def _one(self, action: str, *criteria) -> Certificate | None:
        stmt = (
            select(CertificateRow)
            .where(CertificateRow.is_valid.is_(True), *criteria)
            .limit(1)
        )
        async with store_errors(self._session, action):
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_certificate(row) if row is not None else None


def _row_to_certificate(row: CertificateRow) -> Certificate:
    return Certificate(
        id=row.id,
        certificate_id=row.certificate_id,
        registry_number=row.registry_number,
        user_id=row.user_id,
        course_id=row.course_id,
        student_name=row.student_name,
        course_name=row.course_name,
        completion_date=row.completion_date,
        issued_date=row.issued_date,
        valid_until=row.valid_until,
        is_valid=row.is_valid,
        metadata=dict(row.meta or {}),
    )
