from __future__ import annotations

from typing import Protocol
from uuid import UUID

from portal.core.errors import IdentifierTaken
from portal.models.certificate import Certificate


class CertificateRepo(Protocol):
    """At most one valid certificate exists per (user, course)."""

    async def find_valid(self, user_id: str, course_id: UUID) -> Certificate | None: ...

    async def get_by_certificate_id(self, certificate_id: str) -> Certificate | None:
        """Exact match on ``certificate_id`` among valid certificates."""
        ...

    async def get_by_registry_number(
        self, registry_number: str
    ) -> Certificate | None: ...

    async def insert_if_absent(
        self, certificate: Certificate
    ) -> tuple[Certificate, bool]:
        """Store ``certificate`` unless a valid one exists for its pair.

        Returns the stored certificate and whether this call created it.
        Raises IdentifierTaken when another certificate, valid or not,
        already holds its certificate id or registry number.
        """
        ...

    async def list_for_user(self, user_id: str) -> list[Certificate]: ...
    async def count_valid(self) -> int: ...


class InMemoryCertificateRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Certificate] = {}

    async def find_valid(self, user_id: str, course_id: UUID) -> Certificate | None:
        for cert in self._by_id.values():
            if cert.is_valid and cert.user_id == user_id and cert.course_id == course_id:
                return cert
        return None

    async def get_by_certificate_id(self, certificate_id: str) -> Certificate | None:
        for cert in self._by_id.values():
            if cert.is_valid and cert.certificate_id == certificate_id:
                return cert
        return None

    async def get_by_registry_number(
        self, registry_number: str
    ) -> Certificate | None:
        for cert in self._by_id.values():
            if cert.is_valid and cert.registry_number == registry_number:
                return cert
        return None

    async def insert_if_absent(
        self, certificate: Certificate
    ) -> tuple[Certificate, bool]:
        existing = await self.find_valid(certificate.user_id, certificate.course_id)
        if existing is not None:
            return existing, False
        for stored in self._by_id.values():
            if (
                stored.certificate_id == certificate.certificate_id
                or stored.registry_number == certificate.registry_number
            ):
                raise IdentifierTaken(
                    f"identifier {certificate.registry_number} already issued"
                )
        self._by_id[certificate.id] = certificate
        return certificate, True

    async def list_for_user(self, user_id: str) -> list[Certificate]:
        certs = [c for c in self._by_id.values() if c.user_id == user_id]
        return sorted(certs, key=lambda c: c.issued_date, reverse=True)

    async def count_valid(self) -> int:
        return sum(1 for c in self._by_id.values() if c.is_valid)
