from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

CERTIFICATE_PREFIX = "OOG"
REGISTRY_PREFIX = "REG"
VALIDITY = timedelta(days=365)

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 expects a non-negative integer")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def _nonce(length: int = 4) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def certificate_identifiers(
    user_id: str, course_id: UUID, issued_at: datetime, nonce: str | None = None
) -> tuple[str, str]:
    """Return ``(certificate_id, registry_number)`` for an issuance instant.

    One format for every issuance path:
    ``OOG-{USER4}-{COURSE4}-{ms36}{NONCE}`` and ``REG-{ms36}{NONCE}``, where
    NONCE is four random base36 characters.  Both ids carry a unique key in
    the store; a collision surfaces as IdentifierTaken.
    """
    suffix = base36(int(issued_at.timestamp() * 1000)) + (nonce or _nonce())
    user_part = user_id[:4].upper()
    course_part = str(course_id)[:4].upper()
    return (
        f"{CERTIFICATE_PREFIX}-{user_part}-{course_part}-{suffix}",
        f"{REGISTRY_PREFIX}-{suffix}",
    )


@dataclass(frozen=True, slots=True)
class Certificate:
    id: UUID
    certificate_id: str
    registry_number: str
    user_id: str
    course_id: UUID
    student_name: str
    course_name: str
    completion_date: datetime
    issued_date: datetime
    valid_until: datetime
    is_valid: bool = True
    metadata: dict = field(default_factory=dict)

    @staticmethod
    def new(
        *,
        user_id: str,
        course_id: UUID,
        student_name: str,
        course_name: str,
        metadata: dict | None = None,
        issued_at: datetime | None = None,
        nonce: str | None = None,
    ) -> Certificate:
        now = issued_at or datetime.now(UTC)
        certificate_id, registry_number = certificate_identifiers(
            user_id, course_id, now, nonce
        )
        return Certificate(
            id=uuid4(),
            certificate_id=certificate_id,
            registry_number=registry_number,
            user_id=user_id,
            course_id=course_id,
            student_name=student_name,
            course_name=course_name,
            completion_date=now,
            issued_date=now,
            valid_until=now + VALIDITY,
            metadata=dict(metadata or {}),
        )

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.valid_until < (now or datetime.now(UTC))
