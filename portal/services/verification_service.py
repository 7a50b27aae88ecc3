from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal

from portal.core.errors import ValidationError
from portal.core.metrics import VERIFICATION_LOOKUPS
from portal.models.certificate import CERTIFICATE_PREFIX, REGISTRY_PREFIX, Certificate
from portal.repos.certificate_repo import CertificateRepo

logger = logging.getLogger(__name__)

Status = Literal["valid", "expired", "not_found"]


@dataclass(frozen=True, slots=True)
class Verification:
    status: Status
    certificate: Certificate | None = None

    @property
    def is_valid(self) -> bool:
        return self.status == "valid"


def registry_candidate(identifier: str) -> str:
    if identifier.startswith(f"{REGISTRY_PREFIX}-"):
        return identifier
    return f"{REGISTRY_PREFIX}-" + identifier.removeprefix(f"{CERTIFICATE_PREFIX}-")


async def verify(
    repo: CertificateRepo, identifier: str, *, now: datetime | None = None
) -> Verification:
    """Look a certificate up by certificate id, then by registry number.

    Unknown identifiers come back as ``not_found``; this never raises for
    them.  A certificate past ``valid_until`` is reported ``expired``.
    """
    normalized = (identifier or "").strip().upper()
    if not normalized:
        raise ValidationError("certificate identifier is required")

    cert = await repo.get_by_certificate_id(normalized)
    if cert is None:
        cert = await repo.get_by_registry_number(registry_candidate(normalized))

    if cert is None:
        result = Verification(status="not_found")
    elif cert.is_expired(now or datetime.now(UTC)):
        result = Verification(status="expired", certificate=cert)
    else:
        result = Verification(status="valid", certificate=cert)

    VERIFICATION_LOOKUPS.labels(result=result.status).inc()
    logger.info("Certificate lookup identifier=%s result=%s", normalized, result.status)
    return result
