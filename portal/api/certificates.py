from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel

from portal.api.dependencies import CurrentPrincipal, Repos
from portal.api.schemas import CertificateOut
from portal.core.errors import NotFoundError
from portal.services import verification_service

router = APIRouter(prefix="/v1/certificates", tags=["certificates"])


class VerificationOut(BaseModel):
    valid: bool
    reason: str | None = None
    certificate_id: str
    registry_number: str
    student_name: str
    course_name: str
    completion_date: datetime
    issued_date: datetime
    valid_until: datetime


@router.get("/mine", response_model=list[CertificateOut])
async def my_certificates(
    principal: CurrentPrincipal, repos: Repos
) -> list[CertificateOut]:
    certs = await repos.certificates.list_for_user(principal.user_id)
    return [CertificateOut.from_domain(c) for c in certs]


@router.get("/verify/{identifier}", response_model=VerificationOut)
async def verify_certificate(identifier: str, repos: Repos) -> VerificationOut:
    """Public lookup by certificate id or registry number.  No auth."""
    outcome = await verification_service.verify(repos.certificates, identifier)
    cert = outcome.certificate
    if cert is None:
        raise NotFoundError("certificate not found")
    return VerificationOut(
        valid=outcome.is_valid,
        reason=None if outcome.is_valid else outcome.status,
        certificate_id=cert.certificate_id,
        registry_number=cert.registry_number,
        student_name=cert.student_name,
        course_name=cert.course_name,
        completion_date=cert.completion_date,
        issued_date=cert.issued_date,
        valid_until=cert.valid_until,
    )
