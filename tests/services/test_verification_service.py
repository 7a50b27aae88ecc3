from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from portal.core.errors import ValidationError
from portal.models.certificate import Certificate
from portal.services.verification_service import registry_candidate, verify


def _stored(repos, **overrides) -> Certificate:
    cert = Certificate.new(
        user_id="learner-1",
        course_id=uuid4(),
        student_name="Jo Learner",
        course_name="Intro to Aviation",
    )
    cert = replace(cert, **overrides)
    asyncio.run(repos.certificates.insert_if_absent(cert))
    return cert


def test_registry_candidate() -> None:
    assert registry_candidate("REG-1A2B") == "REG-1A2B"
    assert registry_candidate("OOG-1A2B") == "REG-1A2B"
    assert registry_candidate("1A2B") == "REG-1A2B"


def test_verify_by_certificate_id(repos) -> None:
    cert = _stored(repos)
    outcome = asyncio.run(verify(repos.certificates, cert.certificate_id))
    assert outcome.status == "valid"
    assert outcome.certificate == cert


def test_verify_by_registry_number_is_case_insensitive(repos) -> None:
    cert = _stored(repos)
    outcome = asyncio.run(
        verify(repos.certificates, f"  {cert.registry_number.lower()} ")
    )
    assert outcome.is_valid
    assert outcome.certificate.certificate_id == cert.certificate_id


def test_verify_falls_back_from_certificate_prefix(repos) -> None:
    _stored(repos, certificate_id="OOG-LEAR-1234-X", registry_number="REG-K3J9")
    outcome = asyncio.run(verify(repos.certificates, "OOG-K3J9"))
    assert outcome.is_valid
    assert outcome.certificate.registry_number == "REG-K3J9"


def test_expired_certificate(repos) -> None:
    cert = _stored(repos)
    later = cert.valid_until + timedelta(seconds=1)
    outcome = asyncio.run(verify(repos.certificates, cert.certificate_id, now=later))
    assert outcome.status == "expired"
    assert outcome.is_valid is False


def test_valid_until_boundary_is_still_valid(repos) -> None:
    cert = _stored(repos)
    outcome = asyncio.run(
        verify(repos.certificates, cert.certificate_id, now=cert.valid_until)
    )
    assert outcome.status == "valid"


def test_revoked_certificate_is_not_found(repos) -> None:
    cert = _stored(repos, is_valid=False)
    outcome = asyncio.run(verify(repos.certificates, cert.certificate_id))
    assert outcome.status == "not_found"


def test_unknown_identifier_does_not_raise(repos) -> None:
    outcome = asyncio.run(
        verify(repos.certificates, "OOG-NOPE-0000-0", now=datetime.now(UTC))
    )
    assert outcome.status == "not_found"
    assert outcome.certificate is None


@pytest.mark.parametrize("identifier", ["", "   "])
def test_blank_identifier_is_rejected(repos, identifier: str) -> None:
    with pytest.raises(ValidationError):
        asyncio.run(verify(repos.certificates, identifier))


def test_same_instant_certificates_verify_to_their_own_holder(repos) -> None:
    issued = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
    course_id = uuid4()
    alice = Certificate.new(
        user_id="alice-1",
        course_id=course_id,
        student_name="alice",
        course_name="Intro to Aviation",
        issued_at=issued,
    )
    bob = Certificate.new(
        user_id="bob-22",
        course_id=course_id,
        student_name="bob",
        course_name="Intro to Aviation",
        issued_at=issued,
    )
    for cert in (alice, bob):
        asyncio.run(repos.certificates.insert_if_absent(cert))

    assert alice.registry_number != bob.registry_number
    outcome = asyncio.run(
        verify(repos.certificates, bob.registry_number, now=issued)
    )
    assert outcome.certificate.student_name == "bob"
