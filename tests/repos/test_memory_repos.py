from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import UTC, datetime
from uuid import uuid4

import pytest

from portal.core.errors import IdentifierTaken, NotFoundError
from portal.models.application import Application
from portal.models.certificate import Certificate
from portal.models.profile import Profile
from portal.models.progress import UserProgress


def test_progress_insert_if_absent(repos) -> None:
    course_id = uuid4()
    first, created = asyncio.run(
        repos.progress.insert_if_absent(UserProgress.new(user_id="u", course_id=course_id))
    )
    again, created_again = asyncio.run(
        repos.progress.insert_if_absent(UserProgress.new(user_id="u", course_id=course_id))
    )
    assert created is True
    assert created_again is False
    assert again.id == first.id


def test_progress_save_requires_existing_row(repos) -> None:
    with pytest.raises(NotFoundError):
        asyncio.run(
            repos.progress.save(UserProgress.new(user_id="u", course_id=uuid4()))
        )


def test_progress_save_refuses_stale_version(repos) -> None:
    stored, _ = asyncio.run(
        repos.progress.insert_if_absent(UserProgress.new(user_id="u", course_id=uuid4()))
    )
    first = asyncio.run(repos.progress.save(replace(stored, overall_progress=50)))
    assert first is not None
    assert first.version == stored.version + 1

    stale = asyncio.run(repos.progress.save(replace(stored, overall_progress=0)))
    assert stale is None
    current = asyncio.run(repos.progress.get("u", stored.course_id))
    assert current.overall_progress == 50


def test_progress_save_never_clears_earned_flag(repos) -> None:
    stored, _ = asyncio.run(
        repos.progress.insert_if_absent(UserProgress.new(user_id="u", course_id=uuid4()))
    )
    done_at = datetime.now(UTC)
    earned = asyncio.run(
        repos.progress.save(
            replace(stored, certificate_earned=True, completed_at=done_at)
        )
    )
    cleared = asyncio.run(
        repos.progress.save(replace(earned, certificate_earned=False, completed_at=None))
    )
    assert cleared.certificate_earned is True
    assert cleared.completed_at == done_at


def test_one_valid_certificate_per_pair(repos) -> None:
    course_id = uuid4()

    def cert() -> Certificate:
        return Certificate.new(
            user_id="u", course_id=course_id, student_name="U", course_name="C"
        )

    first, created = asyncio.run(repos.certificates.insert_if_absent(cert()))
    second, created_again = asyncio.run(repos.certificates.insert_if_absent(cert()))

    assert created and not created_again
    assert second.certificate_id == first.certificate_id
    assert asyncio.run(repos.certificates.count_valid()) == 1


def test_invalidated_certificate_frees_the_pair(repos) -> None:
    course_id = uuid4()
    revoked = replace(
        Certificate.new(user_id="u", course_id=course_id, student_name="U", course_name="C"),
        is_valid=False,
    )
    asyncio.run(repos.certificates.insert_if_absent(revoked))

    fresh, created = asyncio.run(
        repos.certificates.insert_if_absent(
            Certificate.new(
                user_id="u", course_id=course_id, student_name="U", course_name="C"
            )
        )
    )
    assert created is True
    assert asyncio.run(repos.certificates.find_valid("u", course_id)) == fresh


def test_profile_upsert_keeps_portal_role(repos) -> None:
    asyncio.run(repos.profiles.upsert(Profile.new(id="u", username="old")))
    asyncio.run(repos.profiles.set_role("u", "staff"))

    updated = asyncio.run(repos.profiles.upsert(Profile.new(id="u", username="new")))

    assert updated.username == "new"
    assert updated.role == "staff"


def test_review_only_pending(repos) -> None:
    application = Application.new(user_id="u", responses={})
    asyncio.run(repos.applications.add(application))
    kwargs = {"reviewed_by": "admin", "reviewed_at": datetime.now(UTC), "notes": None}

    reviewed = asyncio.run(
        repos.applications.review(application.id, status="denied", **kwargs)
    )
    assert reviewed.status == "denied"
    assert asyncio.run(
        repos.applications.review(application.id, status="accepted", **kwargs)
    ) is None
    assert asyncio.run(repos.applications.list_all(status="pending")) == []


def test_duplicate_registry_number_is_refused(repos) -> None:
    issued = datetime.now(UTC)
    first = Certificate.new(
        user_id="alice-1",
        course_id=uuid4(),
        student_name="alice",
        course_name="C",
        issued_at=issued,
        nonce="AAAA",
    )
    clash = Certificate.new(
        user_id="bob-22",
        course_id=uuid4(),
        student_name="bob",
        course_name="C",
        issued_at=issued,
        nonce="AAAA",
    )
    asyncio.run(repos.certificates.insert_if_absent(first))
    assert clash.registry_number == first.registry_number

    with pytest.raises(IdentifierTaken):
        asyncio.run(repos.certificates.insert_if_absent(clash))
