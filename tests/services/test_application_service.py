from __future__ import annotations

import asyncio

import pytest

from portal.core.errors import ConflictError, PermissionDenied, ValidationError
from portal.services import application_service
from tests.conftest import principal

ADMIN = principal("admin-1", ("admin",))
APPLICANT = principal("newcomer", ())


def _questions(repos):
    why = asyncio.run(
        application_service.create_question(
            repos, ADMIN, question="Why do you want to join?", type="textarea"
        )
    )
    rank = asyncio.run(
        application_service.create_question(
            repos,
            ADMIN,
            question="Experience level",
            type="select",
            options=("New", "  Veteran  ", ""),
        )
    )
    callsign = asyncio.run(
        application_service.create_question(
            repos, ADMIN, question="Callsign", required=False
        )
    )
    return why, rank, callsign


def test_questions_are_ordered_and_cleaned(repos) -> None:
    why, rank, callsign = _questions(repos)
    listed = asyncio.run(repos.applications.list_questions())
    assert [q.id for q in listed] == [why.id, rank.id, callsign.id]
    assert rank.options == ("New", "Veteran")


def test_only_admins_edit_questions(repos) -> None:
    with pytest.raises(PermissionDenied):
        asyncio.run(
            application_service.create_question(repos, APPLICANT, question="Q?")
        )


def test_choice_question_needs_options(repos) -> None:
    with pytest.raises(ValidationError):
        asyncio.run(
            application_service.create_question(
                repos, ADMIN, question="Pick", type="radio", options=(" ",)
            )
        )


def test_clean_responses(repos) -> None:
    why, rank, callsign = _questions(repos)
    questions = asyncio.run(repos.applications.list_questions())

    cleaned = application_service.clean_responses(
        questions,
        {str(why.id): "  " + "x" * 3000, str(rank.id): "Veteran", str(callsign.id): " "},
    )
    assert cleaned == {str(why.id): "x" * 2000, str(rank.id): "Veteran"}


@pytest.mark.parametrize(
    "mutate",
    [
        lambda ids: {ids[1]: "New"},
        lambda ids: {ids[0]: "ok", ids[1]: "Expert"},
        lambda ids: {ids[0]: "ok", ids[1]: "New", "not-a-question": "x"},
    ],
)
def test_bad_responses_are_rejected(repos, mutate) -> None:
    ids = [str(q.id) for q in _questions(repos)]
    questions = asyncio.run(repos.applications.list_questions())
    with pytest.raises(ValidationError):
        application_service.clean_responses(questions, mutate(ids))


def test_one_pending_application_at_a_time(repos) -> None:
    why, rank, _ = _questions(repos)
    responses = {str(why.id): "I like planes", str(rank.id): "New"}

    asyncio.run(application_service.submit_application(repos, APPLICANT, responses))
    with pytest.raises(ConflictError):
        asyncio.run(
            application_service.submit_application(repos, APPLICANT, responses)
        )


def test_accepting_promotes_to_student(repos) -> None:
    why, rank, _ = _questions(repos)
    app = asyncio.run(
        application_service.submit_application(
            repos, APPLICANT, {str(why.id): "Flying", str(rank.id): "New"}
        )
    )

    reviewed = asyncio.run(
        application_service.review_application(
            repos, ADMIN, app.id, "accepted", notes="  welcome  "
        )
    )

    assert reviewed.status == "accepted"
    assert reviewed.reviewed_by == "admin-1"
    assert reviewed.notes == "welcome"
    profile = asyncio.run(repos.profiles.get("newcomer"))
    assert (profile.role, profile.status) == ("student", "accepted")

    with pytest.raises(ConflictError):
        asyncio.run(
            application_service.review_application(repos, ADMIN, app.id, "denied")
        )


def test_denying_keeps_applicant_role(repos) -> None:
    why, rank, _ = _questions(repos)
    app = asyncio.run(
        application_service.submit_application(
            repos, APPLICANT, {str(why.id): "Flying", str(rank.id): "New"}
        )
    )
    asyncio.run(application_service.review_application(repos, ADMIN, app.id, "denied"))

    profile = asyncio.run(repos.profiles.get("newcomer"))
    assert (profile.role, profile.status) == ("applicant", "denied")
