"""Membership applications: the question set, submission and review."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import UTC, datetime
from typing import Literal
from uuid import UUID

from portal.core.errors import (
    ConflictError,
    NotFoundError,
    PermissionDenied,
    ValidationError,
)
from portal.models.application import (
    CHOICE_TYPES,
    QUESTION_TYPES,
    Application,
    ApplicationQuestion,
)
from portal.models.principal import Principal
from portal.repos.registry import Repositories
from portal.services import notifications
from portal.services.profile_service import ensure_profile

logger = logging.getLogger(__name__)

MAX_RESPONSE = 2000

Decision = Literal["accepted", "denied"]


def _validate_question(
    question: str, type: str, options: tuple[str, ...]
) -> tuple[str, tuple[str, ...]]:
    text = (question or "").strip()
    if not text:
        raise ValidationError("question text is required")
    if type not in QUESTION_TYPES:
        raise ValidationError(f"type must be one of {'|'.join(QUESTION_TYPES)}")
    cleaned = tuple(o.strip() for o in options if o.strip())
    if type in CHOICE_TYPES and not cleaned:
        raise ValidationError(f"{type} questions need options")
    if type not in CHOICE_TYPES:
        cleaned = ()
    return text, cleaned


async def _notify_questions_changed(principal: Principal, action: str) -> None:
    await notifications.notify(
        "staff",
        notifications.embed(
            "⚙️ Application Questions Updated",
            f"An application question was {action}",
            fields={"Updated By": principal.username},
        ),
    )


async def create_question(
    repos: Repositories,
    principal: Principal,
    *,
    question: str,
    type: str = "text",
    options: tuple[str, ...] = (),
    required: bool = True,
    order_index: int | None = None,
) -> ApplicationQuestion:
    if not principal.is_admin():
        raise PermissionDenied()
    text, cleaned = _validate_question(question, type, options)
    if order_index is None:
        order_index = len(await repos.applications.list_questions())
    created = ApplicationQuestion.new(
        question=text,
        type=type,
        options=cleaned,
        required=required,
        order_index=order_index,
    )
    await repos.applications.add_question(created)
    await _notify_questions_changed(principal, "added")
    return created


async def update_question(
    repos: Repositories,
    principal: Principal,
    question_id: UUID,
    *,
    question: str,
    type: str,
    options: tuple[str, ...] = (),
    required: bool = True,
    order_index: int = 0,
) -> ApplicationQuestion:
    if not principal.is_admin():
        raise PermissionDenied()
    text, cleaned = _validate_question(question, type, options)
    existing = await repos.applications.get_question(question_id)
    if existing is None:
        raise NotFoundError("question not found")
    updated = await repos.applications.update_question(
        replace(
            existing,
            question=text,
            type=type,
            options=cleaned,
            required=required,
            order_index=order_index,
        )
    )
    if updated is None:
        raise NotFoundError("question not found")
    await _notify_questions_changed(principal, "updated")
    return updated


async def delete_question(
    repos: Repositories, principal: Principal, question_id: UUID
) -> None:
    if not principal.is_admin():
        raise PermissionDenied()
    if not await repos.applications.delete_question(question_id):
        raise NotFoundError("question not found")
    await _notify_questions_changed(principal, "removed")


def clean_responses(
    questions: list[ApplicationQuestion], responses: dict[str, str]
) -> dict[str, str]:
    """Trim, cap and check responses against the current question set."""
    by_id = {str(q.id): q for q in questions}
    unknown = sorted(set(responses) - set(by_id))
    if unknown:
        raise ValidationError(f"unknown question ids: {', '.join(unknown)}")

    cleaned: dict[str, str] = {}
    for qid, q in by_id.items():
        answer = (responses.get(qid) or "").strip()[:MAX_RESPONSE]
        if not answer:
            if q.required:
                raise ValidationError(f"an answer is required for: {q.question}")
            continue
        if q.type in CHOICE_TYPES and answer not in q.options:
            raise ValidationError(f"answer must be one of the options for: {q.question}")
        cleaned[qid] = answer
    return cleaned


async def submit_application(
    repos: Repositories, principal: Principal, responses: dict[str, str]
) -> Application:
    await ensure_profile(repos.profiles, principal)
    if await repos.applications.get_pending_for_user(principal.user_id) is not None:
        raise ConflictError("an application is already pending review")

    questions = await repos.applications.list_questions()
    application = Application.new(
        user_id=principal.user_id, responses=clean_responses(questions, responses)
    )
    await repos.applications.add(application)
    logger.info(
        "Application submitted application_id=%s user_id=%s",
        application.id,
        principal.user_id,
    )
    await notifications.notify(
        "applications",
        notifications.embed(
            "📝 New Application Submitted",
            "A new application has been submitted and is awaiting review",
            fields={
                "Application ID": notifications.short_id(application.id),
                "Submitted By": principal.username,
                "Status": "Pending Review",
            },
        ),
    )
    return application


async def review_application(
    repos: Repositories,
    principal: Principal,
    application_id: UUID,
    decision: Decision,
    notes: str | None = None,
) -> Application:
    """Accept or deny a pending application and update the applicant's profile.

    Accepting promotes the applicant to ``student``; denying only marks
    the profile ``denied``.
    """
    if not principal.is_admin():
        raise PermissionDenied()
    if decision not in ("accepted", "denied"):
        raise ValidationError("decision must be accepted|denied")

    existing = await repos.applications.get(application_id)
    if existing is None:
        raise NotFoundError("application not found")

    reviewed = await repos.applications.review(
        application_id,
        status=decision,
        reviewed_by=principal.user_id,
        reviewed_at=datetime.now(UTC),
        notes=(notes or "").strip() or None,
    )
    if reviewed is None:
        raise ConflictError(f"application was already {existing.status}")

    if decision == "accepted":
        await repos.profiles.set_status(reviewed.user_id, "accepted", role="student")
    else:
        await repos.profiles.set_status(reviewed.user_id, "denied")

    logger.info(
        "Application %s %s by=%s", application_id, decision, principal.user_id
    )
    await notifications.notify(
        "applications",
        notifications.embed(
            f"Application {decision.capitalize()}",
            f"Application {notifications.short_id(application_id)} has been {decision}",
            color=notifications.GREEN if decision == "accepted" else notifications.RED,
            fields={
                "Application ID": notifications.short_id(application_id),
                "Status": decision.capitalize(),
                "Reviewed By": principal.username,
            },
        ),
    )
    return reviewed
