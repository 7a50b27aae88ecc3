"""Membership applications and the application question set."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field

from portal.api.dependencies import CurrentPrincipal, Repos, require_role
from portal.core.errors import NotFoundError, PermissionDenied
from portal.models.application import Application, ApplicationQuestion
from portal.models.principal import Principal
from portal.services import application_service

router = APIRouter(prefix="/v1/applications", tags=["applications"])

AdminPrincipal = Annotated[Principal, Depends(require_role("admin"))]


class QuestionIn(BaseModel):
    question: str
    type: Literal["text", "textarea", "select", "radio"] = "text"
    options: list[str] = Field(default_factory=list)
    required: bool = True
    order_index: int | None = None


class QuestionOut(BaseModel):
    id: str
    question: str
    type: str
    options: list[str]
    required: bool
    order_index: int

    @classmethod
    def from_domain(cls, q: ApplicationQuestion) -> QuestionOut:
        return cls(
            id=str(q.id),
            question=q.question,
            type=q.type,
            options=list(q.options),
            required=q.required,
            order_index=q.order_index,
        )


class ApplicationIn(BaseModel):
    responses: dict[str, str]


class ReviewIn(BaseModel):
    decision: Literal["accepted", "denied"]
    notes: str | None = None


class ApplicationOut(BaseModel):
    id: str
    user_id: str
    responses: dict[str, str]
    status: str
    reviewed_by: str | None
    reviewed_at: datetime | None
    notes: str | None
    submitted_at: datetime | None

    @classmethod
    def from_domain(cls, a: Application) -> ApplicationOut:
        return cls(
            id=str(a.id),
            user_id=a.user_id,
            responses=dict(a.responses),
            status=a.status,
            reviewed_by=a.reviewed_by,
            reviewed_at=a.reviewed_at,
            notes=a.notes,
            submitted_at=a.submitted_at,
        )


# ---------------------------------------------------------------------------
# Questions
# ---------------------------------------------------------------------------


@router.get("/questions", response_model=list[QuestionOut])
async def list_questions(_principal: CurrentPrincipal, repos: Repos) -> list[QuestionOut]:
    return [QuestionOut.from_domain(q) for q in await repos.applications.list_questions()]


@router.post(
    "/questions", response_model=QuestionOut, status_code=status.HTTP_201_CREATED
)
async def create_question(
    payload: QuestionIn, principal: AdminPrincipal, repos: Repos
) -> QuestionOut:
    created = await application_service.create_question(
        repos,
        principal,
        question=payload.question,
        type=payload.type,
        options=tuple(payload.options),
        required=payload.required,
        order_index=payload.order_index,
    )
    return QuestionOut.from_domain(created)


@router.put("/questions/{question_id}", response_model=QuestionOut)
async def update_question(
    question_id: UUID, payload: QuestionIn, principal: AdminPrincipal, repos: Repos
) -> QuestionOut:
    updated = await application_service.update_question(
        repos,
        principal,
        question_id,
        question=payload.question,
        type=payload.type,
        options=tuple(payload.options),
        required=payload.required,
        order_index=payload.order_index or 0,
    )
    return QuestionOut.from_domain(updated)


@router.delete("/questions/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_question(
    question_id: UUID, principal: AdminPrincipal, repos: Repos
) -> Response:
    await application_service.delete_question(repos, principal, question_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------------


@router.post("", response_model=ApplicationOut, status_code=status.HTTP_201_CREATED)
async def submit_application(
    payload: ApplicationIn, principal: CurrentPrincipal, repos: Repos
) -> ApplicationOut:
    application = await application_service.submit_application(
        repos, principal, payload.responses
    )
    return ApplicationOut.from_domain(application)


@router.get("", response_model=list[ApplicationOut])
async def list_applications(
    principal: AdminPrincipal,
    repos: Repos,
    status_filter: Annotated[
        Literal["pending", "accepted", "denied"] | None, Query(alias="status")
    ] = None,
) -> list[ApplicationOut]:
    apps = await repos.applications.list_all(status=status_filter)
    return [ApplicationOut.from_domain(a) for a in apps]


@router.get("/{application_id}", response_model=ApplicationOut)
async def get_application(
    application_id: UUID, principal: CurrentPrincipal, repos: Repos
) -> ApplicationOut:
    application = await repos.applications.get(application_id)
    if application is None:
        raise NotFoundError("application not found")
    if application.user_id != principal.user_id and not principal.is_admin():
        raise PermissionDenied()
    return ApplicationOut.from_domain(application)


@router.post("/{application_id}/review", response_model=ApplicationOut)
async def review_application(
    application_id: UUID, payload: ReviewIn, principal: AdminPrincipal, repos: Repos
) -> ApplicationOut:
    reviewed = await application_service.review_application(
        repos, principal, application_id, payload.decision, payload.notes
    )
    return ApplicationOut.from_domain(reviewed)
