"""Course catalogue, authoring, enrollment and module completion.

  GET    /v1/courses                                  list (drafts for staff)
  GET    /v1/courses/{course_id}                      detail with quizzes
  POST   /v1/courses                                  create (staff)
  PATCH  /v1/courses/{course_id}                      publish (staff), edit details (admin)
  DELETE /v1/courses/{course_id}                      delete (admin)
  POST   /v1/courses/{course_id}/quizzes              add a quiz (staff)
  POST   /v1/courses/{course_id}/enroll               201 new, 200 existing
  POST   /v1/courses/{course_id}/modules/{module_id}/complete
"""

from __future__ import annotations

from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from portal.api.dependencies import CurrentPrincipal, Repos, require_any_role
from portal.api.schemas import ProgressOut
from portal.core.errors import NotFoundError, ValidationError
from portal.models.course import Course
from portal.models.principal import Principal
from portal.models.quiz import Quiz
from portal.services import course_service, enrollment_service, progress_service
from portal.services import progress_summary
from portal.services.course_service import ModuleDraft, QuestionDraft, QuizDraft

router = APIRouter(prefix="/v1/courses", tags=["courses"])

StaffPrincipal = Annotated[Principal, Depends(require_any_role({"staff", "admin"}))]


class ModuleOut(BaseModel):
    id: str
    title: str
    content: str
    order_index: int
    estimated_time: int
    type: str


class QuestionOut(BaseModel):
    id: str
    question: str
    type: str
    options: list[str]
    points: int
    correct_answer: str | None = None


class QuizOut(BaseModel):
    id: str
    course_id: str
    title: str
    passing_score: int
    order_index: int
    total_points: int
    questions: list[QuestionOut]


class CourseOut(BaseModel):
    id: str
    title: str
    description: str
    estimated_time: int
    is_published: bool
    created_by: str | None
    module_count: int


class CourseDetailOut(CourseOut):
    modules: list[ModuleOut]
    quizzes: list[QuizOut]


class ModuleIn(BaseModel):
    title: str
    content: str
    estimated_time: int = 10


class QuestionIn(BaseModel):
    question: str
    type: Literal["multiple-choice", "short-answer"]
    correct_answer: str
    options: list[str] = Field(default_factory=list)
    points: int = 10


class QuizIn(BaseModel):
    title: str
    passing_score: int = 70
    questions: list[QuestionIn] = Field(default_factory=list)


class CourseIn(BaseModel):
    title: str
    description: str
    estimated_time: int = 60
    is_published: bool = False
    modules: list[ModuleIn] = Field(default_factory=list)
    quizzes: list[QuizIn] = Field(default_factory=list)


class CourseUpdateIn(BaseModel):
    """Publication alone is a staff toggle; any detail field makes it an admin edit."""

    title: str | None = None
    description: str | None = None
    estimated_time: float | None = None
    is_published: bool | None = None

    def edits_details(self) -> bool:
        return any(
            v is not None for v in (self.title, self.description, self.estimated_time)
        )


def _course_out(course: Course) -> CourseOut:
    return CourseOut(
        id=str(course.id),
        title=course.title,
        description=course.description,
        estimated_time=course.estimated_time,
        is_published=course.is_published,
        created_by=course.created_by,
        module_count=len(course.modules),
    )


def quiz_out(quiz: Quiz, *, reveal_answers: bool) -> QuizOut:
    """Learners never see ``correct_answer``."""
    return QuizOut(
        id=str(quiz.id),
        course_id=str(quiz.course_id),
        title=quiz.title,
        passing_score=quiz.passing_score,
        order_index=quiz.order_index,
        total_points=quiz.total_points,
        questions=[
            QuestionOut(
                id=str(q.id),
                question=q.question,
                type=q.type,
                options=list(q.options),
                points=q.points,
                correct_answer=q.correct_answer if reveal_answers else None,
            )
            for q in quiz.questions
        ],
    )


def _detail_out(
    course: Course, quizzes: list[Quiz], *, reveal_answers: bool
) -> CourseDetailOut:
    return CourseDetailOut(
        **_course_out(course).model_dump(),
        modules=[
            ModuleOut(
                id=str(m.id),
                title=m.title,
                content=m.content,
                order_index=m.order_index,
                estimated_time=m.estimated_time,
                type=m.type,
            )
            for m in course.modules
        ],
        quizzes=[quiz_out(q, reveal_answers=reveal_answers) for q in quizzes],
    )


def _quiz_draft(q: QuizIn) -> QuizDraft:
    return QuizDraft(
        title=q.title,
        passing_score=q.passing_score,
        questions=tuple(
            QuestionDraft(
                question=item.question,
                type=item.type,
                correct_answer=item.correct_answer,
                options=tuple(item.options),
                points=item.points,
            )
            for item in q.questions
        ),
    )


@router.get("", response_model=list[CourseOut])
async def list_courses(principal: CurrentPrincipal, repos: Repos) -> list[CourseOut]:
    return [_course_out(c) for c in await course_service.list_courses(repos, principal)]


@router.get("/{course_id}", response_model=CourseDetailOut)
async def get_course(
    course_id: UUID, principal: CurrentPrincipal, repos: Repos
) -> CourseDetailOut:
    course, quizzes = await course_service.get_course(repos, principal, course_id)
    return _detail_out(course, quizzes, reveal_answers=principal.is_staff())


@router.post("", response_model=CourseDetailOut, status_code=status.HTTP_201_CREATED)
async def create_course(
    payload: CourseIn, principal: StaffPrincipal, repos: Repos
) -> CourseDetailOut:
    course, quizzes = await course_service.create_course(
        repos,
        principal,
        title=payload.title,
        description=payload.description,
        estimated_time=payload.estimated_time,
        is_published=payload.is_published,
        modules=[
            ModuleDraft(title=m.title, content=m.content, estimated_time=m.estimated_time)
            for m in payload.modules
        ],
        quizzes=[_quiz_draft(q) for q in payload.quizzes],
    )
    return _detail_out(course, quizzes, reveal_answers=True)


@router.patch("/{course_id}", response_model=CourseOut)
async def update_course(
    course_id: UUID, payload: CourseUpdateIn, principal: StaffPrincipal, repos: Repos
) -> CourseOut:
    if not payload.edits_details():
        if payload.is_published is None:
            raise ValidationError("nothing to update")
        course = await course_service.set_published(
            repos, principal, course_id, payload.is_published
        )
        return _course_out(course)

    current, _ = await course_service.get_course(repos, principal, course_id)
    course = await course_service.update_course(
        repos,
        principal,
        course_id,
        title=current.title if payload.title is None else payload.title,
        description=(
            current.description if payload.description is None else payload.description
        ),
        estimated_time=(
            current.estimated_time
            if payload.estimated_time is None
            else payload.estimated_time
        ),
        is_published=(
            current.is_published if payload.is_published is None else payload.is_published
        ),
    )
    return _course_out(course)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_course(
    course_id: UUID, principal: CurrentPrincipal, repos: Repos
) -> Response:
    await course_service.delete_course(repos, principal, course_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{course_id}/quizzes", response_model=QuizOut, status_code=status.HTTP_201_CREATED
)
async def add_quiz(
    course_id: UUID, payload: QuizIn, principal: StaffPrincipal, repos: Repos
) -> QuizOut:
    quiz = await course_service.add_quiz(repos, principal, course_id, _quiz_draft(payload))
    return quiz_out(quiz, reveal_answers=True)


@router.post("/{course_id}/enroll", response_model=ProgressOut)
async def enroll(
    course_id: UUID,
    principal: CurrentPrincipal,
    repos: Repos,
    response: Response,
) -> ProgressOut:
    progress, created = await enrollment_service.enroll(repos, principal, course_id)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    if created:
        await progress_summary.invalidate(principal.user_id, course_id)
    return ProgressOut.from_domain(progress)


@router.post(
    "/{course_id}/modules/{module_id}/complete", response_model=ProgressOut
)
async def complete_module(
    course_id: UUID,
    module_id: UUID,
    principal: CurrentPrincipal,
    repos: Repos,
) -> ProgressOut:
    course, _ = await course_service.get_course(repos, principal, course_id)
    if module_id not in course.module_ids:
        raise NotFoundError("module not found in this course")

    progress = await progress_service.complete_module(
        repos.progress, principal.user_id, course_id, module_id, len(course.modules)
    )
    await progress_summary.invalidate(principal.user_id, course_id)
    return ProgressOut.from_domain(progress)
