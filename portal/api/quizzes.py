"""Quiz taking.

POST /v1/quizzes/{quiz_id}/submit runs the whole completion pipeline and
can take as long as the certificate poll (~19 s worst case) when the
attempt completes the course.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel

from portal.api.courses import QuizOut, quiz_out
from portal.api.dependencies import CurrentPrincipal, Repos
from portal.api.schemas import CertificateOut, ProgressOut, QuizResultOut
from portal.core.errors import NotFoundError
from portal.services import completion_service

router = APIRouter(prefix="/v1/quizzes", tags=["quizzes"])


class SubmissionIn(BaseModel):
    answers: dict[str, str]


class SubmissionOut(BaseModel):
    result: QuizResultOut
    score_percent: int
    correct_answers: int
    question_count: int
    passed: bool
    progress: ProgressOut
    certificate: CertificateOut | None = None


@router.get("/{quiz_id}", response_model=QuizOut)
async def get_quiz(quiz_id: UUID, principal: CurrentPrincipal, repos: Repos) -> QuizOut:
    quiz = await repos.quizzes.get_quiz(quiz_id)
    if quiz is None:
        raise NotFoundError("quiz not found")
    course = await repos.courses.get(quiz.course_id)
    if course is None or not (course.is_published or principal.is_staff()):
        raise NotFoundError("quiz not found")
    return quiz_out(quiz, reveal_answers=principal.is_staff())


@router.post("/{quiz_id}/submit", response_model=SubmissionOut)
async def submit_quiz(
    quiz_id: UUID, payload: SubmissionIn, principal: CurrentPrincipal, repos: Repos
) -> SubmissionOut:
    done = await completion_service.submit_quiz(
        repos, principal, quiz_id, payload.answers
    )
    return SubmissionOut(
        result=QuizResultOut.from_domain(done.result),
        score_percent=done.grade.score_percent,
        correct_answers=done.grade.matches,
        question_count=done.grade.question_count,
        passed=done.grade.passed,
        progress=ProgressOut.from_domain(done.progress),
        certificate=(
            CertificateOut.from_domain(done.certificate)
            if done.certificate is not None
            else None
        ),
    )


@router.get("/{quiz_id}/results", response_model=list[QuizResultOut])
async def my_results(
    quiz_id: UUID, principal: CurrentPrincipal, repos: Repos
) -> list[QuizResultOut]:
    results = await repos.quizzes.list_results(
        user_id=principal.user_id, quiz_id=quiz_id
    )
    return [QuizResultOut.from_domain(r) for r in results]
