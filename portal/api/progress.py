"""Learner progress views.

GET /v1/progress/summary/{course_id} is served read-through from the
cache; every progress or quiz write for the pair invalidates it.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter
from pydantic import BaseModel

from portal.api.dependencies import CurrentPrincipal, Repos
from portal.api.schemas import ProgressOut, QuizResultOut
from portal.services import progress_summary

router = APIRouter(prefix="/v1/progress", tags=["progress"])


class MyProgressOut(BaseModel):
    progress: list[ProgressOut]
    quiz_results: list[QuizResultOut]


class QuizSummaryOut(BaseModel):
    quiz_id: str
    title: str
    attempts: int
    best_score: int | None
    total_points: int
    passed: bool


class SummaryOut(BaseModel):
    course_id: str
    course_title: str
    overall_progress: int
    completed_modules: int
    total_modules: int
    certificate_earned: bool
    certificate_id: str | None
    quizzes: list[QuizSummaryOut]


@router.get("", response_model=MyProgressOut)
async def my_progress(principal: CurrentPrincipal, repos: Repos) -> MyProgressOut:
    rows = await repos.progress.list_for_user(principal.user_id)
    results = await repos.quizzes.list_results(user_id=principal.user_id)
    return MyProgressOut(
        progress=[ProgressOut.from_domain(p) for p in rows],
        quiz_results=[QuizResultOut.from_domain(r) for r in results],
    )


@router.get("/summary/{course_id}", response_model=SummaryOut)
async def progress_summary_view(
    course_id: UUID, principal: CurrentPrincipal, repos: Repos
) -> SummaryOut:
    return SummaryOut(
        **await progress_summary.get_summary(repos, principal.user_id, course_id)
    )
