"""Quiz submission and everything that follows it.

    grade + store attempt
      -> passed, every module done:  award_certificate -> issue_if_eligible
      -> passed, modules remaining:  recompute progress
      -> failed:                     nothing else

Each step persists before the next starts and nothing is rolled back:
if issuance fails the learner keeps ``certificate_earned = True``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from uuid import UUID

from portal.core.errors import NotAuthenticated, NotFoundError
from portal.models.certificate import Certificate
from portal.models.principal import Principal
from portal.models.progress import UserProgress
from portal.models.quiz import QuizResult
from portal.repos.registry import Repositories
from portal.services import certificate_issuer, progress_service, progress_summary
from portal.services.certificate_issuer import PollPolicy, Sleep
from portal.services.quiz_grader import Grade, grade_and_submit

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Completion:
    result: QuizResult
    grade: Grade
    progress: UserProgress
    certificate: Certificate | None = None


async def submit_quiz(
    repos: Repositories,
    principal: Principal | None,
    quiz_id: UUID,
    answers: dict[str, str],
    *,
    policy: PollPolicy | None = None,
    sleep: Sleep = asyncio.sleep,
) -> Completion:
    if principal is None:
        raise NotAuthenticated()
    user_id = principal.user_id

    quiz = await repos.quizzes.get_quiz(quiz_id)
    if quiz is None:
        raise NotFoundError("quiz not found")
    course = await repos.courses.get(quiz.course_id)
    if course is None:
        raise NotFoundError("course not found")
    progress = await repos.progress.get(user_id, course.id)
    if progress is None:
        raise NotFoundError("not enrolled in this course")

    result, grade = await grade_and_submit(repos.quizzes, user_id, quiz, answers)
    await progress_summary.invalidate(user_id, course.id)

    if not grade.passed:
        return Completion(result=result, grade=grade, progress=progress)

    if course.module_ids <= set(progress.completed_modules):
        progress = await progress_service.award_certificate(
            repos.progress, user_id, course.id
        )
        await progress_summary.invalidate(user_id, course.id)
        certificate = await certificate_issuer.issue_if_eligible(
            repos,
            user_id,
            course.id,
            principal.username,
            course.title,
            policy=policy,
            sleep=sleep,
        )
        await progress_summary.invalidate(user_id, course.id)
        return Completion(
            result=result, grade=grade, progress=progress, certificate=certificate
        )

    progress = await progress_service.recompute(
        repos.progress, user_id, course.id, len(course.modules)
    )
    await progress_summary.invalidate(user_id, course.id)
    logger.info(
        "Quiz passed with modules remaining user_id=%s course_id=%s progress=%d",
        user_id,
        course.id,
        progress.overall_progress,
    )
    return Completion(result=result, grade=grade, progress=progress)
