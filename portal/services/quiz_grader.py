from __future__ import annotations

import logging
from dataclasses import dataclass

from portal.core.errors import ValidationError
from portal.core.metrics import QUIZ_SUBMISSIONS
from portal.models.quiz import Quiz, QuizResult
from portal.repos.quiz_repo import QuizRepo
from portal.services.progress_service import percent

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Grade:
    matches: int
    question_count: int
    score_percent: int
    earned_points: int
    total_points: int
    passed: bool


def grade(quiz: Quiz, answers: dict[str, str]) -> Grade:
    """Score ``answers`` (question id -> answer text) against the key.

    Pass/fail follows the share of correct answers; points are the sum of
    the per-question points actually earned.
    """
    if not quiz.questions:
        raise ValidationError("quiz has no questions")

    matches = 0
    earned = 0
    for q in quiz.questions:
        if not q.correct_answer:
            raise ValidationError(f"question {q.id} has no correct answer")
        if answers.get(str(q.id)) == q.correct_answer:
            matches += 1
            earned += q.points

    score_percent = percent(matches, len(quiz.questions))
    return Grade(
        matches=matches,
        question_count=len(quiz.questions),
        score_percent=score_percent,
        earned_points=earned,
        total_points=quiz.total_points,
        passed=score_percent >= quiz.passing_score,
    )


async def grade_and_submit(
    repo: QuizRepo, user_id: str, quiz: Quiz, answers: dict[str, str]
) -> tuple[QuizResult, Grade]:
    """Grade and append a new attempt; earlier attempts are kept."""
    result_grade = grade(quiz, answers)
    result = await repo.add_result(
        QuizResult.new(
            user_id=user_id,
            quiz_id=quiz.id,
            score=result_grade.earned_points,
            total_points=result_grade.total_points,
            passed=result_grade.passed,
            answers=answers,
        )
    )
    QUIZ_SUBMISSIONS.labels(result="passed" if result_grade.passed else "failed").inc()
    logger.info(
        "Quiz graded user_id=%s quiz_id=%s score=%d%% passed=%s",
        user_id,
        quiz.id,
        result_grade.score_percent,
        result_grade.passed,
    )
    return result, result_grade
