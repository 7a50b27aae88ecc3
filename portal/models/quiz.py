from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal
from uuid import UUID, uuid4

from portal.core.errors import ValidationError

QuestionType = Literal["multiple-choice", "short-answer"]

DEFAULT_POINTS = 10
DEFAULT_PASSING_SCORE = 70


@dataclass(frozen=True, slots=True)
class QuizQuestion:
    """One question of a quiz.

    ``type`` tags the variant: multiple-choice questions carry their
    ``options``, short-answer questions carry none.  ``correct_answer`` is
    a plain string either way and is compared by exact equality.
    """

    id: UUID
    quiz_id: UUID
    question: str
    type: QuestionType
    correct_answer: str
    options: tuple[str, ...] = ()
    points: int = DEFAULT_POINTS

    @staticmethod
    def new(
        *,
        quiz_id: UUID,
        question: str,
        type: QuestionType,
        correct_answer: str,
        options: tuple[str, ...] = (),
        points: int = DEFAULT_POINTS,
    ) -> QuizQuestion:
        if type == "multiple-choice":
            if not options:
                raise ValidationError("multiple-choice questions need options")
            if correct_answer not in options:
                raise ValidationError("correct answer must be one of the options")
        elif type == "short-answer":
            if options:
                raise ValidationError("short-answer questions take no options")
        else:
            raise ValidationError(f"unknown question type {type!r}")
        if points < 0:
            raise ValidationError("points must be >= 0")
        return QuizQuestion(
            id=uuid4(),
            quiz_id=quiz_id,
            question=question,
            type=type,
            correct_answer=correct_answer,
            options=tuple(options),
            points=points,
        )


@dataclass(frozen=True, slots=True)
class Quiz:
    id: UUID
    course_id: UUID
    title: str
    passing_score: int = DEFAULT_PASSING_SCORE
    order_index: int = 0
    questions: tuple[QuizQuestion, ...] = field(default=())

    @staticmethod
    def new(
        *,
        course_id: UUID,
        title: str,
        passing_score: int = DEFAULT_PASSING_SCORE,
        order_index: int = 0,
    ) -> Quiz:
        if not 0 <= passing_score <= 100:
            raise ValidationError("passing score must be between 0 and 100")
        return Quiz(
            id=uuid4(),
            course_id=course_id,
            title=title,
            passing_score=passing_score,
            order_index=order_index,
        )

    @property
    def total_points(self) -> int:
        return sum(q.points for q in self.questions)


@dataclass(frozen=True, slots=True)
class QuizResult:
    """Append-only record of one submission attempt."""

    id: UUID
    user_id: str
    quiz_id: UUID
    score: int  # earned points
    total_points: int
    passed: bool
    answers: dict[str, str]
    completed_at: datetime

    @staticmethod
    def new(
        *,
        user_id: str,
        quiz_id: UUID,
        score: int,
        total_points: int,
        passed: bool,
        answers: dict[str, str],
    ) -> QuizResult:
        return QuizResult(
            id=uuid4(),
            user_id=user_id,
            quiz_id=quiz_id,
            score=score,
            total_points=total_points,
            passed=passed,
            answers=dict(answers),
            completed_at=datetime.now(UTC),
        )
