from __future__ import annotations

from typing import Protocol
from uuid import UUID

from portal.models.quiz import Quiz, QuizResult


class QuizRepo(Protocol):
    """Quizzes (with their questions) and the append-only attempt log."""

    async def get_quiz(self, quiz_id: UUID) -> Quiz | None: ...
    async def list_for_course(self, course_id: UUID) -> list[Quiz]: ...
    async def add_quiz(self, quiz: Quiz) -> None: ...
    async def add_result(self, result: QuizResult) -> QuizResult: ...
    async def list_results(
        self, *, user_id: str | None = None, quiz_id: UUID | None = None
    ) -> list[QuizResult]: ...


class InMemoryQuizRepo:
    def __init__(self) -> None:
        self._quizzes: dict[UUID, Quiz] = {}
        self._results: list[QuizResult] = []

    async def get_quiz(self, quiz_id: UUID) -> Quiz | None:
        return self._quizzes.get(quiz_id)

    async def list_for_course(self, course_id: UUID) -> list[Quiz]:
        quizzes = [q for q in self._quizzes.values() if q.course_id == course_id]
        return sorted(quizzes, key=lambda q: q.order_index)

    async def add_quiz(self, quiz: Quiz) -> None:
        if quiz.id in self._quizzes:
            raise ValueError("quiz already exists")
        self._quizzes[quiz.id] = quiz

    async def add_result(self, result: QuizResult) -> QuizResult:
        self._results.append(result)
        return result

    async def list_results(
        self, *, user_id: str | None = None, quiz_id: UUID | None = None
    ) -> list[QuizResult]:
        results = [
            r
            for r in self._results
            if (user_id is None or r.user_id == user_id)
            and (quiz_id is None or r.quiz_id == quiz_id)
        ]
        return sorted(results, key=lambda r: r.completed_at, reverse=True)
