"""PostgreSQL implementation of QuizRepo."""

from __future__ import annotations

from collections import defaultdict
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.db.tables import QuizQuestionRow, QuizResultRow, QuizRow
from portal.models.quiz import Quiz, QuizQuestion, QuizResult
from portal.repos.pg_support import store_errors


class PgQuizRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_quiz(self, quiz_id: UUID) -> Quiz | None:
        async with store_errors(self._session, "load quiz"):
            row = (
                await self._session.execute(select(QuizRow).where(QuizRow.id == quiz_id))
            ).scalar_one_or_none()
            if row is None:
                return None
            questions = await self._questions_for([quiz_id])
        return _row_to_quiz(row, questions.get(quiz_id, []))

    async def list_for_course(self, course_id: UUID) -> list[Quiz]:
        stmt = (
            select(QuizRow)
            .where(QuizRow.course_id == course_id)
            .order_by(QuizRow.order_index)
        )
        async with store_errors(self._session, "list quizzes"):
            rows = (await self._session.execute(stmt)).scalars().all()
            questions = await self._questions_for([r.id for r in rows])
        return [_row_to_quiz(r, questions.get(r.id, [])) for r in rows]

    async def add_quiz(self, quiz: Quiz) -> None:
        async with store_errors(self._session, "create quiz"):
            self._session.add(
                QuizRow(
                    id=quiz.id,
                    course_id=quiz.course_id,
                    title=quiz.title,
                    passing_score=quiz.passing_score,
                    order_index=quiz.order_index,
                )
            )
            await self._session.flush()
            self._session.add_all(
                QuizQuestionRow(
                    id=q.id,
                    quiz_id=quiz.id,
                    question=q.question,
                    type=q.type,
                    options=list(q.options),
                    correct_answer=q.correct_answer,
                    points=q.points,
                    position=position,
                )
                for position, q in enumerate(quiz.questions)
            )
            await self._session.commit()

    async def add_result(self, result: QuizResult) -> QuizResult:
        async with store_errors(self._session, "record quiz result"):
            self._session.add(
                QuizResultRow(
                    id=result.id,
                    user_id=result.user_id,
                    quiz_id=result.quiz_id,
                    score=result.score,
                    total_points=result.total_points,
                    passed=result.passed,
                    answers=dict(result.answers),
                    completed_at=result.completed_at,
                )
            )
            await self._session.commit()
        return result

    async def list_results(
        self, *, user_id: str | None = None, quiz_id: UUID | None = None
    ) -> list[QuizResult]:
        stmt = select(QuizResultRow).order_by(QuizResultRow.completed_at.desc())
        if user_id is not None:
            stmt = stmt.where(QuizResultRow.user_id == user_id)
        if quiz_id is not None:
            stmt = stmt.where(QuizResultRow.quiz_id == quiz_id)
        async with store_errors(self._session, "list quiz results"):
            rows = (await self._session.execute(stmt)).scalars().all()
        return [
            QuizResult(
                id=r.id,
                user_id=r.user_id,
                quiz_id=r.quiz_id,
                score=r.score,
                total_points=r.total_points,
                passed=r.passed,
                answers=dict(r.answers or {}),
                completed_at=r.completed_at,
            )
            for r in rows
        ]

    async def _questions_for(
        self, quiz_ids: list[UUID]
    ) -> dict[UUID, list[QuizQuestion]]:
        if not quiz_ids:
            return {}
        stmt = (
            select(QuizQuestionRow)
            .where(QuizQuestionRow.quiz_id.in_(quiz_ids))
            .order_by(QuizQuestionRow.position)
        )
        grouped: dict[UUID, list[QuizQuestion]] = defaultdict(list)
        for row in (await self._session.execute(stmt)).scalars():
            grouped[row.quiz_id].append(
                QuizQuestion(
                    id=row.id,
                    quiz_id=row.quiz_id,
                    question=row.question,
                    type=row.type,  # type: ignore[arg-type]
                    correct_answer=row.correct_answer,
                    options=tuple(row.options or ()),
                    points=row.points,
                )
            )
        return grouped


def _row_to_quiz(row: QuizRow, questions: list[QuizQuestion]) -> Quiz:
    return Quiz(
        id=row.id,
        course_id=row.course_id,
        title=row.title,
        passing_score=row.passing_score,
        order_index=row.order_index,
        questions=tuple(questions),
    )
