"""PostgreSQL implementation of ApplicationRepo."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from portal.db.tables import ApplicationQuestionRow, ApplicationRow
from portal.models.application import Application, ApplicationQuestion
from portal.repos.pg_support import store_errors


class PgApplicationRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_questions(self) -> list[ApplicationQuestion]:
        stmt = select(ApplicationQuestionRow).order_by(
            ApplicationQuestionRow.order_index
        )
        async with store_errors(self._session, "list application questions"):
            rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_question(r) for r in rows]

    async def get_question(self, question_id: UUID) -> ApplicationQuestion | None:
        async with store_errors(self._session, "load application question"):
            row = await self._session.get(ApplicationQuestionRow, question_id)
        return _row_to_question(row) if row is not None else None

    async def add_question(self, question: ApplicationQuestion) -> None:
        async with store_errors(self._session, "create application question"):
            self._session.add(
                ApplicationQuestionRow(
                    id=question.id,
                    question=question.question,
                    type=question.type,
                    options=list(question.options),
                    required=question.required,
                    order_index=question.order_index,
                )
            )
            await self._session.commit()

    async def update_question(
        self, question: ApplicationQuestion
    ) -> ApplicationQuestion | None:
        stmt = (
            update(ApplicationQuestionRow)
            .where(ApplicationQuestionRow.id == question.id)
            .values(
                question=question.question,
                type=question.type,
                options=list(question.options),
                required=question.required,
                order_index=question.order_index,
            )
        )
        async with store_errors(self._session, "update application question"):
            result = await self._session.execute(stmt)
            await self._session.commit()
        return question if result.rowcount else None

    async def delete_question(self, question_id: UUID) -> bool:
        async with store_errors(self._session, "delete application question"):
            result = await self._session.execute(
                delete(ApplicationQuestionRow).where(
                    ApplicationQuestionRow.id == question_id
                )
            )
            await self._session.commit()
        return result.rowcount > 0

    async def add(self, application: Application) -> None:
        async with store_errors(self._session, "submit application"):
            self._session.add(
                ApplicationRow(
                    id=application.id,
                    user_id=application.user_id,
                    responses=dict(application.responses),
                    status=application.status,
                    submitted_at=application.submitted_at,
                )
            )
            await self._session.commit()

    async def get(self, application_id: UUID) -> Application | None:
        async with store_errors(self._session, "load application"):
            row = await self._session.get(ApplicationRow, application_id)
        return _row_to_application(row) if row is not None else None

    async def get_pending_for_user(self, user_id: str) -> Application | None:
        stmt = (
            select(ApplicationRow)
            .where(ApplicationRow.user_id == user_id, ApplicationRow.status == "pending")
            .limit(1)
        )
        async with store_errors(self._session, "load application"):
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_application(row) if row is not None else None

    async def review(
        self,
        application_id: UUID,
        *,
        status: str,
        reviewed_by: str,
        reviewed_at: datetime,
        notes: str | None,
    ) -> Application | None:
        # The status guard makes concurrent reviews race-safe
        stmt = (
            update(ApplicationRow)
            .where(ApplicationRow.id == application_id, ApplicationRow.status == "pending")
            .values(
                status=status,
                reviewed_by=reviewed_by,
                reviewed_at=reviewed_at,
                notes=notes,
            )
            .returning(ApplicationRow)
        )
        async with store_errors(self._session, "review application"):
            row = (await self._session.execute(stmt)).scalar_one_or_none()
            await self._session.commit()
        return _row_to_application(row) if row is not None else None

    async def list_all(self, *, status: str | None = None) -> list[Application]:
        stmt = select(ApplicationRow).order_by(ApplicationRow.submitted_at.desc())
        if status is not None:
            stmt = stmt.where(ApplicationRow.status == status)
        async with store_errors(self._session, "list applications"):
            rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_application(r) for r in rows]


def _row_to_question(row: ApplicationQuestionRow) -> ApplicationQuestion:
    return ApplicationQuestion(
        id=row.id,
        question=row.question,
        type=row.type,
        options=tuple(row.options or ()),
        required=row.required,
        order_index=row.order_index,
    )


def _row_to_application(row: ApplicationRow) -> Application:
    return Application(
        id=row.id,
        user_id=row.user_id,
        responses=dict(row.responses or {}),
        status=row.status,
        reviewed_by=row.reviewed_by,
        reviewed_at=row.reviewed_at,
        notes=row.notes,
        submitted_at=row.submitted_at,
    )
