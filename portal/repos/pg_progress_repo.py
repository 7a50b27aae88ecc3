"""PostgreSQL implementation of ProgressRepo.

Enrollment relies on ``uq_user_progress_user_course``: the insert is an
``ON CONFLICT DO NOTHING`` and a conflict reads back the winner's row.
Updates are compare-and-set on ``version``; ``certificate_earned`` is OR-ed
and ``completed_at`` coalesced in SQL so neither can be reset.
"""

from __future__ import annotations

from dataclasses import replace
from uuid import UUID

from sqlalchemy import func, literal, or_, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.errors import NotFoundError
from portal.db.tables import UserProgressRow
from portal.models.progress import UserProgress
from portal.repos.pg_support import store_errors


class PgProgressRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: str, course_id: UUID) -> UserProgress | None:
        stmt = select(UserProgressRow).where(
            UserProgressRow.user_id == user_id,
            UserProgressRow.course_id == course_id,
        ).execution_options(populate_existing=True)
        async with store_errors(self._session, "load progress"):
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_progress(row) if row is not None else None

    async def insert_if_absent(
        self, progress: UserProgress
    ) -> tuple[UserProgress, bool]:
        stmt = (
            insert(UserProgressRow)
            .values(
                id=progress.id,
                user_id=progress.user_id,
                course_id=progress.course_id,
                completed_modules=list(progress.completed_modules),
                overall_progress=progress.overall_progress,
                certificate_earned=progress.certificate_earned,
                started_at=progress.started_at,
                completed_at=progress.completed_at,
                updated_at=progress.updated_at,
            )
            .on_conflict_do_nothing(constraint="uq_user_progress_user_course")
            .returning(UserProgressRow.id)
        )
        async with store_errors(self._session, "create progress"):
            inserted = (await self._session.execute(stmt)).scalar_one_or_none()
            await self._session.commit()
        if inserted is not None:
            return progress, True

        existing = await self.get(progress.user_id, progress.course_id)
        if existing is None:
            # Conflict row vanished between insert and read (course deleted)
            raise NotFoundError("course not found")
        return existing, False

    async def save(self, progress: UserProgress) -> UserProgress | None:
        stmt = (
            update(UserProgressRow)
            .where(
                UserProgressRow.user_id == progress.user_id,
                UserProgressRow.course_id == progress.course_id,
                UserProgressRow.version == progress.version,
            )
            .values(
                completed_modules=list(progress.completed_modules),
                overall_progress=progress.overall_progress,
                certificate_earned=or_(
                    UserProgressRow.certificate_earned,
                    literal(progress.certificate_earned),
                ),
                completed_at=func.coalesce(
                    UserProgressRow.completed_at, progress.completed_at
                ),
                updated_at=progress.updated_at,
                version=UserProgressRow.version + 1,
            )
            .returning(
                UserProgressRow.certificate_earned,
                UserProgressRow.completed_at,
                UserProgressRow.version,
            )
            .execution_options(synchronize_session=False)
        )
        async with store_errors(self._session, "update progress"):
            row = (await self._session.execute(stmt)).one_or_none()
            await self._session.commit()
        if row is not None:
            return replace(
                progress,
                certificate_earned=row.certificate_earned,
                completed_at=row.completed_at,
                version=row.version,
            )

        if await self.get(progress.user_id, progress.course_id) is None:
            raise NotFoundError("progress not found")
        return None

    async def list_for_user(self, user_id: str) -> list[UserProgress]:
        stmt = (
            select(UserProgressRow)
            .where(UserProgressRow.user_id == user_id)
            .order_by(UserProgressRow.started_at.desc())
        )
        async with store_errors(self._session, "list progress"):
            rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_progress(r) for r in rows]

    async def list_all(self) -> list[UserProgress]:
        async with store_errors(self._session, "list progress"):
            rows = (await self._session.execute(select(UserProgressRow))).scalars()
            return [_row_to_progress(r) for r in rows]


def _row_to_progress(row: UserProgressRow) -> UserProgress:
    return UserProgress(
        id=row.id,
        user_id=row.user_id,
        course_id=row.course_id,
        completed_modules=tuple(row.completed_modules or ()),
        overall_progress=row.overall_progress,
        certificate_earned=row.certificate_earned,
        started_at=row.started_at,
        completed_at=row.completed_at,
        updated_at=row.updated_at,
        version=row.version,
    )
