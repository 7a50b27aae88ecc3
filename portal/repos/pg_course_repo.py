"""PostgreSQL implementation of CourseRepo."""

from __future__ import annotations

from collections import defaultdict
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from portal.db.tables import CourseRow, ModuleRow
from portal.models.course import Course, CourseModule
from portal.repos.pg_support import store_errors


class PgCourseRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, course_id: UUID) -> Course | None:
        async with store_errors(self._session, "load course"):
            stmt = select(CourseRow).where(CourseRow.id == course_id)
            row = (await self._session.execute(stmt)).scalar_one_or_none()
            if row is None:
                return None
            modules = await self._modules_for([course_id])
        return _row_to_course(row, modules.get(course_id, []))

    async def list_courses(
        self, *, include_unpublished: bool = False
    ) -> list[Course]:
        stmt = select(CourseRow).order_by(func.lower(CourseRow.title))
        if not include_unpublished:
            stmt = stmt.where(CourseRow.is_published.is_(True))
        async with store_errors(self._session, "list courses"):
            rows = (await self._session.execute(stmt)).scalars().all()
            modules = await self._modules_for([r.id for r in rows])
        return [_row_to_course(r, modules.get(r.id, [])) for r in rows]

    async def add(self, course: Course) -> None:
        async with store_errors(self._session, "create course"):
            self._session.add(
                CourseRow(
                    id=course.id,
                    title=course.title,
                    description=course.description,
                    estimated_time=course.estimated_time,
                    is_published=course.is_published,
                    created_by=course.created_by,
                    created_at=course.created_at,
                )
            )
            # Parent row must exist before the FK'd modules
            await self._session.flush()
            self._session.add_all(
                ModuleRow(
                    id=m.id,
                    course_id=course.id,
                    title=m.title,
                    content=m.content,
                    order_index=m.order_index,
                    type=m.type,
                    estimated_time=m.estimated_time,
                )
                for m in course.modules
            )
            await self._session.commit()

    async def set_published(
        self, course_id: UUID, is_published: bool
    ) -> Course | None:
        stmt = (
            update(CourseRow)
            .where(CourseRow.id == course_id)
            .values(is_published=is_published)
        )
        async with store_errors(self._session, "update course"):
            result = await self._session.execute(stmt)
            await self._session.commit()
        if result.rowcount == 0:
            return None
        return await self.get(course_id)

    async def update_details(
        self,
        course_id: UUID,
        *,
        title: str,
        description: str,
        estimated_time: int,
        is_published: bool,
    ) -> Course | None:
        stmt = (
            update(CourseRow)
            .where(CourseRow.id == course_id)
            .values(
                title=title,
                description=description,
                estimated_time=estimated_time,
                is_published=is_published,
            )
        )
        async with store_errors(self._session, "update course"):
            result = await self._session.execute(stmt)
            await self._session.commit()
        if result.rowcount == 0:
            return None
        return await self.get(course_id)

    async def delete(self, course_id: UUID) -> bool:
        # modules, quizzes, progress and certificates cascade in the schema
        async with store_errors(self._session, "delete course"):
            result = await self._session.execute(
                delete(CourseRow).where(CourseRow.id == course_id)
            )
            await self._session.commit()
        return result.rowcount > 0

    async def _modules_for(
        self, course_ids: list[UUID]
    ) -> dict[UUID, list[CourseModule]]:
        if not course_ids:
            return {}
        stmt = (
            select(ModuleRow)
            .where(ModuleRow.course_id.in_(course_ids))
            .order_by(ModuleRow.order_index)
        )
        grouped: dict[UUID, list[CourseModule]] = defaultdict(list)
        for row in (await self._session.execute(stmt)).scalars():
            grouped[row.course_id].append(
                CourseModule(
                    id=row.id,
                    course_id=row.course_id,
                    title=row.title,
                    content=row.content,
                    order_index=row.order_index,
                    estimated_time=row.estimated_time,
                    type=row.type,
                )
            )
        return grouped


def _row_to_course(row: CourseRow, modules: list[CourseModule]) -> Course:
    return Course(
        id=row.id,
        title=row.title,
        description=row.description,
        estimated_time=row.estimated_time,
        is_published=row.is_published,
        created_by=row.created_by,
        created_at=row.created_at,
        modules=tuple(modules),
    )
