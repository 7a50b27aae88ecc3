from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from portal.models.course import Course


class CourseRepo(Protocol):
    """Courses are loaded together with their ordered modules."""

    async def get(self, course_id: UUID) -> Course | None: ...
    async def list_courses(
        self, *, include_unpublished: bool = False
    ) -> list[Course]: ...
    async def add(self, course: Course) -> None: ...
    async def set_published(
        self, course_id: UUID, is_published: bool
    ) -> Course | None: ...
    async def update_details(
        self,
        course_id: UUID,
        *,
        title: str,
        description: str,
        estimated_time: int,
        is_published: bool,
    ) -> Course | None: ...
    async def delete(self, course_id: UUID) -> bool: ...


class InMemoryCourseRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Course] = {}

    async def get(self, course_id: UUID) -> Course | None:
        return self._by_id.get(course_id)

    async def list_courses(
        self, *, include_unpublished: bool = False
    ) -> list[Course]:
        courses = [
            c for c in self._by_id.values() if include_unpublished or c.is_published
        ]
        return sorted(courses, key=lambda c: c.title.lower())

    async def add(self, course: Course) -> None:
        if course.id in self._by_id:
            raise ValueError("course already exists")
        modules = tuple(sorted(course.modules, key=lambda m: m.order_index))
        self._by_id[course.id] = replace(course, modules=modules)

    async def set_published(
        self, course_id: UUID, is_published: bool
    ) -> Course | None:
        existing = self._by_id.get(course_id)
        if existing is None:
            return None
        updated = replace(existing, is_published=is_published)
        self._by_id[course_id] = updated
        return updated

    async def update_details(
        self,
        course_id: UUID,
        *,
        title: str,
        description: str,
        estimated_time: int,
        is_published: bool,
    ) -> Course | None:
        existing = self._by_id.get(course_id)
        if existing is None:
            return None
        updated = replace(
            existing,
            title=title,
            description=description,
            estimated_time=estimated_time,
            is_published=is_published,
        )
        self._by_id[course_id] = updated
        return updated

    async def delete(self, course_id: UUID) -> bool:
        return self._by_id.pop(course_id, None) is not None
