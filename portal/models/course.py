from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class CourseModule:
    """A unit of text content a learner marks complete."""

    id: UUID
    course_id: UUID
    title: str
    content: str
    order_index: int
    estimated_time: int = 0  # minutes
    type: str = "text"

    @staticmethod
    def new(
        *,
        course_id: UUID,
        title: str,
        content: str,
        order_index: int,
        estimated_time: int = 0,
    ) -> CourseModule:
        return CourseModule(
            id=uuid4(),
            course_id=course_id,
            title=title,
            content=content,
            order_index=order_index,
            estimated_time=estimated_time,
        )


@dataclass(frozen=True, slots=True)
class Course:
    id: UUID
    title: str
    description: str
    estimated_time: int = 0  # minutes
    is_published: bool = False
    created_by: str | None = None
    created_at: datetime | None = None
    modules: tuple[CourseModule, ...] = field(default=())

    @staticmethod
    def new(
        *,
        title: str,
        description: str,
        estimated_time: int = 0,
        is_published: bool = False,
        created_by: str | None = None,
    ) -> Course:
        return Course(
            id=uuid4(),
            title=title,
            description=description,
            estimated_time=estimated_time,
            is_published=is_published,
            created_by=created_by,
            created_at=datetime.now(UTC),
        )

    @property
    def module_ids(self) -> frozenset[UUID]:
        return frozenset(m.id for m in self.modules)
