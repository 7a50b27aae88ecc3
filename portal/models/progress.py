from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class UserProgress:
    """Enrollment and completion state for one (user, course) pair.

    ``completed_modules`` keeps first-completion order but is treated as a
    set.  ``certificate_earned`` only ever moves from False to True.
    ``version`` is bumped by the store on every write; a save carrying a
    stale version is refused.
    """

    id: UUID
    user_id: str
    course_id: UUID
    completed_modules: tuple[UUID, ...] = ()
    overall_progress: int = 0
    certificate_earned: bool = False
    started_at: datetime | None = None
    completed_at: datetime | None = None
    updated_at: datetime | None = None
    version: int = 0

    @staticmethod
    def new(*, user_id: str, course_id: UUID) -> UserProgress:
        now = datetime.now(UTC)
        return UserProgress(
            id=uuid4(),
            user_id=user_id,
            course_id=course_id,
            started_at=now,
            updated_at=now,
        )

    def has_completed(self, module_id: UUID) -> bool:
        return module_id in self.completed_modules
