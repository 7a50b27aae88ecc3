from __future__ import annotations

from dataclasses import replace
from typing import Protocol
from uuid import UUID

from portal.core.errors import NotFoundError
from portal.models.progress import UserProgress


class ProgressRepo(Protocol):
    async def get(self, user_id: str, course_id: UUID) -> UserProgress | None: ...

    async def insert_if_absent(
        self, progress: UserProgress
    ) -> tuple[UserProgress, bool]:
        """Insert unless a row for (user, course) exists.

        Returns the stored row and whether this call created it.
        """
        ...

    async def save(self, progress: UserProgress) -> UserProgress | None:
        """Write the mutable fields if the stored row is still at
        ``progress.version``.

        Returns the stored row with its bumped version, or None when another
        write got there first.  ``certificate_earned`` and ``completed_at``
        never move backwards regardless of what is passed in.  Raises
        NotFoundError when the row is gone.
        """
        ...

    async def list_for_user(self, user_id: str) -> list[UserProgress]: ...
    async def list_all(self) -> list[UserProgress]: ...


class InMemoryProgressRepo:
    def __init__(self) -> None:
        self._store: dict[tuple[str, UUID], UserProgress] = {}

    async def get(self, user_id: str, course_id: UUID) -> UserProgress | None:
        return self._store.get((user_id, course_id))

    async def insert_if_absent(
        self, progress: UserProgress
    ) -> tuple[UserProgress, bool]:
        key = (progress.user_id, progress.course_id)
        existing = self._store.get(key)
        if existing is not None:
            return existing, False
        self._store[key] = progress
        return progress, True

    async def save(self, progress: UserProgress) -> UserProgress | None:
        key = (progress.user_id, progress.course_id)
        stored = self._store.get(key)
        if stored is None:
            raise NotFoundError("progress not found")
        if stored.version != progress.version:
            return None
        written = replace(
            progress,
            certificate_earned=stored.certificate_earned or progress.certificate_earned,
            completed_at=stored.completed_at or progress.completed_at,
            version=stored.version + 1,
        )
        self._store[key] = written
        return written

    async def list_for_user(self, user_id: str) -> list[UserProgress]:
        rows = [p for p in self._store.values() if p.user_id == user_id]
        return sorted(rows, key=lambda p: p.started_at or 0, reverse=True)

    async def list_all(self) -> list[UserProgress]:
        return list(self._store.values())
