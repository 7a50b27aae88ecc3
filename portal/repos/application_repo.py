from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Protocol
from uuid import UUID

from portal.models.application import Application, ApplicationQuestion


class ApplicationRepo(Protocol):
    async def list_questions(self) -> list[ApplicationQuestion]: ...
    async def get_question(self, question_id: UUID) -> ApplicationQuestion | None: ...
    async def add_question(self, question: ApplicationQuestion) -> None: ...
    async def update_question(
        self, question: ApplicationQuestion
    ) -> ApplicationQuestion | None: ...
    async def delete_question(self, question_id: UUID) -> bool: ...

    async def add(self, application: Application) -> None: ...
    async def get(self, application_id: UUID) -> Application | None: ...
    async def get_pending_for_user(self, user_id: str) -> Application | None: ...

    async def review(
        self,
        application_id: UUID,
        *,
        status: str,
        reviewed_by: str,
        reviewed_at: datetime,
        notes: str | None,
    ) -> Application | None:
        """Record a decision on a *pending* application.

        Returns None when the application is missing or no longer pending.
        """
        ...

    async def list_all(self, *, status: str | None = None) -> list[Application]: ...


class InMemoryApplicationRepo:
    def __init__(self) -> None:
        self._questions: dict[UUID, ApplicationQuestion] = {}
        self._applications: dict[UUID, Application] = {}

    async def list_questions(self) -> list[ApplicationQuestion]:
        return sorted(self._questions.values(), key=lambda q: q.order_index)

    async def get_question(self, question_id: UUID) -> ApplicationQuestion | None:
        return self._questions.get(question_id)

    async def add_question(self, question: ApplicationQuestion) -> None:
        self._questions[question.id] = question

    async def update_question(
        self, question: ApplicationQuestion
    ) -> ApplicationQuestion | None:
        if question.id not in self._questions:
            return None
        self._questions[question.id] = question
        return question

    async def delete_question(self, question_id: UUID) -> bool:
        return self._questions.pop(question_id, None) is not None

    async def add(self, application: Application) -> None:
        self._applications[application.id] = application

    async def get(self, application_id: UUID) -> Application | None:
        return self._applications.get(application_id)

    async def get_pending_for_user(self, user_id: str) -> Application | None:
        for app in self._applications.values():
            if app.user_id == user_id and app.status == "pending":
                return app
        return None

    async def review(
        self,
        application_id: UUID,
        *,
        status: str,
        reviewed_by: str,
        reviewed_at: datetime,
        notes: str | None,
    ) -> Application | None:
        existing = self._applications.get(application_id)
        if existing is None or existing.status != "pending":
            return None
        updated = replace(
            existing,
            status=status,
            reviewed_by=reviewed_by,
            reviewed_at=reviewed_at,
            notes=notes,
        )
        self._applications[application_id] = updated
        return updated

    async def list_all(self, *, status: str | None = None) -> list[Application]:
        apps = [
            a for a in self._applications.values() if status is None or a.status == status
        ]
        return sorted(apps, key=lambda a: a.submitted_at, reverse=True)
