from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime
from typing import Protocol

from portal.models.profile import Profile


class ProfileRepo(Protocol):
    async def get(self, user_id: str) -> Profile | None: ...
    async def upsert(self, profile: Profile) -> Profile: ...
    async def set_role(self, user_id: str, role: str) -> Profile | None: ...
    async def set_status(
        self, user_id: str, status: str, role: str | None = None
    ) -> Profile | None: ...
    async def list_all(self) -> list[Profile]: ...


class InMemoryProfileRepo:
    def __init__(self) -> None:
        self._by_id: dict[str, Profile] = {}

    async def get(self, user_id: str) -> Profile | None:
        return self._by_id.get(user_id)

    async def upsert(self, profile: Profile) -> Profile:
        # Role and status are owned by the portal, not by the identity provider
        existing = self._by_id.get(profile.id)
        if existing is None:
            self._by_id[profile.id] = profile
            return profile
        updated = replace(
            existing,
            username=profile.username,
            avatar=profile.avatar or existing.avatar,
            last_active=datetime.now(UTC),
        )
        self._by_id[profile.id] = updated
        return updated

    async def set_role(self, user_id: str, role: str) -> Profile | None:
        existing = self._by_id.get(user_id)
        if existing is None:
            return None
        updated = replace(existing, role=role)
        self._by_id[user_id] = updated
        return updated

    async def set_status(
        self, user_id: str, status: str, role: str | None = None
    ) -> Profile | None:
        existing = self._by_id.get(user_id)
        if existing is None:
            return None
        updated = replace(existing, status=status, role=role or existing.role)
        self._by_id[user_id] = updated
        return updated

    async def list_all(self) -> list[Profile]:
        return sorted(self._by_id.values(), key=lambda p: p.username.lower())
