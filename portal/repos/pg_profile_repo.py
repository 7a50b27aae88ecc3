"""PostgreSQL implementation of ProfileRepo."""

from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from portal.db.tables import ProfileRow
from portal.models.profile import Profile
from portal.repos.pg_support import store_errors


class PgProfileRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: str) -> Profile | None:
        async with store_errors(self._session, "load profile"):
            stmt = select(ProfileRow).where(ProfileRow.id == user_id)
            row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_profile(row) if row is not None else None

    async def upsert(self, profile: Profile) -> Profile:
        stmt = (
            insert(ProfileRow)
            .values(
                id=profile.id,
                username=profile.username,
                avatar=profile.avatar,
                role=profile.role,
                status=profile.status,
            )
            .on_conflict_do_update(
                index_elements=[ProfileRow.id],
                set_={
                    "username": profile.username,
                    "avatar": func.coalesce(profile.avatar, ProfileRow.avatar),
                    "last_active": func.now(),
                },
            )
            .returning(ProfileRow)
            .execution_options(populate_existing=True)
        )
        async with store_errors(self._session, "save profile"):
            row = (await self._session.execute(stmt)).scalar_one()
            await self._session.commit()
        return _row_to_profile(row)

    async def set_role(self, user_id: str, role: str) -> Profile | None:
        return await self._update(user_id, role=role)

    async def set_status(
        self, user_id: str, status: str, role: str | None = None
    ) -> Profile | None:
        values: dict[str, str] = {"status": status}
        if role is not None:
            values["role"] = role
        return await self._update(user_id, **values)

    async def list_all(self) -> list[Profile]:
        async with store_errors(self._session, "list profiles"):
            stmt = select(ProfileRow).order_by(func.lower(ProfileRow.username))
            rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_profile(r) for r in rows]

    async def _update(self, user_id: str, **values: str) -> Profile | None:
        stmt = (
            update(ProfileRow)
            .where(ProfileRow.id == user_id)
            .values(**values)
            .returning(ProfileRow)
            .execution_options(populate_existing=True)
        )
        async with store_errors(self._session, "update profile"):
            row = (await self._session.execute(stmt)).scalar_one_or_none()
            await self._session.commit()
        return _row_to_profile(row) if row is not None else None


def _row_to_profile(row: ProfileRow) -> Profile:
    return Profile(
        id=row.id,
        username=row.username,
        role=row.role,
        status=row.status,
        avatar=row.avatar,
        created_at=row.created_at,
        last_active=row.last_active,
    )
