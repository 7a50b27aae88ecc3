from __future__ import annotations

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from portal.api.dependencies import Repos, require_user
from portal.models.principal import Principal
from portal.models.profile import Profile
from portal.services.profile_service import ensure_profile

router = APIRouter(prefix="/v1/profiles", tags=["profiles"])


class ProfileOut(BaseModel):
    id: str
    username: str
    role: str
    status: str
    avatar: str | None
    created_at: datetime | None
    last_active: datetime | None

    @classmethod
    def from_domain(cls, p: Profile) -> ProfileOut:
        return cls(
            id=p.id,
            username=p.username,
            role=p.role,
            status=p.status,
            avatar=p.avatar,
            created_at=p.created_at,
            last_active=p.last_active,
        )


@router.get("/me", response_model=ProfileOut)
async def me(
    principal: Annotated[Principal, Depends(require_user)], repos: Repos
) -> ProfileOut:
    return ProfileOut.from_domain(await ensure_profile(repos.profiles, principal))
