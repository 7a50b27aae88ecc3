"""Admin-only endpoints: user roles and platform analytics.

Every route is guarded by require_role("admin"); the services re-check
so they stay safe when called from elsewhere.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from portal.api.dependencies import Repos, require_role
from portal.api.profiles import ProfileOut
from portal.models.principal import Principal
from portal.services import admin_service

router = APIRouter(prefix="/v1/admin", tags=["admin"])

AdminPrincipal = Annotated[Principal, Depends(require_role("admin"))]


class RoleIn(BaseModel):
    role: str


class AnalyticsOut(BaseModel):
    users: dict[str, int]
    applications: dict[str, int]
    enrollments: int
    completions: int
    certificates: int
    average_progress: int
    quiz_attempts: int
    quiz_pass_rate: int


@router.get("/users", response_model=list[ProfileOut])
async def list_users(principal: AdminPrincipal, repos: Repos) -> list[ProfileOut]:
    return [
        ProfileOut.from_domain(p) for p in await admin_service.list_users(repos, principal)
    ]


@router.patch("/users/{user_id}/role", response_model=ProfileOut)
async def set_role(
    user_id: str, payload: RoleIn, principal: AdminPrincipal, repos: Repos
) -> ProfileOut:
    updated = await admin_service.set_role(repos, principal, user_id, payload.role)
    return ProfileOut.from_domain(updated)


@router.get("/analytics", response_model=AnalyticsOut)
async def analytics(principal: AdminPrincipal, repos: Repos) -> AnalyticsOut:
    return AnalyticsOut(**await admin_service.analytics(repos, principal))
