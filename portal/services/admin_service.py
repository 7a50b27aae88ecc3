"""User administration and platform analytics."""

from __future__ import annotations

import logging
from collections import Counter

from portal.core.errors import NotFoundError, PermissionDenied, ValidationError
from portal.models.principal import Principal
from portal.models.profile import ROLES, Profile
from portal.repos.registry import Repositories
from portal.services import notifications
from portal.services.progress_service import percent

logger = logging.getLogger(__name__)


async def list_users(repos: Repositories, principal: Principal) -> list[Profile]:
    if not principal.is_admin():
        raise PermissionDenied()
    return await repos.profiles.list_all()


async def set_role(
    repos: Repositories, principal: Principal, user_id: str, role: str
) -> Profile:
    if not principal.is_admin():
        raise PermissionDenied()
    if role not in ROLES:
        raise ValidationError(f"role must be one of {'|'.join(ROLES)}")
    before = await repos.profiles.get(user_id)
    if before is None:
        raise NotFoundError("user not found")

    updated = await repos.profiles.set_role(user_id, role)
    if updated is None:
        raise NotFoundError("user not found")

    logger.warning(
        "Role changed user_id=%s %s -> %s by=%s",
        user_id,
        before.role,
        role,
        principal.user_id,
    )
    await notifications.notify(
        "staff",
        notifications.embed(
            "👤 User Role Updated",
            f"{updated.username}'s role was changed",
            fields={
                "User": updated.username,
                "Previous Role": before.role,
                "New Role": role,
                "Updated By": principal.username,
            },
        ),
    )
    return updated


async def analytics(repos: Repositories, principal: Principal) -> dict:
    if not principal.is_admin():
        raise PermissionDenied()

    profiles = await repos.profiles.list_all()
    applications = await repos.applications.list_all()
    progress = await repos.progress.list_all()
    results = await repos.quizzes.list_results()

    roles = Counter(p.role for p in profiles)
    statuses = Counter(a.status for a in applications)
    passed = sum(1 for r in results if r.passed)

    return {
        "users": {"total": len(profiles), **{r: roles.get(r, 0) for r in ROLES}},
        "applications": {
            "total": len(applications),
            **{s: statuses.get(s, 0) for s in ("pending", "accepted", "denied")},
        },
        "enrollments": len(progress),
        "completions": sum(1 for p in progress if p.certificate_earned),
        "certificates": await repos.certificates.count_valid(),
        "average_progress": (
            percent(sum(p.overall_progress for p in progress), 100 * len(progress))
            if progress
            else 0
        ),
        "quiz_attempts": len(results),
        "quiz_pass_rate": percent(passed, len(results)) if results else 0,
    }
