from __future__ import annotations

import logging
from dataclasses import replace

from portal.core.errors import NotAuthenticated
from portal.models.principal import Principal
from portal.models.profile import ROLES, Profile
from portal.repos.profile_repo import ProfileRepo

logger = logging.getLogger(__name__)

# Highest first; a brand-new profile starts at the strongest role in its token
_ROLE_PRECEDENCE = ("admin", "staff", "student", "applicant")


def _initial_role(principal: Principal) -> str:
    for role in _ROLE_PRECEDENCE:
        if principal.has_role(role):
            return role
    return "applicant"


async def ensure_profile(repo: ProfileRepo, principal: Principal | None) -> Profile:
    """Upsert the caller's profile from the identity context.

    Role and status of an existing profile are never overwritten here.
    """
    if principal is None:
        raise NotAuthenticated()

    candidate = Profile.new(id=principal.user_id, username=principal.username)
    role = _initial_role(principal)
    if role != "applicant":
        candidate = replace(candidate, role=role, status="accepted")
    profile = await repo.upsert(candidate)
    logger.debug("Profile upserted user_id=%s role=%s", profile.id, profile.role)
    return profile


def effective_roles(principal: Principal, profile: Profile) -> frozenset[str]:
    """Token roles plus the role the portal has granted the profile."""
    if profile.role in ROLES:
        return principal.roles | {profile.role}
    return principal.roles
