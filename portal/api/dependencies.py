from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from dataclasses import replace
from typing import Annotated

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from portal.core.errors import NotAuthenticated, PermissionDenied
from portal.db import engine
from portal.middleware.request_context import user_id_var
from portal.models.principal import Principal
from portal.repos import registry
from portal.repos.registry import Repositories
from portal.services import token_service
from portal.services.profile_service import effective_roles, ensure_profile

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_repos() -> AsyncGenerator[Repositories, None]:
    """Yield the repository bundle for this request.

    Postgres repositories commit each write themselves; the session only
    scopes the connection to the request.
    """
    if engine.async_session_factory is None:
        yield registry.memory_repos
        return
    async with engine.async_session_factory() as session:
        yield registry.postgres(session)


Repos = Annotated[Repositories, Depends(get_repos)]


async def require_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
) -> Principal:
    """Validate the bearer JWT and return the caller's Principal."""
    if credentials is None:
        raise NotAuthenticated()
    try:
        claims = token_service.decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise NotAuthenticated("Token expired") from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise NotAuthenticated("Invalid token") from None

    principal = Principal(
        user_id=str(claims["sub"]),
        username=str(claims.get("username") or claims["sub"]),
        roles=frozenset(claims.get("roles", [])),
    )
    user_id_var.set(principal.user_id)
    logger.debug(
        "Token validated for user=%s roles=%s", principal.user_id, principal.roles
    )
    return principal


async def current_principal(
    principal: Annotated[Principal, Depends(require_user)],
    repos: Repos,
) -> Principal:
    """Upsert the caller's profile and fold its portal role into the roles."""
    profile = await ensure_profile(repos.profiles, principal)
    return replace(principal, roles=effective_roles(principal, profile))


CurrentPrincipal = Annotated[Principal, Depends(current_principal)]


def require_role(role: str):
    """Dependency factory: demand a specific role.

    Usage: Depends(require_role("admin"))
    """

    async def _guard(principal: CurrentPrincipal) -> Principal:
        if not principal.has_role(role):
            logger.warning(
                "Access denied: user=%s missing role=%s", principal.user_id, role
            )
            raise PermissionDenied()
        return principal

    return _guard


def require_any_role(roles: set[str]):
    """Dependency factory: demand at least one of the given roles.

    Usage: Depends(require_any_role({"staff", "admin"}))
    """

    async def _guard(principal: CurrentPrincipal) -> Principal:
        if not principal.has_any_role(roles):
            logger.warning(
                "Access denied: user=%s has none of roles=%s",
                principal.user_id,
                roles,
            )
            raise PermissionDenied()
        return principal

    return _guard
