"""Helpers shared by the PostgreSQL repositories."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from portal.core.errors import PersistenceError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def store_errors(session: AsyncSession, action: str) -> AsyncIterator[None]:
    """Translate driver errors into PersistenceError.

    The session is rolled back so the request can keep using it for reads.
    """
    try:
        yield
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("Store failure while trying to %s: %s", action, e)
        raise PersistenceError(f"could not {action}") from e
