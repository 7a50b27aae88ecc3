"""Module completion and the certificate-earned flag.

Every write goes through ``_apply``: read the row, derive the new state,
and save it against the version that was read.  A concurrent write makes
the save come back empty and the change is re-derived from a fresh read.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime
from uuid import UUID

from portal.core.errors import ConflictError, NotFoundError, ValidationError
from portal.core.metrics import MODULE_COMPLETIONS
from portal.models.progress import UserProgress
from portal.repos.progress_repo import ProgressRepo

logger = logging.getLogger(__name__)

SAVE_ATTEMPTS = 5


def percent(part: int, whole: int) -> int:
    """``round(100 * part / whole)`` with halves rounded up, clamped to 0..100.

    Integer arithmetic only: 1/8 is 12.5 and must become 13.
    """
    if whole <= 0:
        raise ValidationError("total must be positive")
    value = (200 * part + whole) // (2 * whole)
    return max(0, min(100, value))


async def _require(repo: ProgressRepo, user_id: str, course_id: UUID) -> UserProgress:
    progress = await repo.get(user_id, course_id)
    if progress is None:
        raise NotFoundError("not enrolled in this course")
    return progress


async def _apply(
    repo: ProgressRepo,
    user_id: str,
    course_id: UUID,
    change: Callable[[UserProgress], UserProgress],
) -> tuple[UserProgress, UserProgress]:
    """Return ``(before, stored)`` once ``change`` lands on an unchanged row."""
    for _ in range(SAVE_ATTEMPTS):
        before = await _require(repo, user_id, course_id)
        stored = await repo.save(change(before))
        if stored is not None:
            return before, stored
        logger.info(
            "Progress write lost a race, retrying user_id=%s course_id=%s",
            user_id,
            course_id,
        )
    raise ConflictError("progress is being updated concurrently, try again")


async def complete_module(
    repo: ProgressRepo,
    user_id: str,
    course_id: UUID,
    module_id: UUID,
    total_module_count: int,
) -> UserProgress:
    """Mark one module complete and recompute ``overall_progress``.

    Completing an already-completed module still recomputes and persists.
    ``certificate_earned`` is carried over untouched.
    """
    if total_module_count <= 0:
        raise ValidationError("total_module_count must be positive")

    def mark(progress: UserProgress) -> UserProgress:
        completed = progress.completed_modules
        if module_id not in completed:
            completed = (*completed, module_id)
        return replace(
            progress,
            completed_modules=completed,
            overall_progress=percent(len(completed), total_module_count),
            updated_at=datetime.now(UTC),
        )

    _, updated = await _apply(repo, user_id, course_id, mark)
    MODULE_COMPLETIONS.inc()
    logger.info(
        "Module completed user_id=%s course_id=%s progress=%d",
        user_id,
        course_id,
        updated.overall_progress,
    )
    return updated


async def recompute(
    repo: ProgressRepo, user_id: str, course_id: UUID, total_module_count: int
) -> UserProgress:
    """Persist ``overall_progress`` from the current completed set."""
    if total_module_count <= 0:
        raise ValidationError("total_module_count must be positive")

    def rescore(progress: UserProgress) -> UserProgress:
        return replace(
            progress,
            overall_progress=percent(
                len(progress.completed_modules), total_module_count
            ),
            updated_at=datetime.now(UTC),
        )

    _, updated = await _apply(repo, user_id, course_id, rescore)
    return updated


async def award_certificate(
    repo: ProgressRepo, user_id: str, course_id: UUID
) -> UserProgress:
    """Set ``certificate_earned``; ``completed_at`` is stamped only the first time."""

    def earn(progress: UserProgress) -> UserProgress:
        now = datetime.now(UTC)
        return replace(
            progress,
            certificate_earned=True,
            completed_at=progress.completed_at or now,
            updated_at=now,
        )

    before, updated = await _apply(repo, user_id, course_id, earn)
    if not before.certificate_earned:
        logger.info("Certificate earned user_id=%s course_id=%s", user_id, course_id)
    return updated
