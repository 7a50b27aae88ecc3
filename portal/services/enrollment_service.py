from __future__ import annotations

import logging
from uuid import UUID

from portal.core.errors import NotAuthenticated, NotFoundError, PermissionDenied
from portal.core.metrics import ENROLLMENTS
from portal.models.principal import Principal
from portal.models.progress import UserProgress
from portal.repos.registry import Repositories
from portal.services.profile_service import ensure_profile

logger = logging.getLogger(__name__)


async def enroll(
    repos: Repositories, principal: Principal | None, course_id: UUID
) -> tuple[UserProgress, bool]:
    """Create the progress row for (caller, course), or return the existing one.

    Returns ``(progress, created)``.  A concurrent enrollment that loses the
    uniqueness race gets the winner's row back with ``created=False``.
    Applicants are refused until their application is accepted.
    """
    if principal is None:
        raise NotAuthenticated()
    if not principal.can_enroll():
        raise PermissionDenied("enrollment opens once your application is accepted")

    course = await repos.courses.get(course_id)
    if course is None or not (course.is_published or principal.is_staff()):
        raise NotFoundError("course not found")

    await ensure_profile(repos.profiles, principal)

    existing = await repos.progress.get(principal.user_id, course_id)
    if existing is not None:
        ENROLLMENTS.labels(result="existing").inc()
        return existing, False

    progress, created = await repos.progress.insert_if_absent(
        UserProgress.new(user_id=principal.user_id, course_id=course_id)
    )
    ENROLLMENTS.labels(result="created" if created else "existing").inc()
    if created:
        logger.info(
            "Enrolled user_id=%s course_id=%s", principal.user_id, course_id
        )
    return progress, created
