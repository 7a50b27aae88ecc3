"""Per-course progress summary behind a read-through cache.

Cache key ``summary:{user_id}:{course_id}``.  Writers call
``invalidate()`` after any progress or quiz write for the pair.  Cache
trouble degrades to a direct read; it never fails the request.
"""

from __future__ import annotations

import json
import logging
from uuid import UUID

from redis.exceptions import RedisError

from portal.core.config import SETTINGS
from portal.core.errors import NotFoundError
from portal.core.metrics import CACHE_OPERATIONS
from portal.repos.registry import Repositories
from portal.services.cache import cache_service, course_pattern, summary_key

logger = logging.getLogger(__name__)


async def _build(repos: Repositories, user_id: str, course_id: UUID) -> dict:
    progress = await repos.progress.get(user_id, course_id)
    if progress is None:
        raise NotFoundError("not enrolled in this course")
    course = await repos.courses.get(course_id)
    if course is None:
        raise NotFoundError("course not found")

    quizzes = []
    for quiz in await repos.quizzes.list_for_course(course_id):
        attempts = await repos.quizzes.list_results(user_id=user_id, quiz_id=quiz.id)
        quizzes.append(
            {
                "quiz_id": str(quiz.id),
                "title": quiz.title,
                "attempts": len(attempts),
                "best_score": max((a.score for a in attempts), default=None),
                "total_points": quiz.total_points,
                "passed": any(a.passed for a in attempts),
            }
        )

    cert = await repos.certificates.find_valid(user_id, course_id)
    completed = set(progress.completed_modules)
    return {
        "course_id": str(course_id),
        "course_title": course.title,
        "overall_progress": progress.overall_progress,
        "completed_modules": len(completed & course.module_ids),
        "total_modules": len(course.modules),
        "certificate_earned": progress.certificate_earned,
        "certificate_id": cert.certificate_id if cert is not None else None,
        "quizzes": quizzes,
    }


async def get_summary(repos: Repositories, user_id: str, course_id: UUID) -> dict:
    key = summary_key(user_id, course_id)
    try:
        cached = await cache_service.get(key)
    except RedisError as e:
        logger.warning("Cache read failed key=%s: %s", key, e)
        cached = None
    if cached is not None:
        CACHE_OPERATIONS.labels(operation="hit").inc()
        return json.loads(cached)

    CACHE_OPERATIONS.labels(operation="miss").inc()
    summary = await _build(repos, user_id, course_id)
    try:
        await cache_service.set(key, json.dumps(summary), SETTINGS.progress_cache_ttl)
    except RedisError as e:
        logger.warning("Cache write failed key=%s: %s", key, e)
    return summary


async def invalidate(user_id: str, course_id: UUID) -> None:
    try:
        await cache_service.delete(summary_key(user_id, course_id))
    except RedisError as e:
        logger.warning("Cache invalidation failed user_id=%s: %s", user_id, e)


async def invalidate_course(course_id: UUID) -> None:
    try:
        await cache_service.delete_pattern(course_pattern(course_id))
    except RedisError as e:
        logger.warning("Cache invalidation failed course_id=%s: %s", course_id, e)
