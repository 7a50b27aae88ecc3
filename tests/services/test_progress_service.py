from __future__ import annotations

import asyncio
from uuid import uuid4

import pytest

from portal.core.errors import ConflictError, NotFoundError, ValidationError
from portal.models.progress import UserProgress
from portal.services import progress_service
from portal.services.progress_service import percent
from tests.conftest import seed_course


@pytest.mark.parametrize(
    ("part", "whole", "expected"),
    [(0, 3, 0), (1, 3, 33), (2, 3, 67), (1, 8, 13), (1, 2, 50), (3, 3, 100), (5, 3, 100)],
)
def test_percent_rounds_half_up(part: int, whole: int, expected: int) -> None:
    assert percent(part, whole) == expected


def test_percent_rejects_empty_total() -> None:
    with pytest.raises(ValidationError):
        percent(1, 0)


def _enroll(repos, course_id) -> UserProgress:
    progress, _ = asyncio.run(
        repos.progress.insert_if_absent(
            UserProgress.new(user_id="learner-1", course_id=course_id)
        )
    )
    return progress


def test_complete_module_recomputes_progress(repos) -> None:
    course, _ = seed_course(repos, modules=4)
    _enroll(repos, course.id)
    first, second = course.modules[0].id, course.modules[1].id

    p = asyncio.run(
        progress_service.complete_module(repos.progress, "learner-1", course.id, first, 4)
    )
    assert p.overall_progress == 25
    assert p.completed_modules == (first,)

    p = asyncio.run(
        progress_service.complete_module(repos.progress, "learner-1", course.id, second, 4)
    )
    assert p.overall_progress == 50


def test_completing_twice_keeps_set_semantics(repos) -> None:
    course, _ = seed_course(repos, modules=2)
    _enroll(repos, course.id)
    module_id = course.modules[0].id

    for _ in range(3):
        p = asyncio.run(
            progress_service.complete_module(
                repos.progress, "learner-1", course.id, module_id, 2
            )
        )
    assert p.completed_modules == (module_id,)
    assert p.overall_progress == 50


def test_complete_module_requires_enrollment(repos) -> None:
    course, _ = seed_course(repos)
    with pytest.raises(NotFoundError):
        asyncio.run(
            progress_service.complete_module(
                repos.progress, "learner-1", course.id, course.modules[0].id, 2
            )
        )


def test_complete_module_rejects_zero_total(repos) -> None:
    course, _ = seed_course(repos)
    _enroll(repos, course.id)
    with pytest.raises(ValidationError):
        asyncio.run(
            progress_service.complete_module(
                repos.progress, "learner-1", course.id, uuid4(), 0
            )
        )


def test_certificate_flag_survives_recompute(repos) -> None:
    course, _ = seed_course(repos, modules=2)
    _enroll(repos, course.id)

    awarded = asyncio.run(
        progress_service.award_certificate(repos.progress, "learner-1", course.id)
    )
    assert awarded.certificate_earned is True
    assert awarded.completed_at is not None

    p = asyncio.run(
        progress_service.complete_module(
            repos.progress, "learner-1", course.id, course.modules[0].id, 2
        )
    )
    assert p.certificate_earned is True

    again = asyncio.run(
        progress_service.award_certificate(repos.progress, "learner-1", course.id)
    )
    assert again.completed_at == awarded.completed_at


class _InterleavingRepo:
    """Yields to the event loop between reading a row and returning it."""

    def __init__(self, inner) -> None:
        self._inner = inner

    async def get(self, user_id, course_id):
        progress = await self._inner.get(user_id, course_id)
        await asyncio.sleep(0)
        return progress

    async def save(self, progress):
        return await self._inner.save(progress)


def test_concurrent_completion_keeps_earned_flag_and_modules(repos) -> None:
    course, _ = seed_course(repos, modules=2)
    _enroll(repos, course.id)
    m1, m2 = course.modules[0].id, course.modules[1].id
    asyncio.run(
        progress_service.complete_module(repos.progress, "learner-1", course.id, m1, 2)
    )
    repo = _InterleavingRepo(repos.progress)

    async def race():
        await asyncio.gather(
            progress_service.award_certificate(repo, "learner-1", course.id),
            progress_service.complete_module(repo, "learner-1", course.id, m2, 2),
        )

    asyncio.run(race())

    final = asyncio.run(repos.progress.get("learner-1", course.id))
    assert final.certificate_earned is True
    assert final.completed_at is not None
    assert set(final.completed_modules) == {m1, m2}
    assert final.overall_progress == 100


def test_gives_up_after_repeated_lost_races(repos) -> None:
    course, _ = seed_course(repos)
    _enroll(repos, course.id)

    class _AlwaysStale(_InterleavingRepo):
        async def save(self, progress):
            return None

    with pytest.raises(ConflictError):
        asyncio.run(
            progress_service.complete_module(
                _AlwaysStale(repos.progress),
                "learner-1",
                course.id,
                course.modules[0].id,
                2,
            )
        )


def test_row_deleted_before_save_is_not_found(repos) -> None:
    course, _ = seed_course(repos)
    _enroll(repos, course.id)

    class _DeletedUnderneath(_InterleavingRepo):
        async def get(self, user_id, course_id):
            progress = await self._inner.get(user_id, course_id)
            self._inner._store.pop((user_id, course_id), None)
            return progress

    with pytest.raises(NotFoundError):
        asyncio.run(
            progress_service.award_certificate(
                _DeletedUnderneath(repos.progress), "learner-1", course.id
            )
        )
