from __future__ import annotations

import asyncio
from uuid import uuid4

from portal.services.cache import InMemoryCacheService, course_pattern, summary_key


def test_summary_keys() -> None:
    course_id = uuid4()
    assert summary_key("learner-1", course_id) == f"summary:learner-1:{course_id}"
    assert course_pattern(course_id) == f"summary:*:{course_id}"


def test_expired_entries_are_misses() -> None:
    cache = InMemoryCacheService()
    asyncio.run(cache.set("k", "v", ttl_seconds=0))
    assert asyncio.run(cache.get("k")) is None
    assert "k" not in cache._store


def test_delete_pattern_matches_inner_wildcard() -> None:
    cache = InMemoryCacheService()
    course_id, other = uuid4(), uuid4()

    async def fill() -> None:
        for user in ("a", "b"):
            await cache.set(summary_key(user, course_id), "{}", 60)
        await cache.set(summary_key("a", other), "{}", 60)

    asyncio.run(fill())
    asyncio.run(cache.delete_pattern(course_pattern(course_id)))

    assert set(cache._store) == {summary_key("a", other)}
