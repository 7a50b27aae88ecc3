"""Key/value cache behind the progress summary.

Only ``progress_summary`` reads and writes it.  Keys look like
``summary:{user_id}:{course_id}``; a whole course is dropped with the glob
``summary:*:{course_id}`` when the course is deleted.  TTL is
``PROGRESS_CACHE_TTL`` and only bounds staleness: every progress or quiz
write deletes its own key.
"""

from __future__ import annotations

import time
from fnmatch import fnmatchcase
from typing import Protocol, runtime_checkable

from portal.db.redis import redis_pool

SUMMARY_PREFIX = "summary"


def summary_key(user_id: str, course_id: object) -> str:
    return f"{SUMMARY_PREFIX}:{user_id}:{course_id}"


def course_pattern(course_id: object) -> str:
    return f"{SUMMARY_PREFIX}:*:{course_id}"


@runtime_checkable
class CacheService(Protocol):
    async def get(self, key: str) -> str | None: ...
    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...
    async def delete(self, key: str) -> None: ...

    async def delete_pattern(self, pattern: str) -> None:
        """Drop every key matching a glob (``*`` anywhere in the pattern)."""
        ...


class InMemoryCacheService:
    """Process-local cache used when REDIS_URL is unset."""

    def __init__(self) -> None:
        # key -> (value, monotonic expiry)
        self._store: dict[str, tuple[str, float]] = {}

    async def get(self, key: str) -> str | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= time.monotonic():
            del self._store[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._store[key] = (value, time.monotonic() + ttl_seconds)

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)

    async def delete_pattern(self, pattern: str) -> None:
        for key in [k for k in self._store if fnmatchcase(k, pattern)]:
            del self._store[key]


class RedisCacheService:
    """Shared across API replicas; keys live under the ``cache:`` namespace."""

    _NAMESPACE = "cache:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    def _k(self, key: str) -> str:
        return self._NAMESPACE + key

    async def get(self, key: str) -> str | None:
        return await self._redis.get(self._k(key))

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        await self._redis.set(self._k(key), value, ex=ttl_seconds)

    async def delete(self, key: str) -> None:
        await self._redis.delete(self._k(key))

    async def delete_pattern(self, pattern: str) -> None:
        # Incremental SCAN keeps Redis responsive on a large keyspace
        batch: list[str] = []
        async for key in self._redis.scan_iter(match=self._k(pattern), count=200):
            batch.append(key)
            if len(batch) >= 200:
                await self._redis.delete(*batch)
                batch.clear()
        if batch:
            await self._redis.delete(*batch)


cache_service: CacheService = (
    RedisCacheService(redis_pool) if redis_pool is not None else InMemoryCacheService()
)
