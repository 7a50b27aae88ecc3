"""FIFO work queue between the API and ``portal.worker``.

The portal runs a single queue, ``notifications``: staff and applications
webhook posts that must not hold up the request that triggered them.
Delivery is at-most-once.  A task popped by a worker that then dies is
gone, which is acceptable for notifications.

Redis layout: one list per queue at ``queue:<name>``, RPUSH to produce
and BLPOP to consume.
"""

from __future__ import annotations

import json
import uuid
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Protocol, runtime_checkable

from portal.db.redis import redis_pool

NOTIFICATIONS_QUEUE = "notifications"


def _now() -> str:
    return datetime.now(UTC).isoformat()


@dataclass(frozen=True, slots=True)
class Task:
    queue: str
    payload: dict
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    enqueued_at: str = field(default_factory=_now)

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> Task:
        return cls(**json.loads(raw))


@runtime_checkable
class TaskQueue(Protocol):
    async def enqueue(self, queue: str, payload: dict) -> Task: ...

    async def dequeue(self, queue: str, timeout: int = 0) -> Task | None:
        """Next task, or None once ``timeout`` seconds pass with nothing queued."""
        ...

    async def queue_length(self, queue: str) -> int: ...


class InMemoryTaskQueue:
    """Without REDIS_URL: only a worker in the same process sees these tasks."""

    def __init__(self) -> None:
        self._queues: dict[str, deque[Task]] = {}

    async def enqueue(self, queue: str, payload: dict) -> Task:
        task = Task(queue=queue, payload=payload)
        self._queues.setdefault(queue, deque()).append(task)
        return task

    async def dequeue(self, queue: str, timeout: int = 0) -> Task | None:
        pending = self._queues.get(queue)
        return pending.popleft() if pending else None

    async def queue_length(self, queue: str) -> int:
        return len(self._queues.get(queue, ()))


class RedisTaskQueue:
    _NAMESPACE = "queue:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    def _key(self, queue: str) -> str:
        return self._NAMESPACE + queue

    async def enqueue(self, queue: str, payload: dict) -> Task:
        task = Task(queue=queue, payload=payload)
        await self._redis.rpush(self._key(queue), task.to_json())
        return task

    async def dequeue(self, queue: str, timeout: int = 5) -> Task | None:
        popped = await self._redis.blpop([self._key(queue)], timeout=timeout)
        if popped is None:
            return None
        _key, raw = popped
        return Task.from_json(raw)

    async def queue_length(self, queue: str) -> int:
        return await self._redis.llen(self._key(queue))


task_queue: TaskQueue = (
    RedisTaskQueue(redis_pool) if redis_pool is not None else InMemoryTaskQueue()
)
