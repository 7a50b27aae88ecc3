from __future__ import annotations

import asyncio

from portal.services.task_queue import NOTIFICATIONS_QUEUE, InMemoryTaskQueue, Task


def test_in_memory_queue_is_fifo() -> None:
    queue = InMemoryTaskQueue()

    async def scenario() -> list[str]:
        for title in ("first", "second"):
            await queue.enqueue(NOTIFICATIONS_QUEUE, {"title": title})
        assert await queue.queue_length(NOTIFICATIONS_QUEUE) == 2
        popped = [await queue.dequeue(NOTIFICATIONS_QUEUE) for _ in range(3)]
        return [t.payload["title"] for t in popped if t is not None]

    assert asyncio.run(scenario()) == ["first", "second"]


def test_task_serializes_for_redis() -> None:
    task = Task(queue=NOTIFICATIONS_QUEUE, payload={"channel": "staff", "embeds": []})
    assert Task.from_json(task.to_json()) == task
