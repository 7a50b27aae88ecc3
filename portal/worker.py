"""Background worker process.

RUN:  python -m portal.worker

Same image as the API, different command.  Pops tasks off every
registered queue in turn and hands each to its handler.  A handler that
raises is logged and the task is dropped; there is no retry queue.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

import httpx

from portal.core.config import SETTINGS
from portal.core.logging import setup_logging
from portal.core.metrics import QUEUE_DEPTH
from portal.services import notifications
from portal.services.task_queue import (
    NOTIFICATIONS_QUEUE,
    InMemoryTaskQueue,
    TaskQueue,
    task_queue,
)

TaskHandler = Callable[[dict], Coroutine[Any, Any, None]]

logger = logging.getLogger("portal.worker")

WEBHOOK_TIMEOUT = httpx.Timeout(10.0, connect=5.0)

HANDLERS: dict[str, TaskHandler] = {}

_client: httpx.AsyncClient | None = None


def register_handler(queue: str):
    """Decorator: register a coroutine as the handler for a queue."""

    def decorator(func):
        HANDLERS[queue] = func
        return func

    return decorator


def _http_client() -> httpx.AsyncClient:
    global _client
    if _client is None:
        _client = httpx.AsyncClient(timeout=WEBHOOK_TIMEOUT)
    return _client


@register_handler(NOTIFICATIONS_QUEUE)
async def handle_notification(payload: dict) -> None:
    await notifications.deliver(payload, _http_client())


async def run_once(queue: TaskQueue = task_queue, *, timeout: int = 1) -> int:
    """One pass over every registered queue.  Returns tasks handled."""
    handled = 0
    for queue_name, handler in HANDLERS.items():
        task = await queue.dequeue(queue_name, timeout=timeout)
        if task is None:
            continue
        handled += 1
        try:
            await handler(task.payload)
            logger.info("Task %s on [%s] completed", task.id, queue_name)
        except Exception:
            logger.exception("Task %s on [%s] failed", task.id, queue_name)
        QUEUE_DEPTH.labels(queue_name=queue_name).set(
            await queue.queue_length(queue_name)
        )
    return handled


async def run_worker() -> None:
    logger.info("Worker started, listening on queues: %s", list(HANDLERS))
    if isinstance(task_queue, InMemoryTaskQueue):
        logger.warning("No REDIS_URL configured, the worker only sees its own queue")
    try:
        while True:
            # In-memory dequeue never blocks
            if not await run_once() and isinstance(task_queue, InMemoryTaskQueue):
                await asyncio.sleep(1)
    finally:
        if _client is not None:
            await _client.aclose()


if __name__ == "__main__":
    setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)
    asyncio.run(run_worker())
