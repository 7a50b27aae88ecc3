"""Staff and applications notification sink.

Producers call ``notify()`` with a Discord-style embed; it is pushed onto
the ``notifications`` task queue and posted by the worker.  Nothing here
ever raises into the caller: a notification that cannot be queued or
delivered is logged and dropped.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Literal

import httpx
from redis.exceptions import RedisError

from portal.core.config import SETTINGS
from portal.core.metrics import NOTIFICATIONS
from portal.services.task_queue import NOTIFICATIONS_QUEUE, task_queue

logger = logging.getLogger(__name__)

Channel = Literal["staff", "applications"]

FOOTER = "Oakridge Education Portal"

GOLD = 0xEAC66D
GREEN = 0x00FF00
RED = 0xFF0000


def embed(
    title: str,
    description: str,
    *,
    color: int = GOLD,
    fields: dict[str, str] | None = None,
) -> dict:
    """Build one embed; ``fields`` render inline in insertion order."""
    return {
        "title": title,
        "description": description,
        "color": color,
        "fields": [
            {"name": name, "value": value, "inline": True}
            for name, value in (fields or {}).items()
        ],
        "timestamp": datetime.now(UTC).isoformat(),
        "footer": {"text": FOOTER},
    }


def short_id(value: object) -> str:
    return f"#{str(value)[:8]}"


async def notify(channel: Channel, message: dict) -> None:
    try:
        await task_queue.enqueue(
            NOTIFICATIONS_QUEUE, {"channel": channel, "embeds": [message]}
        )
    except (RedisError, OSError) as e:
        NOTIFICATIONS.labels(outcome="failed").inc()
        logger.warning("Could not queue %s notification: %s", channel, e)
        return
    NOTIFICATIONS.labels(outcome="queued").inc()


def webhook_url(channel: str) -> str | None:
    if channel == "applications":
        return SETTINGS.applications_webhook_url
    return SETTINGS.staff_webhook_url


async def deliver(payload: dict, client: httpx.AsyncClient) -> bool:
    """POST one queued notification.  Returns True when the webhook accepted it."""
    channel = payload.get("channel", "staff")
    url = webhook_url(channel)
    if url is None:
        NOTIFICATIONS.labels(outcome="dropped").inc()
        logger.info("No webhook configured for channel=%s, notification dropped", channel)
        return False

    try:
        resp = await client.post(url, json={"embeds": payload.get("embeds", [])})
        resp.raise_for_status()
    except httpx.HTTPError as e:
        NOTIFICATIONS.labels(outcome="failed").inc()
        logger.warning("Webhook delivery failed channel=%s: %s", channel, e)
        return False

    NOTIFICATIONS.labels(outcome="delivered").inc()
    return True
