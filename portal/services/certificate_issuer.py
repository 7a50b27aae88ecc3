"""Certificate issuance after a qualifying completion.

The caller has already persisted ``certificate_earned = True``.  A
store-side job may create the certificate row in response, so the issuer
first polls for it on a fixed schedule and only then writes one itself.
The fallback write is an insert-if-absent against the unique key on valid
certificates, so two racing completions end with a single certificate.

    attempt:   1     2     3     4     5     -> fallback
    wait (s):  3     4     4     4     4        (19 s worst case)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass
from uuid import UUID

from portal.core.config import SETTINGS, Settings
from portal.core.errors import (
    IdentifierTaken,
    PersistenceError,
    ReferentialIntegrityError,
)
from portal.core.metrics import CERTIFICATE_POLL_ATTEMPTS, CERTIFICATES_ISSUED
from portal.models.certificate import Certificate
from portal.repos.registry import Repositories

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

IDENTIFIER_ATTEMPTS = 3


@dataclass(frozen=True, slots=True)
class PollPolicy:
    max_attempts: int = 5
    initial_delay: float = 3.0
    interval: float = 4.0

    @classmethod
    def from_settings(cls, settings: Settings = SETTINGS) -> PollPolicy:
        return cls(
            max_attempts=settings.certificate_poll_attempts,
            initial_delay=settings.certificate_poll_initial_delay,
            interval=settings.certificate_poll_interval,
        )

    def delays(self) -> Iterator[float]:
        """Wait before each attempt, in order."""
        for attempt in range(self.max_attempts):
            yield self.initial_delay if attempt == 0 else self.interval


async def _poll(
    repos: Repositories,
    user_id: str,
    course_id: UUID,
    policy: PollPolicy,
    sleep: Sleep,
) -> Certificate | None:
    for attempt, delay in enumerate(policy.delays(), start=1):
        await sleep(delay)
        CERTIFICATE_POLL_ATTEMPTS.inc()
        try:
            found = await repos.certificates.find_valid(user_id, course_id)
        except PersistenceError as e:
            logger.warning("Certificate poll %d read failed: %s", attempt, e)
            continue
        if found is not None:
            logger.info(
                "Certificate appeared on poll %d user_id=%s course_id=%s",
                attempt,
                user_id,
                course_id,
            )
            return found
    return None


async def _create_fallback(
    repos: Repositories,
    user_id: str,
    course_id: UUID,
    username: str,
    course_name: str,
) -> Certificate:
    profile = await repos.profiles.get(user_id)
    if profile is None:
        raise ReferentialIntegrityError(f"user {user_id} no longer exists")
    course = await repos.courses.get(course_id)
    if course is None:
        raise ReferentialIntegrityError(f"course {course_id} no longer exists")

    progress = await repos.progress.get(user_id, course_id)
    metadata = {
        "issued_via": "fallback",
        "progress": progress.overall_progress if progress is not None else 100,
        "validated_user": profile.username,
        "validated_course": course.title,
    }
    for attempt in range(1, IDENTIFIER_ATTEMPTS + 1):
        candidate = Certificate.new(
            user_id=user_id,
            course_id=course_id,
            student_name=username or profile.username,
            course_name=course_name or course.title,
            metadata=metadata,
        )
        try:
            stored, created = await repos.certificates.insert_if_absent(candidate)
            break
        except IdentifierTaken:
            logger.warning(
                "Certificate identifier %s taken on attempt %d, regenerating",
                candidate.registry_number,
                attempt,
            )
    else:
        raise PersistenceError("could not allocate a unique certificate identifier")

    if created:
        CERTIFICATES_ISSUED.labels(path="fallback").inc()
        logger.info(
            "Certificate issued certificate_id=%s user_id=%s course_id=%s",
            stored.certificate_id,
            user_id,
            course_id,
        )
    else:
        CERTIFICATES_ISSUED.labels(path="race_lost").inc()
        logger.info(
            "Concurrent issuance won for user_id=%s course_id=%s, reusing %s",
            user_id,
            course_id,
            stored.certificate_id,
        )
    return stored


async def issue_if_eligible(
    repos: Repositories,
    user_id: str,
    course_id: UUID,
    username: str,
    course_name: str,
    *,
    policy: PollPolicy | None = None,
    sleep: Sleep = asyncio.sleep,
) -> Certificate:
    """Return the valid certificate for (user, course), creating it if needed.

    Raises ReferentialIntegrityError when the user or course vanished
    before the fallback write, PersistenceError when that write fails.
    """
    existing = await repos.certificates.find_valid(user_id, course_id)
    if existing is not None:
        CERTIFICATES_ISSUED.labels(path="existing").inc()
        return existing

    found = await _poll(
        repos, user_id, course_id, policy or PollPolicy.from_settings(), sleep
    )
    if found is not None:
        CERTIFICATES_ISSUED.labels(path="polled").inc()
        return found

    logger.info(
        "No certificate after polling, creating one user_id=%s course_id=%s",
        user_id,
        course_id,
    )
    return await _create_fallback(repos, user_id, course_id, username, course_name)
