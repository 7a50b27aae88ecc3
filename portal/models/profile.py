from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

ROLES = ("applicant", "student", "staff", "admin")
STATUSES = ("pending", "accepted", "denied")


@dataclass(frozen=True, slots=True)
class Profile:
    id: str  # subject from the identity provider
    username: str
    role: str = "applicant"  # applicant|student|staff|admin
    status: str = "pending"  # pending|accepted|denied
    avatar: str | None = None
    created_at: datetime | None = None
    last_active: datetime | None = None

    @staticmethod
    def new(*, id: str, username: str, avatar: str | None = None) -> Profile:
        now = datetime.now(UTC)
        return Profile(
            id=id,
            username=username,
            avatar=avatar,
            created_at=now,
            last_active=now,
        )
