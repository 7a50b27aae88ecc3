from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

QUESTION_TYPES = ("text", "textarea", "select", "radio")
CHOICE_TYPES = ("select", "radio")


@dataclass(frozen=True, slots=True)
class ApplicationQuestion:
    id: UUID
    question: str
    type: str = "text"  # text|textarea|select|radio
    options: tuple[str, ...] = ()
    required: bool = True
    order_index: int = 0

    @staticmethod
    def new(
        *,
        question: str,
        type: str = "text",
        options: tuple[str, ...] = (),
        required: bool = True,
        order_index: int = 0,
    ) -> ApplicationQuestion:
        return ApplicationQuestion(
            id=uuid4(),
            question=question,
            type=type,
            options=tuple(options),
            required=required,
            order_index=order_index,
        )


@dataclass(frozen=True, slots=True)
class Application:
    id: UUID
    user_id: str
    responses: dict[str, str] = field(default_factory=dict)
    status: str = "pending"  # pending|accepted|denied
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    notes: str | None = None
    submitted_at: datetime | None = None

    @staticmethod
    def new(*, user_id: str, responses: dict[str, str]) -> Application:
        return Application(
            id=uuid4(),
            user_id=user_id,
            responses=dict(responses),
            submitted_at=datetime.now(UTC),
        )
