from __future__ import annotations

import asyncio
import os
import sys
from dataclasses import replace
from pathlib import Path

# Settings are read once at import time: keep the suite in-memory and make
# the certificate poll instant before anything from portal is imported.
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("CERTIFICATE_POLL_INITIAL_DELAY", "0")
os.environ.setdefault("CERTIFICATE_POLL_INTERVAL", "0")
os.environ.pop("DATABASE_URL", None)
os.environ.pop("REDIS_URL", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from portal.main import app  # noqa: E402
from portal.models.course import Course, CourseModule  # noqa: E402
from portal.models.principal import Principal  # noqa: E402
from portal.models.profile import Profile  # noqa: E402
from portal.models.quiz import Quiz, QuizQuestion  # noqa: E402
from portal.repos import registry  # noqa: E402
from portal.repos.registry import Repositories  # noqa: E402
from portal.services import token_service  # noqa: E402
from portal.services.cache import cache_service  # noqa: E402
from portal.services.task_queue import task_queue  # noqa: E402

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def repos() -> Repositories:
    """Fresh in-memory repositories for every test."""
    return registry.reset_memory_repos()


@pytest.fixture(autouse=True)
def reset_cache() -> None:
    if hasattr(cache_service, "_store"):
        cache_service._store.clear()  # type: ignore[union-attr]


@pytest.fixture(autouse=True)
def reset_task_queue() -> None:
    if hasattr(task_queue, "_queues"):
        task_queue._queues.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(
    sub: str = "learner-1",
    username: str | None = None,
    roles: list[str] | None = None,
) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(
        sub=sub, username=username or sub, roles=roles or ["student"]
    )


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def token() -> str:
    return mint_token()


@pytest.fixture
def staff_token() -> str:
    return mint_token(sub="staff-1", roles=["staff"])


@pytest.fixture
def admin_token() -> str:
    return mint_token(sub="admin-1", roles=["admin"])


# ---------------------------------------------------------------------------
# Seed helpers
# ---------------------------------------------------------------------------


def seed_profile(repos: Repositories, user_id: str = "learner-1") -> Profile:
    profile = Profile.new(id=user_id, username=user_id)
    return asyncio.run(repos.profiles.upsert(profile))


def seed_course(
    repos: Repositories,
    *,
    modules: int = 2,
    questions: int = 10,
    passing_score: int = 70,
    published: bool = True,
    title: str = "Intro to Aviation",
) -> tuple[Course, Quiz]:
    """A published course with ``modules`` modules and one short-answer quiz.

    Question ``i`` has correct answer ``"a{i}"``.
    """
    course = Course.new(title=title, description="Basics", is_published=published)
    course_modules = tuple(
        CourseModule.new(
            course_id=course.id, title=f"Module {i + 1}", content="...", order_index=i
        )
        for i in range(modules)
    )
    course = replace(course, modules=course_modules)
    quiz = Quiz.new(course_id=course.id, title="Final", passing_score=passing_score)
    quiz = replace(
        quiz,
        questions=tuple(
            QuizQuestion.new(
                quiz_id=quiz.id,
                question=f"Q{i}",
                type="short-answer",
                correct_answer=f"a{i}",
            )
            for i in range(questions)
        ),
    )

    async def _store() -> None:
        await repos.courses.add(course)
        await repos.quizzes.add_quiz(quiz)

    asyncio.run(_store())
    return course, quiz


def answers_for(quiz: Quiz, correct: int) -> dict[str, str]:
    """Answer the first ``correct`` questions right and the rest wrong."""
    return {
        str(q.id): q.correct_answer if i < correct else "wrong"
        for i, q in enumerate(quiz.questions)
    }


def principal(
    user_id: str = "learner-1", roles: tuple[str, ...] = ("student",)
) -> Principal:
    return Principal(user_id=user_id, username=user_id, roles=frozenset(roles))
