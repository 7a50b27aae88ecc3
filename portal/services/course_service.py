"""Course catalogue and authoring.

Authoring input is sanitized the way the editor UI always did: text is
trimmed and capped, numbers are clamped, and a blank required field is a
ValidationError naming its position.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from uuid import UUID

from portal.core.errors import NotFoundError, PermissionDenied, ValidationError
from portal.models.course import Course, CourseModule
from portal.models.principal import Principal
from portal.models.quiz import DEFAULT_PASSING_SCORE, DEFAULT_POINTS, Quiz, QuizQuestion
from portal.repos.registry import Repositories
from portal.services import notifications, progress_summary

logger = logging.getLogger(__name__)

MAX_TITLE = 200
MAX_DESCRIPTION = 2000
MAX_MODULE_CONTENT = 100_000
MAX_QUESTION = 500
MAX_OPTIONS = 10


@dataclass(frozen=True, slots=True)
class ModuleDraft:
    title: str
    content: str
    estimated_time: int = 10


@dataclass(frozen=True, slots=True)
class QuestionDraft:
    question: str
    type: str
    correct_answer: str
    options: tuple[str, ...] = ()
    points: int = DEFAULT_POINTS


@dataclass(frozen=True, slots=True)
class QuizDraft:
    title: str
    passing_score: int = DEFAULT_PASSING_SCORE
    questions: tuple[QuestionDraft, ...] = field(default=())


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _required(value: str, limit: int, what: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{what} is required")
    return cleaned[:limit]


def _build_quiz(course_id: UUID, draft: QuizDraft, position: int) -> Quiz:
    label = f"Quiz {position + 1}"
    quiz = Quiz.new(
        course_id=course_id,
        title=_required(draft.title, MAX_TITLE, f"{label} title"),
        passing_score=_clamp(draft.passing_score, 1, 100),
        order_index=position,
    )
    questions = []
    for q_index, q in enumerate(draft.questions):
        q_label = f"{label}, Question {q_index + 1}"
        options: tuple[str, ...] = ()
        if q.type == "multiple-choice":
            options = tuple(o.strip()[:MAX_TITLE] for o in q.options if o.strip())
            options = options[:MAX_OPTIONS]
            if len(options) < 2:
                raise ValidationError(f"{q_label} must have at least 2 options")
        questions.append(
            QuizQuestion.new(
                quiz_id=quiz.id,
                question=_required(q.question, MAX_QUESTION, f"{q_label} text"),
                type=q.type,  # type: ignore[arg-type]
                correct_answer=_required(
                    q.correct_answer, MAX_QUESTION, f"{q_label} correct answer"
                ),
                options=options,
                points=_clamp(q.points, 1, 100),
            )
        )
    return replace(quiz, questions=tuple(questions))


async def list_courses(repos: Repositories, principal: Principal) -> list[Course]:
    return await repos.courses.list_courses(include_unpublished=principal.is_staff())


async def get_course(
    repos: Repositories, principal: Principal, course_id: UUID
) -> tuple[Course, list[Quiz]]:
    course = await repos.courses.get(course_id)
    if course is None or not (course.is_published or principal.is_staff()):
        raise NotFoundError("course not found")
    return course, await repos.quizzes.list_for_course(course_id)


async def create_course(
    repos: Repositories,
    principal: Principal,
    *,
    title: str,
    description: str,
    estimated_time: int,
    is_published: bool = False,
    modules: list[ModuleDraft],
    quizzes: list[QuizDraft],
) -> tuple[Course, list[Quiz]]:
    if not principal.is_staff():
        raise PermissionDenied()

    course = Course.new(
        title=_required(title, MAX_TITLE, "Course title"),
        description=_required(description, MAX_DESCRIPTION, "Course description"),
        estimated_time=_clamp(estimated_time, 1, 10_000),
        is_published=is_published,
        created_by=principal.user_id,
    )
    built_modules = tuple(
        CourseModule.new(
            course_id=course.id,
            title=_required(m.title, MAX_TITLE, f"Module {i + 1} title"),
            content=_required(m.content, MAX_MODULE_CONTENT, f"Module {i + 1} content"),
            order_index=i,
            estimated_time=_clamp(m.estimated_time, 1, 1000),
        )
        for i, m in enumerate(modules)
    )
    built_quizzes = [_build_quiz(course.id, q, i) for i, q in enumerate(quizzes)]
    course = replace(course, modules=built_modules)

    await repos.courses.add(course)
    for quiz in built_quizzes:
        await repos.quizzes.add_quiz(quiz)

    logger.info(
        "Course created course_id=%s modules=%d quizzes=%d by=%s",
        course.id,
        len(built_modules),
        len(built_quizzes),
        principal.user_id,
    )
    await notifications.notify(
        "staff",
        notifications.embed(
            "📚 New Course Created",
            f'"{course.title}" was created',
            fields={
                "Course ID": notifications.short_id(course.id),
                "Created By": principal.username,
                "Modules": str(len(built_modules)),
                "Quizzes": str(len(built_quizzes)),
                "Status": "Published" if course.is_published else "Draft",
            },
        ),
    )
    return course, built_quizzes


async def add_quiz(
    repos: Repositories, principal: Principal, course_id: UUID, draft: QuizDraft
) -> Quiz:
    if not principal.is_staff():
        raise PermissionDenied()
    if await repos.courses.get(course_id) is None:
        raise NotFoundError("course not found")
    existing = await repos.quizzes.list_for_course(course_id)
    quiz = _build_quiz(course_id, draft, len(existing))
    await repos.quizzes.add_quiz(quiz)
    logger.info("Quiz added quiz_id=%s course_id=%s", quiz.id, course_id)
    return quiz


async def set_published(
    repos: Repositories, principal: Principal, course_id: UUID, is_published: bool
) -> Course:
    if not principal.is_staff():
        raise PermissionDenied()
    course = await repos.courses.set_published(course_id, is_published)
    if course is None:
        raise NotFoundError("course not found")
    logger.info("Course %s published=%s", course_id, is_published)
    await notifications.notify(
        "staff",
        notifications.embed(
            "✏️ Course Updated",
            f'"{course.title}" is now {"published" if is_published else "a draft"}',
            fields={
                "Course ID": notifications.short_id(course.id),
                "Updated By": principal.username,
            },
        ),
    )
    return course


async def update_course(
    repos: Repositories,
    principal: Principal,
    course_id: UUID,
    *,
    title: str,
    description: str,
    estimated_time: float,
    is_published: bool,
) -> Course:
    """Admin edit of a course's details; modules and quizzes are left alone.

    ``estimated_time`` must lie in 1..10000 minutes and is floored.
    """
    if not principal.is_admin():
        raise PermissionDenied()
    if not 1 <= estimated_time <= 10_000:
        raise ValidationError("Invalid estimated time")

    course = await repos.courses.update_details(
        course_id,
        title=_required(title, MAX_TITLE, "Course title"),
        description=_required(description, MAX_DESCRIPTION, "Course description"),
        estimated_time=_clamp(math.floor(estimated_time), 1, 10_000),
        is_published=bool(is_published),
    )
    if course is None:
        raise NotFoundError("course not found")
    await progress_summary.invalidate_course(course_id)
    logger.info("Course edited course_id=%s by=%s", course_id, principal.user_id)
    await notifications.notify(
        "staff",
        notifications.embed(
            "✏️ Course Updated",
            f"{principal.username} has updated a course",
            fields={
                "Course Title": course.title,
                "Estimated Time": f"{course.estimated_time} minutes",
                "Status": "Published" if course.is_published else "Draft",
                "Updated By": principal.username,
            },
        ),
    )
    return course


async def delete_course(
    repos: Repositories, principal: Principal, course_id: UUID
) -> None:
    if not principal.is_admin():
        raise PermissionDenied()
    course = await repos.courses.get(course_id)
    if course is None or not await repos.courses.delete(course_id):
        raise NotFoundError("course not found")
    await progress_summary.invalidate_course(course_id)
    logger.warning("Course deleted course_id=%s by=%s", course_id, principal.user_id)
    await notifications.notify(
        "staff",
        notifications.embed(
            "🗑️ Course Deleted",
            f'"{course.title}" was deleted',
            color=notifications.RED,
            fields={
                "Course ID": notifications.short_id(course_id),
                "Deleted By": principal.username,
            },
        ),
    )
