"""Response models shared by more than one router."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from portal.models.certificate import Certificate
from portal.models.progress import UserProgress
from portal.models.quiz import QuizResult


class ProgressOut(BaseModel):
    id: str
    user_id: str
    course_id: str
    completed_modules: list[str]
    overall_progress: int
    certificate_earned: bool
    started_at: datetime | None
    completed_at: datetime | None

    @classmethod
    def from_domain(cls, p: UserProgress) -> ProgressOut:
        return cls(
            id=str(p.id),
            user_id=p.user_id,
            course_id=str(p.course_id),
            completed_modules=[str(m) for m in p.completed_modules],
            overall_progress=p.overall_progress,
            certificate_earned=p.certificate_earned,
            started_at=p.started_at,
            completed_at=p.completed_at,
        )


class QuizResultOut(BaseModel):
    id: str
    quiz_id: str
    score: int
    total_points: int
    passed: bool
    answers: dict[str, str]
    completed_at: datetime

    @classmethod
    def from_domain(cls, r: QuizResult) -> QuizResultOut:
        return cls(
            id=str(r.id),
            quiz_id=str(r.quiz_id),
            score=r.score,
            total_points=r.total_points,
            passed=r.passed,
            answers=dict(r.answers),
            completed_at=r.completed_at,
        )


class CertificateOut(BaseModel):
    certificate_id: str
    registry_number: str
    user_id: str
    course_id: str
    student_name: str
    course_name: str
    completion_date: datetime
    issued_date: datetime
    valid_until: datetime
    is_valid: bool

    @classmethod
    def from_domain(cls, c: Certificate) -> CertificateOut:
        return cls(
            certificate_id=c.certificate_id,
            registry_number=c.registry_number,
            user_id=c.user_id,
            course_id=str(c.course_id),
            student_name=c.student_name,
            course_name=c.course_name,
            completion_date=c.completion_date,
            issued_date=c.issued_date,
            valid_until=c.valid_until,
            is_valid=c.is_valid,
        )
