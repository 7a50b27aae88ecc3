"""Repository bundle handed to the services.

Without DATABASE_URL the API shares one set of in-memory repositories
(``memory_repos``) for the life of the process.  With it, every request
gets a fresh Postgres bundle bound to its own session.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from portal.repos.application_repo import ApplicationRepo, InMemoryApplicationRepo
from portal.repos.certificate_repo import CertificateRepo, InMemoryCertificateRepo
from portal.repos.course_repo import CourseRepo, InMemoryCourseRepo
from portal.repos.pg_application_repo import PgApplicationRepo
from portal.repos.pg_certificate_repo import PgCertificateRepo
from portal.repos.pg_course_repo import PgCourseRepo
from portal.repos.pg_profile_repo import PgProfileRepo
from portal.repos.pg_progress_repo import PgProgressRepo
from portal.repos.pg_quiz_repo import PgQuizRepo
from portal.repos.profile_repo import InMemoryProfileRepo, ProfileRepo
from portal.repos.progress_repo import InMemoryProgressRepo, ProgressRepo
from portal.repos.quiz_repo import InMemoryQuizRepo, QuizRepo


@dataclass(frozen=True, slots=True)
class Repositories:
    profiles: ProfileRepo
    courses: CourseRepo
    quizzes: QuizRepo
    progress: ProgressRepo
    certificates: CertificateRepo
    applications: ApplicationRepo


def in_memory() -> Repositories:
    return Repositories(
        profiles=InMemoryProfileRepo(),
        courses=InMemoryCourseRepo(),
        quizzes=InMemoryQuizRepo(),
        progress=InMemoryProgressRepo(),
        certificates=InMemoryCertificateRepo(),
        applications=InMemoryApplicationRepo(),
    )


def postgres(session: AsyncSession) -> Repositories:
    return Repositories(
        profiles=PgProfileRepo(session),
        courses=PgCourseRepo(session),
        quizzes=PgQuizRepo(session),
        progress=PgProgressRepo(session),
        certificates=PgCertificateRepo(session),
        applications=PgApplicationRepo(session),
    )


memory_repos = in_memory()


def reset_memory_repos() -> Repositories:
    """Swap in an empty in-memory bundle (test isolation)."""
    global memory_repos
    memory_repos = in_memory()
    return memory_repos
