"""initial portal schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _uuid_pk() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True)


def _tstz(name: str, *, nullable: bool = False, now: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=nullable,
        server_default=sa.func.now() if now else None,
    )


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=128), primary_key=True),
        sa.Column("username", sa.String(length=255), nullable=False),
        sa.Column("avatar", sa.Text(), nullable=True),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="applicant"),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        _tstz("created_at", now=True),
        _tstz("last_active", now=True),
    )

    op.create_table(
        "application_questions",
        _uuid_pk(),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False, server_default="text"),
        sa.Column(
            "options", postgresql.ARRAY(sa.String()), nullable=False, server_default="{}"
        ),
        sa.Column("required", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
    )

    op.create_table(
        "applications",
        _uuid_pk(),
        sa.Column(
            "user_id",
            sa.String(length=128),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "responses", postgresql.JSONB(), nullable=False, server_default="{}"
        ),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("reviewed_by", sa.String(length=128), nullable=True),
        _tstz("reviewed_at", nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        _tstz("submitted_at", now=True),
    )
    op.create_index("ix_applications_user_status", "applications", ["user_id", "status"])

    op.create_table(
        "courses",
        _uuid_pk(),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("estimated_time", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created_by",
            sa.String(length=128),
            sa.ForeignKey("profiles.id", ondelete="SET NULL"),
            nullable=True,
        ),
        _tstz("created_at", now=True),
    )

    op.create_table(
        "modules",
        _uuid_pk(),
        sa.Column(
            "course_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("courses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("order_index", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False, server_default="text"),
        sa.Column("estimated_time", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_modules_course_id", "modules", ["course_id"])

    op.create_table(
        "quizzes",
        _uuid_pk(),
        sa.Column(
            "course_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("courses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("passing_score", sa.Integer(), nullable=False, server_default="70"),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.CheckConstraint(
            "passing_score BETWEEN 0 AND 100", name="ck_quizzes_passing_score"
        ),
    )
    op.create_index("ix_quizzes_course_id", "quizzes", ["course_id"])

    op.create_table(
        "quiz_questions",
        _uuid_pk(),
        sa.Column(
            "quiz_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("quizzes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column(
            "type", sa.String(length=32), nullable=False, server_default="multiple-choice"
        ),
        sa.Column(
            "options", postgresql.ARRAY(sa.String()), nullable=False, server_default="{}"
        ),
        sa.Column("correct_answer", sa.Text(), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    )

    op.create_table(
        "user_progress",
        _uuid_pk(),
        sa.Column(
            "user_id",
            sa.String(length=128),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "course_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("courses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "completed_modules",
            postgresql.ARRAY(postgresql.UUID(as_uuid=True)),
            nullable=False,
            server_default="{}",
        ),
        sa.Column("overall_progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "certificate_earned", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
        _tstz("started_at"),
        _tstz("completed_at", nullable=True),
        _tstz("updated_at"),
        sa.UniqueConstraint("user_id", "course_id", name="uq_user_progress_user_course"),
        sa.CheckConstraint(
            "overall_progress BETWEEN 0 AND 100", name="ck_user_progress_range"
        ),
    )

    op.create_table(
        "quiz_results",
        _uuid_pk(),
        sa.Column(
            "user_id",
            sa.String(length=128),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "quiz_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("quizzes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("total_points", sa.Integer(), nullable=False),
        sa.Column("passed", sa.Boolean(), nullable=False),
        sa.Column("answers", postgresql.JSONB(), nullable=False, server_default="{}"),
        _tstz("completed_at"),
        sa.CheckConstraint("score <= total_points", name="ck_quiz_results_score"),
    )
    op.create_index("ix_quiz_results_user_quiz", "quiz_results", ["user_id", "quiz_id"])

    op.create_table(
        "certificates",
        _uuid_pk(),
        sa.Column("certificate_id", sa.String(length=64), nullable=False, unique=True),
        sa.Column("registry_number", sa.String(length=64), nullable=False),
        sa.Column(
            "user_id",
            sa.String(length=128),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "course_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("courses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("student_name", sa.String(length=255), nullable=False),
        sa.Column("course_name", sa.String(length=500), nullable=False),
        _tstz("completion_date"),
        _tstz("issued_date"),
        _tstz("valid_until"),
        sa.Column("is_valid", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("metadata", postgresql.JSONB(), nullable=False, server_default="{}"),
    )
    op.create_index(
        "uq_certificates_valid_user_course",
        "certificates",
        ["user_id", "course_id"],
        unique=True,
        postgresql_where=sa.text("is_valid"),
    )
    op.create_index(
        "ix_certificates_registry_number", "certificates", ["registry_number"]
    )


def downgrade() -> None:
    op.drop_index("ix_certificates_registry_number", table_name="certificates")
    op.drop_index("uq_certificates_valid_user_course", table_name="certificates")
    op.drop_table("certificates")
    op.drop_index("ix_quiz_results_user_quiz", table_name="quiz_results")
    op.drop_table("quiz_results")
    op.drop_table("user_progress")
    op.drop_table("quiz_questions")
    op.drop_index("ix_quizzes_course_id", table_name="quizzes")
    op.drop_table("quizzes")
    op.drop_index("ix_modules_course_id", table_name="modules")
    op.drop_table("modules")
    op.drop_table("courses")
    op.drop_index("ix_applications_user_status", table_name="applications")
    op.drop_table("applications")
    op.drop_table("application_questions")
    op.drop_table("profiles")
