"""progress row version, unique registry numbers

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-20 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0002"
down_revision: str | Sequence[str] | None = "0001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.add_column(
        "user_progress",
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
    )
    op.drop_index("ix_certificates_registry_number", table_name="certificates")
    op.create_unique_constraint(
        "uq_certificates_registry_number", "certificates", ["registry_number"]
    )


def downgrade() -> None:
    op.drop_constraint(
        "uq_certificates_registry_number", "certificates", type_="unique"
    )
    op.create_index(
        "ix_certificates_registry_number", "certificates", ["registry_number"]
    )
    op.drop_column("user_progress", "version")
