"""initial schema

Revision ID: 2026_10_01_0000
Revises:
Create Date: 2026-10-01 09:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "2026_10_01_0000"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create users and projects tables."""

    # ========================================================================
    # Create users table
    # ========================================================================
    op.create_table(
        "users",
        sa.Column("uid", sa.String(128), primary_key=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="user"),
        sa.Column("plan", sa.String(50), nullable=False, server_default="free"),
        sa.Column("words_used", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column(
            "cycle_start",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.CheckConstraint("words_used >= 0", name="ck_users_words_used_non_negative"),
        sa.CheckConstraint("role IN ('admin', 'user')", name="ck_users_role_valid"),
    )
    op.create_index(
        "idx_users_email", "users", ["email"], postgresql_where=sa.text("email IS NOT NULL")
    )

    # ========================================================================
    # Create projects table
    # ========================================================================
    op.create_table(
        "projects",
        sa.Column(
            "id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")
        ),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("platform", sa.String(100), nullable=False),
        sa.Column("tone", sa.String(100), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("status", sa.String(20), nullable=False, server_default="Completed"),
        sa.Column("words", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.CheckConstraint("words >= 0", name="ck_projects_words_non_negative"),
        sa.CheckConstraint(
            "status IN ('Draft', 'In Progress', 'Completed')", name="ck_projects_status_valid"
        ),
    )
    op.create_index("ix_projects_user_id", "projects", ["user_id"])
    op.create_index("idx_projects_user_created", "projects", ["user_id", "created_at"])


def downgrade() -> None:
    """Drop users and projects tables."""
    op.drop_index("idx_projects_user_created", table_name="projects")
    op.drop_index("ix_projects_user_id", table_name="projects")
    op.drop_table("projects")

    op.drop_index("idx_users_email", table_name="users")
    op.drop_table("users")
