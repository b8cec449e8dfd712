"""Create role, assignment and training ledger tables

Revision ID: 202510010001
Revises:
Create Date: 2025-10-01 00:01:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "202510010001"
down_revision = None
branch_labels = None
depends_on = None

item_type_enum = sa.Enum("module", "document", name="item_type")

training_outcome_enum = sa.Enum(
    "completed",
    "needs_improvement",
    "failed",
    name="training_outcome",
)


def _timestamp(name: str, *, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=nullable,
        server_default=sa.func.now(),
    )


def upgrade() -> None:
    bind = op.get_bind()
    item_type_enum.create(bind, checkfirst=True)
    training_outcome_enum.create(bind, checkfirst=True)
    item_type = postgresql.ENUM(
        "module", "document", name="item_type", create_type=False
    )
    outcome = postgresql.ENUM(
        "completed", "needs_improvement", "failed", name="training_outcome", create_type=False
    )

    op.create_table(
        "roles",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("title", sa.String(length=128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        _timestamp("created_at"),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("auth_id", sa.String(length=64), nullable=False, unique=True),
        sa.Column("first_name", sa.String(length=128), nullable=True),
        sa.Column("last_name", sa.String(length=128), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column(
            "role_id",
            sa.String(length=36),
            sa.ForeignKey("roles.id", ondelete="SET NULL"),
            nullable=True,
        ),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_users_auth_id", "users", ["auth_id"])
    op.create_index("ix_users_role_id", "users", ["role_id"])

    op.create_table(
        "modules",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column(
            "requires_follow_up", sa.Boolean(), nullable=False, server_default=sa.text("false")
        ),
        sa.Column("follow_up_period", sa.String(length=32), nullable=True),
        sa.Column("refresh_period", sa.String(length=32), nullable=True),
    )

    op.create_table(
        "documents",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
    )

    op.create_table(
        "role_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "role_id",
            sa.String(length=36),
            sa.ForeignKey("roles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", item_type, nullable=False),
        sa.Column(
            "module_id",
            sa.String(length=36),
            sa.ForeignKey("modules.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "document_id",
            sa.String(length=36),
            sa.ForeignKey("documents.id", ondelete="CASCADE"),
            nullable=True,
        ),
    )
    op.create_index("ix_role_assignments_role_id", "role_assignments", ["role_id"])

    op.create_table(
        "user_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("auth_id", sa.String(length=64), nullable=False),
        sa.Column("item_id", sa.String(length=36), nullable=False),
        sa.Column("item_type", item_type, nullable=False),
        _timestamp("assigned_at"),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("training_outcome", outcome, nullable=True),
        sa.Column("follow_up_due_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("refresh_due_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("auth_id", "item_id", "item_type", name="uq_user_assignment_item"),
    )
    op.create_index("ix_user_assignments_auth_id", "user_assignments", ["auth_id"])

    op.create_table(
        "user_training_completions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("auth_id", sa.String(length=64), nullable=False),
        sa.Column("item_id", sa.String(length=36), nullable=False),
        sa.Column("item_type", item_type, nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_by_role_id", sa.String(length=36), nullable=True),
        _timestamp("recorded_at"),
        sa.UniqueConstraint(
            "auth_id", "item_id", "item_type", name="uq_training_completion_item"
        ),
    )
    op.create_index(
        "ix_user_training_completions_auth_id", "user_training_completions", ["auth_id"]
    )

    op.create_table(
        "user_role_change_log",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("old_role_id", sa.String(length=36), nullable=True),
        sa.Column("new_role_id", sa.String(length=36), nullable=False),
        sa.Column("assignments_removed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("assignments_added", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_user_role_change_log_user_id", "user_role_change_log", ["user_id"])

    op.create_table(
        "training_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("auth_id", sa.String(length=64), nullable=False),
        sa.Column("topic", sa.String(length=255), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("duration_hours", sa.Float(), nullable=False, server_default="1"),
        sa.Column("outcome", outcome, nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.UniqueConstraint("auth_id", "topic", "date", name="uq_training_log_per_day"),
    )
    op.create_index("ix_training_logs_auth_id", "training_logs", ["auth_id"])


def downgrade() -> None:
    op.drop_index("ix_training_logs_auth_id", "training_logs")
    op.drop_table("training_logs")
    op.drop_index("ix_user_role_change_log_user_id", "user_role_change_log")
    op.drop_table("user_role_change_log")
    op.drop_index("ix_user_training_completions_auth_id", "user_training_completions")
    op.drop_table("user_training_completions")
    op.drop_index("ix_user_assignments_auth_id", "user_assignments")
    op.drop_table("user_assignments")
    op.drop_index("ix_role_assignments_role_id", "role_assignments")
    op.drop_table("role_assignments")
    op.drop_table("documents")
    op.drop_table("modules")
    op.drop_index("ix_users_role_id", "users")
    op.drop_index("ix_users_auth_id", "users")
    op.drop_table("users")
    op.drop_table("roles")
    training_outcome_enum.drop(op.get_bind(), checkfirst=True)
    item_type_enum.drop(op.get_bind(), checkfirst=True)
