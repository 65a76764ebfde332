"""Initial schema: notion_integrations, schedules, schedule_executions.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- notion_integrations ---
    op.create_table(
        "notion_integrations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("workspace_name", sa.String(255), nullable=True),
        sa.Column("access_token", sa.Text(), nullable=True),
        sa.Column("connected_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )

    # --- schedules ---
    op.create_table(
        "schedules",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("name", sa.String(255), server_default="", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("frequency", sa.String(16), server_default="daily", nullable=False),
        sa.Column("days_of_week", sa.JSON(), nullable=True),
        sa.Column("day_of_month", sa.Integer(), nullable=True),
        sa.Column("time", sa.String(5), server_default="09:00", nullable=False),
        sa.Column("timezone", sa.String(64), server_default="UTC", nullable=False),
        sa.Column("summary_style", sa.String(32), server_default="executive", nullable=False),
        sa.Column("summary_length", sa.String(16), server_default="medium", nullable=False),
        sa.Column("focus_areas", sa.JSON(), nullable=True),
        sa.Column("content_days", sa.Integer(), nullable=True),
        sa.Column("include_action_items", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("include_priority", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("telegram_enabled", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("telegram_chat_id", sa.String(64), nullable=True),
        sa.Column("email_enabled", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("email_address", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_schedules_user_id", "schedules", ["user_id"])
    op.create_index("ix_schedules_is_active", "schedules", ["is_active"])

    # --- schedule_executions ---
    op.create_table(
        "schedule_executions",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("schedule_id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("executed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("content_processed", sa.Integer(), server_default="0", nullable=False),
        sa.Column("delivery_results", sa.JSON(), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("is_manual", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("invocation_slot", sa.String(16), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_schedule_executions_schedule_id", "schedule_executions", ["schedule_id"])
    op.create_index("ix_schedule_executions_user_id", "schedule_executions", ["user_id"])
    op.create_index("ix_schedule_executions_slot", "schedule_executions", ["schedule_id", "invocation_slot"])


def downgrade() -> None:
    op.drop_table("schedule_executions")
    op.drop_table("schedules")
    op.drop_table("notion_integrations")
