"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 10:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(updated: bool = True) -> list:
    columns = [sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now())]
    if updated:
        columns.append(sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()))
    return columns


def upgrade() -> None:
    op.create_table(
        "companies",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("logo", sa.String(1024), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_companies_id", "companies", ["id"])

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("lastname", sa.String(100), nullable=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("company_id", sa.Integer(), sa.ForeignKey("companies.id", ondelete="SET NULL"), nullable=True),
        sa.Column("profile_image", sa.String(1024), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "departments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("company_id", sa.Integer(), sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_departments_id", "departments", ["id"])
    op.create_index("ix_departments_company_id", "departments", ["company_id"])

    op.create_table(
        "user_departments",
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("department_id", sa.Integer(), sa.ForeignKey("departments.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "scenarios",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("context", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("user_id_assigned", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("user_id_created", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("parent_scenario", sa.Integer(), sa.ForeignKey("scenarios.id", ondelete="SET NULL"), nullable=True),
        sa.Column("aspects", sa.JSON(), nullable=False),
        sa.Column("files", sa.JSON(), nullable=False),
        sa.Column("pdf_contents", sa.Text(), nullable=True),
        sa.Column("assigned_ia", sa.String(20), nullable=True),
        sa.Column("assigned_ia_model", sa.String(100), nullable=True),
        sa.Column("interactive_avatar", sa.String(255), nullable=True),
        sa.Column("avatar_language", sa.String(10), nullable=True),
        sa.Column("generated_image_url", sa.String(1024), nullable=True),
        sa.Column("show_image_prompt", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("time_limit", sa.Integer(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_scenarios_id", "scenarios", ["id"])
    op.create_index("ix_scenarios_user_id_assigned", "scenarios", ["user_id_assigned"])

    op.create_table(
        "conversations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("scenario_id", sa.Integer(), sa.ForeignKey("scenarios.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("conversation", sa.JSON(), nullable=False),
        sa.Column("facial_expressions", sa.JSON(), nullable=False),
        sa.Column("elapsed_time", sa.Float(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_conversations_scenario_id", "conversations", ["scenario_id"])
    op.create_index("ix_conversations_user_id", "conversations", ["user_id"])

    op.create_table(
        "session_states",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("scenario_id", sa.Integer(), sa.ForeignKey("scenarios.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("elapsed_time", sa.Float(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("scenario_id", "user_id", name="uq_session_state_scenario_user"),
    )

    op.create_table(
        "reports",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("scenario_id", sa.Integer(), sa.ForeignKey("scenarios.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("conversations_ids", sa.JSON(), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("show_to_user", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_reports_scenario_id", "reports", ["scenario_id"])

    op.create_table(
        "settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("openai_key", sa.Text(), nullable=True),
        sa.Column("mistral_key", sa.Text(), nullable=True),
        sa.Column("llama_key", sa.Text(), nullable=True),
        sa.Column("heygen_key", sa.Text(), nullable=True),
        sa.Column("mail_username", sa.Text(), nullable=True),
        sa.Column("mail_password", sa.Text(), nullable=True),
        sa.Column("mail_host", sa.Text(), nullable=True),
        sa.Column("mail_port", sa.Integer(), nullable=True),
        sa.Column("mail_from", sa.Text(), nullable=True),
        sa.Column("mail_from_name", sa.Text(), nullable=True),
        sa.Column("aws_access_key", sa.Text(), nullable=True),
        sa.Column("aws_secret_key", sa.Text(), nullable=True),
        sa.Column("aws_region", sa.Text(), nullable=True),
        sa.Column("aws_bucket", sa.Text(), nullable=True),
        sa.Column("aws_bucket_url", sa.Text(), nullable=True),
        sa.Column("avatar_prompt_template", sa.Text(), nullable=True),
        sa.Column("report_prompt_template", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "password_resets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("token", sa.String(128), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(updated=False),
    )
    op.create_index("ix_password_resets_token", "password_resets", ["token"], unique=True)


def downgrade() -> None:
    op.drop_table("password_resets")
    op.drop_table("settings")
    op.drop_table("reports")
    op.drop_table("session_states")
    op.drop_table("conversations")
    op.drop_table("scenarios")
    op.drop_table("user_departments")
    op.drop_table("departments")
    op.drop_table("users")
    op.drop_table("companies")
