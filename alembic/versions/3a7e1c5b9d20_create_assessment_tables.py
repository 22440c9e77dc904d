"""create assessment gateway tables

Revision ID: 3a7e1c5b9d20
Revises:
Create Date: 2026-10-17 10:00:00.000000

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "3a7e1c5b9d20"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "user_quotas",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("standard_minutes", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("professional_minutes", sa.Integer(), server_default=sa.text("0"), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", name="uk_user_quotas_user"),
        sa.CheckConstraint("standard_minutes >= 0", name="ck_user_quotas_standard_non_negative"),
        sa.CheckConstraint("professional_minutes >= 0", name="ck_user_quotas_professional_non_negative"),
    )

    op.create_table(
        "provider_configs",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("tier", sa.String(length=20), nullable=False),
        sa.Column("provider_type", sa.String(length=50), nullable=False),
        sa.Column("api_endpoint", sa.String(length=500), nullable=True),
        sa.Column("api_key_secret_name", sa.String(length=100), nullable=True),
        sa.Column("api_secret_key_name", sa.String(length=100), nullable=True),
        sa.Column("region", sa.String(length=50), nullable=True),
        sa.Column("model_identifier", sa.String(length=200), nullable=True),
        sa.Column("config_json", postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("is_default", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("priority", sa.Integer(), server_default=sa.text("0"), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_provider_configs_tier_active", "provider_configs", ["tier", "is_active"])

    op.create_table(
        "assessment_records",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("tier", sa.String(length=20), nullable=False),
        sa.Column("provider_id", sa.String(length=36), nullable=True),
        sa.Column("provider_name", sa.String(length=100), nullable=True),
        sa.Column("reference_text", sa.Text(), nullable=False),
        sa.Column("transcribed_text", sa.Text(), nullable=True),
        sa.Column("pronunciation_score", sa.Integer(), nullable=True),
        sa.Column("accuracy_score", sa.Integer(), nullable=True),
        sa.Column("fluency_score", sa.Integer(), nullable=True),
        sa.Column("completeness_score", sa.Integer(), nullable=True),
        sa.Column("overall_score", sa.Integer(), nullable=True),
        sa.Column("feedback", sa.Text(), nullable=True),
        sa.Column("words_result", postgresql.JSONB(astext_type=sa.Text()), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column("is_simulated", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("duration_seconds", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("minutes_charged", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("is_billed", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("billing_error", sa.String(length=500), nullable=True),
        sa.Column("raw_response", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_assessment_records_user", "assessment_records", ["user_id"])
    op.create_index("idx_assessment_records_provider", "assessment_records", ["provider_id"])
    op.create_index("idx_assessment_records_created_at", "assessment_records", ["created_at"])

    op.create_table(
        "authorization_codes",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("code_type", sa.String(length=30), nullable=False),
        sa.Column("minutes_amount", sa.Integer(), nullable=True),
        sa.Column("is_used", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("used_by", sa.String(length=64), nullable=True),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code", name="uk_authorization_codes_code"),
    )
    op.create_index("idx_authorization_codes_used", "authorization_codes", ["is_used"])


def downgrade() -> None:
    op.drop_index("idx_authorization_codes_used", table_name="authorization_codes")
    op.drop_table("authorization_codes")
    op.drop_index("idx_assessment_records_created_at", table_name="assessment_records")
    op.drop_index("idx_assessment_records_provider", table_name="assessment_records")
    op.drop_index("idx_assessment_records_user", table_name="assessment_records")
    op.drop_table("assessment_records")
    op.drop_index("idx_provider_configs_tier_active", table_name="provider_configs")
    op.drop_table("provider_configs")
    op.drop_table("user_quotas")
