"""Initial migration

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel
from sqlalchemy.dialects import postgresql

from alembic import op
from src.assignx.models.project import PROJECT_STATUS_VALUES

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

AutoString = sqlmodel.sql.sqltypes.AutoString
Money = sa.Numeric(precision=12, scale=2)
Percent = sa.Numeric(precision=5, scale=2)


def upgrade() -> None:
    op.execute("CREATE SEQUENCE IF NOT EXISTS project_number_seq START 1")

    # 1. Users
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", AutoString(length=255), nullable=False),
        sa.Column("hashed_password", AutoString(length=255), nullable=False),
        sa.Column("full_name", AutoString(length=100), nullable=False),
        sa.Column("role", AutoString(length=20), nullable=False, server_default="client"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "role IN ('client', 'supervisor', 'doer')", name="ck_users_role"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"], unique=False)

    # 2. Refresh tokens
    op.create_table(
        "refresh_tokens",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("token_hash", AutoString(length=255), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("revoked", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_refresh_tokens_user_id", "refresh_tokens", ["user_id"], unique=False)
    op.create_index("ix_refresh_tokens_token_hash", "refresh_tokens", ["token_hash"], unique=True)

    # 3. Projects
    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_number", AutoString(length=20), nullable=False),
        sa.Column("service_type", AutoString(length=30), nullable=False),
        sa.Column("title", AutoString(length=255), nullable=False),
        sa.Column("subject", AutoString(length=100), nullable=True),
        sa.Column("description", AutoString(length=5000), nullable=True),
        sa.Column("word_count", sa.Integer(), nullable=True),
        sa.Column("page_count", sa.Integer(), nullable=True),
        sa.Column("reference_style", AutoString(length=50), nullable=True),
        sa.Column("urgency_tier", AutoString(length=20), nullable=False),
        sa.Column("complexity_tier", AutoString(length=20), nullable=False),
        sa.Column("status", AutoString(length=30), nullable=False, server_default="draft"),
        sa.Column("status_updated_at", sa.DateTime(), nullable=False),
        sa.Column("client_id", sa.Uuid(), nullable=False),
        sa.Column("supervisor_id", sa.Uuid(), nullable=True),
        sa.Column("doer_id", sa.Uuid(), nullable=True),
        sa.Column("proposed_doer_id", sa.Uuid(), nullable=True),
        sa.Column("supervisor_assigned_at", sa.DateTime(), nullable=True),
        sa.Column("doer_assigned_at", sa.DateTime(), nullable=True),
        sa.Column("client_quote", Money, nullable=True),
        sa.Column("doer_payout", Money, nullable=True),
        sa.Column("supervisor_commission", Money, nullable=True),
        sa.Column("platform_fee", Money, nullable=True),
        sa.Column("payment_id", AutoString(length=100), nullable=True),
        sa.Column("paid_at", sa.DateTime(), nullable=True),
        sa.Column("deadline", sa.DateTime(), nullable=True),
        sa.Column("original_deadline", sa.DateTime(), nullable=True),
        sa.Column(
            "deadline_extended", sa.Boolean(), nullable=False, server_default=sa.text("false")
        ),
        sa.Column("deadline_extension_reason", AutoString(length=1000), nullable=True),
        sa.Column("delivered_at", sa.DateTime(), nullable=True),
        sa.Column("auto_approve_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("submitted_for_qc_at", sa.DateTime(), nullable=True),
        sa.Column("submitted_late", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("plagiarism_score", Percent, nullable=True),
        sa.Column("ai_score", Percent, nullable=True),
        sa.Column("qc_notes", AutoString(length=2000), nullable=True),
        sa.Column("client_approved", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("client_approved_at", sa.DateTime(), nullable=True),
        sa.Column("client_feedback", AutoString(length=2000), nullable=True),
        sa.Column("client_grade", sa.Integer(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.Column("cancelled_by", sa.Uuid(), nullable=True),
        sa.Column("cancellation_reason", AutoString(length=1000), nullable=True),
        sa.Column("refund_eligibility", AutoString(length=20), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(f"status IN ({PROJECT_STATUS_VALUES})", name="ck_projects_status"),
        sa.CheckConstraint(
            "doer_payout IS NULL OR "
            "doer_payout + supervisor_commission + platform_fee = client_quote",
            name="ck_projects_settlement_sum",
        ),
        sa.CheckConstraint(
            "client_grade IS NULL OR client_grade BETWEEN 1 AND 5", name="ck_projects_grade"
        ),
        sa.ForeignKeyConstraint(["client_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["supervisor_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["doer_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["proposed_doer_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_projects_project_number", "projects", ["project_number"], unique=True)
    op.create_index("ix_projects_status", "projects", ["status"], unique=False)
    op.create_index("ix_projects_client_id", "projects", ["client_id"], unique=False)
    op.create_index("ix_projects_doer_id", "projects", ["doer_id"], unique=False)
    op.create_index(
        "ix_projects_status_auto_approve_at", "projects", ["status", "auto_approve_at"]
    )
    op.create_index("ix_projects_supervisor_status", "projects", ["supervisor_id", "status"])

    # 4. Status history (append-only)
    op.create_table(
        "project_status_history",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("from_status", AutoString(length=30), nullable=True),
        sa.Column("to_status", AutoString(length=30), nullable=False),
        sa.Column("event", AutoString(length=40), nullable=False),
        sa.Column("changed_by", sa.Uuid(), nullable=True),
        sa.Column("changed_by_role", AutoString(length=20), nullable=False),
        sa.Column("notes", AutoString(length=2000), nullable=True),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_project_status_history_project_created",
        "project_status_history",
        ["project_id", "created_at"],
    )

    # 5. Quotes
    op.create_table(
        "project_quotes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("base_rate", Money, nullable=False),
        sa.Column("unit_count", sa.Integer(), nullable=False),
        sa.Column("urgency_tier", AutoString(length=20), nullable=False),
        sa.Column("complexity_tier", AutoString(length=20), nullable=False),
        sa.Column("client_quote", Money, nullable=False),
        sa.Column("doer_amount", Money, nullable=False),
        sa.Column("supervisor_amount", Money, nullable=False),
        sa.Column("platform_amount", Money, nullable=False),
        sa.Column("quoted_by", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "doer_amount + supervisor_amount + platform_amount = client_quote",
            name="ck_project_quotes_split_sum",
        ),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["quoted_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_project_quotes_project_id", "project_quotes", ["project_id"])

    # 6. Deliverables
    op.create_table(
        "project_deliverables",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("file_url", AutoString(length=1000), nullable=False),
        sa.Column("file_name", AutoString(length=255), nullable=False),
        sa.Column("file_type", AutoString(length=100), nullable=True),
        sa.Column("file_size_bytes", sa.BigInteger(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("uploaded_by", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("project_id", "file_url", name="uq_project_deliverables_project_file"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["uploaded_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_project_deliverables_project_id", "project_deliverables", ["project_id"])

    # 7. Revisions
    op.create_table(
        "project_revisions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("revision_number", sa.Integer(), nullable=False),
        sa.Column("feedback", AutoString(length=5000), nullable=False),
        sa.Column("requested_by", sa.Uuid(), nullable=True),
        sa.Column("requested_by_role", AutoString(length=20), nullable=False),
        sa.Column("status", AutoString(length=20), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("project_id", "revision_number", name="uq_project_revisions_number"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["requested_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_project_revisions_project_id", "project_revisions", ["project_id"])

    # 8. Quality reports
    op.create_table(
        "quality_reports",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("report_type", AutoString(length=20), nullable=False),
        sa.Column("score", Percent, nullable=True),
        sa.Column("result", AutoString(length=20), nullable=False),
        sa.Column("tool_used", AutoString(length=100), nullable=True),
        sa.Column("report_url", AutoString(length=1000), nullable=True),
        sa.Column("recorded_by", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "report_type IN ('plagiarism', 'ai_detection')", name="ck_quality_reports_type"
        ),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["recorded_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_quality_reports_project_id", "quality_reports", ["project_id"])

    # 9. Payouts
    op.create_table(
        "payouts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=False),
        sa.Column("recipient_id", sa.Uuid(), nullable=False),
        sa.Column("recipient_role", AutoString(length=20), nullable=False),
        sa.Column("amount", Money, nullable=False),
        sa.Column("status", AutoString(length=20), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("project_id", "recipient_role", name="uq_payouts_project_role"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.ForeignKeyConstraint(["recipient_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_payouts_project_id", "payouts", ["project_id"])
    op.create_index("ix_payouts_recipient_id", "payouts", ["recipient_id"])

    # 10. Notifications
    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("project_id", sa.Uuid(), nullable=True),
        sa.Column("notification_type", AutoString(length=40), nullable=False),
        sa.Column("title", AutoString(length=255), nullable=False),
        sa.Column("body", AutoString(length=2000), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("read_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_user_created", "notifications", ["user_id", "created_at"])

    # 11. Supervisor blacklist
    op.create_table(
        "supervisor_blacklisted_doers",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("supervisor_id", sa.Uuid(), nullable=False),
        sa.Column("doer_id", sa.Uuid(), nullable=False),
        sa.Column("reason", AutoString(length=1000), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("supervisor_id", "doer_id", name="uq_blacklist_supervisor_doer"),
        sa.ForeignKeyConstraint(["supervisor_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["doer_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_supervisor_blacklisted_doers_supervisor_id",
        "supervisor_blacklisted_doers",
        ["supervisor_id"],
    )

    # 12. Audit logs
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("action", AutoString(length=50), nullable=False),
        sa.Column("entity_type", AutoString(length=50), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=True),
        sa.Column("changes", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("ip_address", AutoString(length=45), nullable=True),
        sa.Column("user_agent", AutoString(length=500), nullable=True),
        sa.Column("request_id", AutoString(length=36), nullable=True),
        sa.Column("status", AutoString(length=20), nullable=False, server_default="success"),
        sa.Column("error_message", AutoString(length=1000), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_user_created", "audit_logs", ["user_id", "created_at"])
    op.create_index("ix_audit_logs_action_created", "audit_logs", ["action", "created_at"])
    op.create_index("ix_audit_logs_entity", "audit_logs", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_index("ix_audit_logs_entity", table_name="audit_logs")
    op.drop_index("ix_audit_logs_action_created", table_name="audit_logs")
    op.drop_index("ix_audit_logs_user_created", table_name="audit_logs")
    op.drop_index("ix_audit_logs_user_id", table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_index(
        "ix_supervisor_blacklisted_doers_supervisor_id", table_name="supervisor_blacklisted_doers"
    )
    op.drop_table("supervisor_blacklisted_doers")

    op.drop_index("ix_notifications_user_created", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("ix_payouts_recipient_id", table_name="payouts")
    op.drop_index("ix_payouts_project_id", table_name="payouts")
    op.drop_table("payouts")

    op.drop_index("ix_quality_reports_project_id", table_name="quality_reports")
    op.drop_table("quality_reports")

    op.drop_index("ix_project_revisions_project_id", table_name="project_revisions")
    op.drop_table("project_revisions")

    op.drop_index("ix_project_deliverables_project_id", table_name="project_deliverables")
    op.drop_table("project_deliverables")

    op.drop_index("ix_project_quotes_project_id", table_name="project_quotes")
    op.drop_table("project_quotes")

    op.drop_index("ix_project_status_history_project_created", table_name="project_status_history")
    op.drop_table("project_status_history")

    op.drop_index("ix_projects_supervisor_status", table_name="projects")
    op.drop_index("ix_projects_status_auto_approve_at", table_name="projects")
    op.drop_index("ix_projects_doer_id", table_name="projects")
    op.drop_index("ix_projects_client_id", table_name="projects")
    op.drop_index("ix_projects_status", table_name="projects")
    op.drop_index("ix_projects_project_number", table_name="projects")
    op.drop_table("projects")

    op.drop_index("ix_refresh_tokens_token_hash", table_name="refresh_tokens")
    op.drop_index("ix_refresh_tokens_user_id", table_name="refresh_tokens")
    op.drop_table("refresh_tokens")

    op.drop_index("ix_users_role", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    op.execute("DROP SEQUENCE IF EXISTS project_number_seq")
