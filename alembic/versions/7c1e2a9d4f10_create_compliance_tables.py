"""create compliance tables (tracking, documents, recurring, alerts, preferences, history, rules, analytics)

Revision ID: 7c1e2a9d4f10
Revises:
Create Date: 2026-10-19 09:00:00
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "7c1e2a9d4f10"
down_revision = None
branch_labels = None
depends_on = None


def _insp():
    bind = op.get_bind()
    return sa.inspect(bind)


def _has_table(name: str) -> bool:
    try:
        return name in _insp().get_table_names()
    except Exception:
        return False


def _timestamps(updated_nullable: bool = False):
    return [
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column(
            "updated_at",
            sa.DateTime,
            nullable=updated_nullable,
            server_default=None if updated_nullable else sa.text("CURRENT_TIMESTAMP"),
        ),
    ]


def _indexes(table: str, *cols: str):
    for col in cols:
        op.create_index(f"ix_{table}_{col}", table, [col])


def upgrade():
    if not _has_table("compliance_tracking"):
        op.create_table(
            "compliance_tracking",
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("user_id", sa.String(length=36), nullable=False),
            sa.Column("title", sa.String(length=255), nullable=False),
            sa.Column("compliance_type", sa.String(length=50), nullable=True),
            sa.Column("description", sa.Text, nullable=True),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
            sa.Column("priority", sa.String(length=20), nullable=False, server_default="medium"),
            sa.Column("deadline_date", sa.DateTime, nullable=True),
            sa.Column("frequency", sa.String(length=20), nullable=True),
            sa.Column("estimated_hours", sa.Float, nullable=True),
            sa.Column("notes", sa.Text, nullable=True),
            *_timestamps(),
            sa.CheckConstraint(
                "status IN ('pending', 'in_progress', 'completed')",
                name="ck_compliance_tracking_status_allowed",
            ),
            sa.CheckConstraint(
                "priority IN ('low', 'medium', 'high', 'critical')",
                name="ck_compliance_tracking_priority_allowed",
            ),
        )
        _indexes("compliance_tracking", "id", "user_id", "compliance_type", "status", "deadline_date")
        op.create_index("ix_tracking_user_status", "compliance_tracking", ["user_id", "status"])

    if not _has_table("compliance_documents"):
        op.create_table(
            "compliance_documents",
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("user_id", sa.String(length=36), nullable=False),
            sa.Column("document_type", sa.String(length=100), nullable=False),
            sa.Column("document_name", sa.String(length=255), nullable=True),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="missing"),
            sa.Column("is_required", sa.Boolean, nullable=False, server_default=sa.false()),
            sa.Column("expiration_date", sa.DateTime, nullable=True),
            sa.Column("document_url", sa.Text, nullable=True),
            sa.Column("notes", sa.Text, nullable=True),
            *_timestamps(),
            sa.CheckConstraint(
                "status IN ('missing', 'uploaded', 'verified')",
                name="ck_compliance_documents_status_allowed",
            ),
        )
        _indexes("compliance_documents", "id", "user_id", "status", "expiration_date")
        op.create_index("ix_documents_user_status", "compliance_documents", ["user_id", "status"])

    if not _has_table("compliance_recurring"):
        op.create_table(
            "compliance_recurring",
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("user_id", sa.String(length=36), nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("compliance_type", sa.String(length=50), nullable=True),
            sa.Column("description", sa.Text, nullable=True),
            sa.Column("frequency", sa.String(length=20), nullable=False, server_default="monthly"),
            sa.Column("frequency_interval", sa.Integer, nullable=False, server_default="1"),
            sa.Column("next_due_date", sa.DateTime, nullable=True),
            sa.Column("last_completed_date", sa.DateTime, nullable=True),
            sa.Column("reminder_days", sa.Integer, nullable=True, server_default="7"),
            sa.Column("estimated_hours", sa.Float, nullable=True),
            sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
            *_timestamps(),
            sa.CheckConstraint(
                "frequency IN ('daily', 'weekly', 'monthly', 'quarterly', 'annually')",
                name="ck_compliance_recurring_frequency_allowed",
            ),
            sa.CheckConstraint("frequency_interval >= 1", name="ck_compliance_recurring_interval_positive"),
        )
        _indexes("compliance_recurring", "id", "user_id", "next_due_date")
        op.create_index("ix_recurring_user_active", "compliance_recurring", ["user_id", "is_active"])

    if not _has_table("compliance_alerts"):
        op.create_table(
            "compliance_alerts",
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("user_id", sa.String(length=36), nullable=False),
            sa.Column("alert_type", sa.String(length=50), nullable=False),
            sa.Column("severity", sa.String(length=20), nullable=False, server_default="warning"),
            sa.Column("message", sa.Text, nullable=False),
            sa.Column("alert_data", sa.JSON, nullable=True),
            sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
            sa.Column("is_read", sa.Boolean, nullable=False, server_default=sa.false()),
            *_timestamps(updated_nullable=True),
            sa.Column("resolved_at", sa.DateTime, nullable=True),
            sa.CheckConstraint(
                "severity IN ('critical', 'warning', 'info')",
                name="ck_compliance_alerts_severity_allowed",
            ),
        )
        _indexes("compliance_alerts", "id", "user_id")
        op.create_index("ix_alerts_user_active", "compliance_alerts", ["user_id", "is_active"])

    if not _has_table("compliance_preferences"):
        op.create_table(
            "compliance_preferences",
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("user_id", sa.String(length=36), nullable=False),
            sa.Column("alert_thresholds", sa.JSON, nullable=True),
            sa.Column("notification_preferences", sa.JSON, nullable=True),
            *_timestamps(),
        )
        op.create_index(
            "ix_compliance_preferences_user_id", "compliance_preferences", ["user_id"], unique=True
        )

    if not _has_table("compliance_history"):
        op.create_table(
            "compliance_history",
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("user_id", sa.String(length=36), nullable=False),
            sa.Column("check_date", sa.DateTime, nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
            sa.Column("overall_status", sa.String(length=20), nullable=False),
            sa.Column("compliance_score", sa.Integer, nullable=False),
            sa.Column("results", sa.JSON, nullable=True),
            sa.Column("alerts_generated", sa.JSON, nullable=True),
            sa.Column("recommendations", sa.JSON, nullable=True),
        )
        _indexes("compliance_history", "user_id")
        op.create_index("ix_history_user_check_date", "compliance_history", ["user_id", "check_date"])

    if not _has_table("compliance_rules"):
        op.create_table(
            "compliance_rules",
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("rule_name", sa.String(length=100), nullable=False),
            sa.Column("description", sa.Text, nullable=True),
            sa.Column("frequency", sa.String(length=20), nullable=True),
            sa.Column("deadline_offset_days", sa.Integer, nullable=True),
            sa.Column("required_documents", sa.JSON, nullable=True),
            sa.Column("is_critical", sa.Boolean, nullable=False, server_default=sa.false()),
            sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        )
        op.create_index("ix_compliance_rules_rule_name", "compliance_rules", ["rule_name"], unique=True)

    if not _has_table("compliance_analytics"):
        op.create_table(
            "compliance_analytics",
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("user_id", sa.String(length=36), nullable=False),
            sa.Column("report_type", sa.String(length=20), nullable=False, server_default="weekly"),
            sa.Column("report_date", sa.DateTime, nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
            sa.Column("report_data", sa.JSON, nullable=True),
        )
        _indexes("compliance_analytics", "user_id")
        op.create_index("ix_analytics_user_report_date", "compliance_analytics", ["user_id", "report_date"])


def downgrade():
    for table in (
        "compliance_analytics",
        "compliance_rules",
        "compliance_history",
        "compliance_preferences",
        "compliance_alerts",
        "compliance_recurring",
        "compliance_documents",
        "compliance_tracking",
    ):
        if _has_table(table):
            op.drop_table(table)
