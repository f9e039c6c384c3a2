"""Initial schema: users, profiles, contracts, disputes, events, notifications.

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")
ACTIVE_DISPUTE_CLAUSE = "status IN ('Open', 'UnderReview')"


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("role", sa.String(16), nullable=False),
        _timestamp("created_at"),
        sa.CheckConstraint("role IN ('STUDENT', 'COMPANY')", name="ck_user_valid_role"),
    )
    op.create_table(
        "students",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        _timestamp("created_at"),
    )
    op.create_table(
        "companies",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("name", sa.String(200), nullable=False),
        _timestamp("created_at"),
    )

    op.create_table(
        "contracts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "company_id",
            sa.Uuid(),
            sa.ForeignKey("companies.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "student_id",
            sa.Uuid(),
            sa.ForeignKey("students.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("opportunity_id", sa.Uuid(), nullable=True),
        sa.Column("contract_title", sa.String(200), nullable=False),
        sa.Column("in_contract_number", sa.String(64), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("currency", sa.String(8), nullable=False),
        sa.Column("duration", sa.String(64), nullable=False),
        sa.Column("monthly_allowance", sa.Numeric(12, 2), nullable=False),
        sa.Column("salary", sa.Numeric(12, 2), nullable=True),
        sa.Column("work_location", sa.String(200), nullable=False, server_default=""),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="Running"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "monthly_allowance >= 0", name="ck_contract_allowance_non_negative"
        ),
    )
    op.create_index("idx_contract_company", "contracts", ["company_id"])
    op.create_index("idx_contract_student", "contracts", ["student_id"])
    op.create_index("idx_contract_status", "contracts", ["status"])
    op.create_index("idx_contract_created_at", "contracts", ["created_at"])

    op.create_table(
        "disputes",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "contract_id",
            sa.Uuid(),
            sa.ForeignKey("contracts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "student_id",
            sa.Uuid(),
            sa.ForeignKey("students.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "company_id",
            sa.Uuid(),
            sa.ForeignKey("companies.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="Open"),
        sa.Column("previous_contract_status", sa.String(20), nullable=True),
        sa.Column("resolution", sa.Text(), nullable=True),
        sa.Column("resolved_by", sa.Uuid(), nullable=True),
        _timestamp("resolved_at", nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.CheckConstraint(
            "status IN ('Open', 'UnderReview', 'Resolved', 'Rejected')",
            name="ck_dispute_valid_status",
        ),
        sa.CheckConstraint(
            "status IN ('Open', 'UnderReview') OR resolution IS NOT NULL",
            name="ck_dispute_closed_has_resolution",
        ),
    )
    op.create_index(
        "uq_dispute_active_per_contract",
        "disputes",
        ["contract_id"],
        unique=True,
        postgresql_where=sa.text(ACTIVE_DISPUTE_CLAUSE),
        sqlite_where=sa.text(ACTIVE_DISPUTE_CLAUSE),
    )
    op.create_index("idx_dispute_company", "disputes", ["company_id"])
    op.create_index("idx_dispute_student", "disputes", ["student_id"])
    op.create_index("idx_dispute_status", "disputes", ["status"])
    op.create_index("idx_dispute_created_at", "disputes", ["created_at"])

    op.create_table(
        "dispute_events",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "dispute_id",
            sa.Uuid(),
            sa.ForeignKey("disputes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("contract_id", sa.Uuid(), nullable=False),
        sa.Column("event_type", sa.String(40), nullable=False),
        sa.Column("old_status", sa.String(20), nullable=True),
        sa.Column("new_status", sa.String(20), nullable=False),
        sa.Column("contract_status", sa.String(20), nullable=False),
        sa.Column("actor", sa.String(64), nullable=False),
        sa.Column("metadata", JSONType, nullable=True),
        _timestamp("created_at"),
    )
    op.create_index("idx_dispute_event_dispute", "dispute_events", ["dispute_id"])
    op.create_index("idx_dispute_event_created_at", "dispute_events", ["created_at"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", sa.String(40), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("metadata", JSONType, nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
    )
    op.create_index("idx_notification_user", "notifications", ["user_id"])
    op.create_index("idx_notification_created_at", "notifications", ["created_at"])


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("dispute_events")
    op.drop_table("disputes")
    op.drop_table("contracts")
    op.drop_table("companies")
    op.drop_table("students")
    op.drop_table("users")
