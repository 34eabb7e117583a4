"""bonuses_audit_settings

Revision ID: 8d3e41a7c2b9
Revises: 5b1f0c2d9a47
Create Date: 2026-10-19 16:40:08.517392
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8d3e41a7c2b9'
down_revision: Union[str, Sequence[str], None] = '5b1f0c2d9a47'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""

    # OBJECTIVE HISTORY: one snapshot per objective
    op.drop_index("ix_objective_history_objective_id", table_name="objective_history")
    op.create_index("ix_objective_history_objective_id", "objective_history", ["objective_id"], unique=True)

    # BONUS RULES
    op.create_table(
        "bonus_rules",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("min_achievement_percent", sa.Numeric(7, 2), nullable=False),
        sa.Column("max_achievement_percent", sa.Numeric(7, 2), nullable=True),
        sa.Column("bonus_percent", sa.Numeric(5, 2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("min_achievement_percent >= 0", name="ck_bonus_rule_min_non_negative"),
        sa.CheckConstraint(
            "max_achievement_percent IS NULL OR max_achievement_percent > min_achievement_percent",
            name="ck_bonus_rule_range_valid",
        ),
        sa.CheckConstraint("bonus_percent >= 0 AND bonus_percent <= 100", name="ck_bonus_rule_percent_valid"),
    )
    op.create_index("ix_bonus_rules_id", "bonus_rules", ["id"], unique=False)
    op.create_index("ix_bonus_rules_name", "bonus_rules", ["name"], unique=True)

    # BONUSES
    op.create_table(
        "bonuses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("employee_name", sa.String(length=50), nullable=False),
        sa.Column(
            "objective_id",
            sa.Integer(),
            sa.ForeignKey("employee_objectives.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "bonus_rule_id",
            sa.Integer(),
            sa.ForeignKey("bonus_rules.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("bonus_rule_name", sa.String(length=100), nullable=True),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("total_sales", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("total_commission", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("achievement_percent", sa.Numeric(7, 2), nullable=False, server_default="0"),
        sa.Column("bonus_rate", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("bonus_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_by", sa.String(length=50), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'paid')",
            name="ck_bonus_status_valid",
        ),
        sa.CheckConstraint("bonus_amount >= 0", name="ck_bonus_amount_non_negative"),
    )
    op.create_index("ix_bonuses_id", "bonuses", ["id"], unique=False)
    op.create_index("ix_bonuses_employee_name", "bonuses", ["employee_name"], unique=False)
    op.create_index("ix_bonuses_objective_id", "bonuses", ["objective_id"], unique=True)
    op.create_index("ix_bonuses_status", "bonuses", ["status"], unique=False)

    # AUDIT LOGS
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("actor_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("actor_username", sa.String(length=50), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("table_name", sa.String(length=50), nullable=False),
        sa.Column("record_id", sa.String(length=50), nullable=True),
        sa.Column("old_values", sa.JSON(), nullable=True),
        sa.Column("new_values", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_id", "audit_logs", ["id"], unique=False)
    op.create_index("ix_audit_logs_actor_username", "audit_logs", ["actor_username"], unique=False)
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"], unique=False)
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"], unique=False)
    op.create_index("ix_audit_logs_table_record", "audit_logs", ["table_name", "record_id"], unique=False)

    # SYSTEM SETTINGS
    op.create_table(
        "system_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("key", sa.String(length=100), nullable=False),
        sa.Column("value", sa.JSON(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("updated_by", sa.String(length=50), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_system_settings_id", "system_settings", ["id"], unique=False)
    op.create_index("ix_system_settings_key", "system_settings", ["key"], unique=True)


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_table("system_settings")
    op.drop_table("audit_logs")
    op.drop_table("bonuses")
    op.drop_table("bonus_rules")

    op.drop_index("ix_objective_history_objective_id", table_name="objective_history")
    op.create_index("ix_objective_history_objective_id", "objective_history", ["objective_id"], unique=False)
