"""initial_schema

Revision ID: 5b1f0c2d9a47
Revises:
Create Date: 2026-10-19 10:12:41.208311
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5b1f0c2d9a47'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""

    # USERS
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="employee"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("reset_token_hash", sa.String(), nullable=True),
        sa.Column("reset_token_expires_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("role IN ('admin', 'employee')", name="ck_user_role_valid"),
    )
    op.create_index("ix_users_id", "users", ["id"], unique=False)
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    # INSURANCE TYPES
    op.create_table(
        "insurance_types",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("commission_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("commission_amount >= 0", name="ck_insurance_commission_non_negative"),
    )
    op.create_index("ix_insurance_types_id", "insurance_types", ["id"], unique=False)
    op.create_index("ix_insurance_types_name", "insurance_types", ["name"], unique=True)

    # SALES
    op.create_table(
        "sales",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("employee_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("employee_name", sa.String(length=50), nullable=False),
        sa.Column("client_name", sa.String(length=100), nullable=False),
        sa.Column("reservation_number", sa.String(length=50), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("commission_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        *_timestamps(),
        sa.CheckConstraint("amount >= 0", name="ck_sale_amount_non_negative"),
        sa.CheckConstraint("commission_amount >= 0", name="ck_sale_commission_non_negative"),
        sa.CheckConstraint("status IN ('active', 'cancelled')", name="ck_sale_status_valid"),
    )
    op.create_index("ix_sales_id", "sales", ["id"], unique=False)
    op.create_index("ix_sales_employee_id", "sales", ["employee_id"], unique=False)
    op.create_index("ix_sales_employee_name", "sales", ["employee_name"], unique=False)
    op.create_index("ix_sales_reservation_number", "sales", ["reservation_number"], unique=False)
    op.create_index("ix_sales_created_at", "sales", ["created_at"], unique=False)
    op.create_index("ix_sales_employee_created", "sales", ["employee_name", "created_at"], unique=False)

    # SALE INSURANCES
    op.create_table(
        "sale_insurances",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sale_id", sa.Integer(), sa.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False),
        sa.Column("insurance_type_id", sa.Integer(), sa.ForeignKey("insurance_types.id"), nullable=False),
        sa.Column("insurance_name", sa.String(length=100), nullable=False),
        sa.Column("commission_amount", sa.Numeric(10, 2), nullable=False),
    )
    op.create_index("ix_sale_insurances_id", "sale_insurances", ["id"], unique=False)
    op.create_index("ix_sale_insurances_sale_id", "sale_insurances", ["sale_id"], unique=False)
    op.create_index(
        "ix_sale_insurances_insurance_type_id",
        "sale_insurances",
        ["insurance_type_id"],
        unique=False,
    )

    # OBJECTIVES
    op.create_table(
        "employee_objectives",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("employee_name", sa.String(length=50), nullable=False),
        sa.Column("objective_type", sa.String(length=20), nullable=False),
        sa.Column("target_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("target_sales_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint("objective_type IN ('weekly', 'monthly', 'yearly')", name="ck_objective_type_valid"),
        sa.CheckConstraint("period_end >= period_start", name="ck_objective_period_valid"),
        sa.CheckConstraint("target_amount >= 0", name="ck_objective_target_amount_non_negative"),
        sa.CheckConstraint("target_sales_count >= 0", name="ck_objective_target_count_non_negative"),
    )
    op.create_index("ix_employee_objectives_id", "employee_objectives", ["id"], unique=False)
    op.create_index(
        "ix_employee_objectives_employee_name",
        "employee_objectives",
        ["employee_name"],
        unique=False,
    )
    op.create_index(
        "ix_objectives_employee_period",
        "employee_objectives",
        ["employee_name", "period_start", "period_end"],
        unique=False,
    )

    # OBJECTIVE HISTORY
    op.create_table(
        "objective_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("objective_id", sa.Integer(), nullable=True),
        sa.Column("employee_name", sa.String(length=50), nullable=False),
        sa.Column("objective_type", sa.String(length=20), nullable=False),
        sa.Column("target_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("target_sales_count", sa.Integer(), nullable=False),
        sa.Column("achieved_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("achieved_sales_count", sa.Integer(), nullable=False),
        sa.Column("progress_percentage_amount", sa.Numeric(5, 2), nullable=False),
        sa.Column("progress_percentage_sales", sa.Numeric(5, 2), nullable=False),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_completed", sa.Boolean(), nullable=False),
        sa.Column("objective_achieved", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("archived_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_objective_history_id", "objective_history", ["id"], unique=False)
    op.create_index("ix_objective_history_objective_id", "objective_history", ["objective_id"], unique=False)
    op.create_index("ix_objective_history_employee_name", "objective_history", ["employee_name"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_table("objective_history")
    op.drop_table("employee_objectives")
    op.drop_table("sale_insurances")
    op.drop_table("sales")
    op.drop_table("insurance_types")
    op.drop_table("users")
