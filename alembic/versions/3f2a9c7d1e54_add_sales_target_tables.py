"""Add sales target and incentive tables

Revision ID: 3f2a9c7d1e54
Revises:
Create Date: 2025-06-14 10:12:37.418205

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "3f2a9c7d1e54"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    op.create_table(
        "branches",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("name", sa.String, nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("first_name", sa.String, nullable=False),
        sa.Column("last_name", sa.String, nullable=False),
        sa.Column("role", sa.String, nullable=False, server_default="cashier"),
        sa.Column("branch_id", sa.Integer, sa.ForeignKey("branches.id"), nullable=True),
    )

    op.create_table(
        "cashier_sales_journals",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("branch_id", sa.Integer, sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("cashier_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False),
        sa.Column("journal_date", sa.Date, nullable=False, index=True),
        sa.Column("shift_type", sa.String, nullable=True),
        sa.Column("total_sales", sa.Float, nullable=False, server_default="0"),
        sa.Column("transaction_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("customer_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("status", sa.String, nullable=False, server_default="draft"),
    )

    op.create_table(
        "target_weight_profiles",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("description", sa.String, nullable=True),
        sa.Column("is_default", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("sunday_weight", sa.Float, nullable=False, server_default="100"),
        sa.Column("monday_weight", sa.Float, nullable=False, server_default="100"),
        sa.Column("tuesday_weight", sa.Float, nullable=False, server_default="100"),
        sa.Column("wednesday_weight", sa.Float, nullable=False, server_default="100"),
        sa.Column("thursday_weight", sa.Float, nullable=False, server_default="130"),
        sa.Column("friday_weight", sa.Float, nullable=False, server_default="130"),
        sa.Column("saturday_weight", sa.Float, nullable=False, server_default="100"),
    )

    op.create_table(
        "branch_monthly_targets",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("branch_id", sa.Integer, sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("year_month", sa.String(7), nullable=False),
        sa.Column("target_amount", sa.Float, nullable=False),
        sa.Column(
            "profile_id",
            sa.Integer,
            sa.ForeignKey("target_weight_profiles.id"),
            nullable=True,
        ),
        sa.Column("status", sa.String, nullable=False, server_default="draft"),
        sa.Column("notes", sa.String, nullable=True),
        sa.Column("allocation_version", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("branch_id", "year_month", name="_branch_month_target_uc"),
    )

    op.create_table(
        "target_daily_allocations",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column(
            "monthly_target_id",
            sa.Integer,
            sa.ForeignKey("branch_monthly_targets.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("target_date", sa.Date, nullable=False),
        sa.Column("weight_percent", sa.Float, nullable=False),
        sa.Column("daily_target", sa.Float, nullable=False),
        sa.Column("is_holiday", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column(
            "is_manual_override", sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column("override_reason", sa.String, nullable=True),
        sa.UniqueConstraint("monthly_target_id", "target_date", name="_target_date_uc"),
    )

    op.create_table(
        "target_shift_allocations",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column(
            "daily_allocation_id",
            sa.Integer,
            sa.ForeignKey("target_daily_allocations.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("shift_type", sa.String, nullable=False),
        sa.Column("shift_target", sa.Float, nullable=False),
        sa.Column("shift_weight_percent", sa.Float, nullable=False),
        sa.Column("notes", sa.String, nullable=True),
        sa.UniqueConstraint(
            "daily_allocation_id", "shift_type", name="_allocation_shift_uc"
        ),
    )

    op.create_table(
        "seasons_holidays",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("type", sa.String, nullable=False, server_default="season"),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("weight_multiplier", sa.Float, nullable=False, server_default="1"),
        sa.Column("applicable_branches", sa.JSON, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
    )

    op.create_table(
        "incentive_tiers",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("description", sa.String, nullable=True),
        sa.Column("min_achievement_percent", sa.Float, nullable=False),
        sa.Column("max_achievement_percent", sa.Float, nullable=True),
        sa.Column("reward_type", sa.String, nullable=False),
        sa.Column("fixed_amount", sa.Float, nullable=True),
        sa.Column("percentage_rate", sa.Float, nullable=True),
        sa.Column("applicable_to", sa.String, nullable=False, server_default="all"),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
    )

    op.create_table(
        "incentive_awards",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("award_type", sa.String, nullable=False, server_default="monthly"),
        sa.Column("branch_id", sa.Integer, sa.ForeignKey("branches.id"), nullable=True),
        sa.Column("cashier_id", sa.Integer, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("period_start", sa.Date, nullable=False),
        sa.Column("period_end", sa.Date, nullable=False),
        sa.Column("target_amount", sa.Float, nullable=False),
        sa.Column("achieved_amount", sa.Float, nullable=False),
        sa.Column("achievement_percent", sa.Float, nullable=False),
        sa.Column("tier_id", sa.Integer, nullable=True),
        sa.Column("calculated_reward", sa.Float, nullable=False),
        sa.Column("adjusted_reward", sa.Float, nullable=True),
        sa.Column("final_reward", sa.Float, nullable=False),
        sa.Column("status", sa.String, nullable=False, server_default="pending"),
        sa.Column("notes", sa.String, nullable=True),
        sa.Column("journal_ids", sa.JSON, nullable=True),
        sa.Column("approved_by", sa.Integer, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("approved_at", sa.DateTime, nullable=True),
        sa.Column("paid_at", sa.DateTime, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "commission_rates",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("description", sa.String, nullable=True),
        sa.Column("min_sales_amount", sa.Float, nullable=False, server_default="0"),
        sa.Column("max_sales_amount", sa.Float, nullable=True),
        sa.Column("commission_type", sa.String, nullable=False),
        sa.Column("fixed_amount", sa.Float, nullable=True),
        sa.Column("percentage_rate", sa.Float, nullable=True),
        sa.Column("applicable_to", sa.String, nullable=False, server_default="cashier"),
        sa.Column("applicable_branches", sa.JSON, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("valid_from", sa.Date, nullable=True),
        sa.Column("valid_to", sa.Date, nullable=True),
    )

    op.create_table(
        "commission_calculations",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("cashier_id", sa.Integer, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("branch_id", sa.Integer, sa.ForeignKey("branches.id"), nullable=True),
        sa.Column("period_start", sa.Date, nullable=False),
        sa.Column("period_end", sa.Date, nullable=False),
        sa.Column("total_sales", sa.Float, nullable=False),
        sa.Column("target_amount", sa.Float, nullable=True),
        sa.Column("achievement_percent", sa.Float, nullable=True),
        sa.Column("rate_id", sa.Integer, nullable=True),
        sa.Column("calculated_commission", sa.Float, nullable=False),
        sa.Column("adjusted_commission", sa.Float, nullable=True),
        sa.Column("final_commission", sa.Float, nullable=False),
        sa.Column("status", sa.String, nullable=False, server_default="pending"),
        sa.Column("journal_ids", sa.JSON, nullable=True),
        sa.Column("notes", sa.String, nullable=True),
        sa.Column("approved_by", sa.Integer, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("approved_at", sa.DateTime, nullable=True),
        sa.Column("paid_at", sa.DateTime, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "branch_daily_sales",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("branch_id", sa.Integer, sa.ForeignKey("branches.id"), nullable=False),
        sa.Column("sales_date", sa.Date, nullable=False),
        sa.Column("total_sales", sa.Float, nullable=False, server_default="0"),
        sa.Column("transactions_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("average_ticket", sa.Float, nullable=False, server_default="0"),
        sa.Column("cashier_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("target_amount", sa.Float, nullable=False, server_default="0"),
        sa.Column("achievement_amount", sa.Float, nullable=False, server_default="0"),
        sa.Column("achievement_percent", sa.Float, nullable=False, server_default="0"),
        sa.Column("morning_shift_sales", sa.Float, nullable=False, server_default="0"),
        sa.Column("evening_shift_sales", sa.Float, nullable=False, server_default="0"),
        sa.Column("night_shift_sales", sa.Float, nullable=False, server_default="0"),
        sa.Column("morning_shift_target", sa.Float, nullable=False, server_default="0"),
        sa.Column("evening_shift_target", sa.Float, nullable=False, server_default="0"),
        sa.Column("night_shift_target", sa.Float, nullable=False, server_default="0"),
        sa.Column("journal_ids", sa.JSON, nullable=True),
        sa.Column("computed_at", sa.DateTime, nullable=False),
        sa.UniqueConstraint("branch_id", "sales_date", name="_branch_sales_date_uc"),
    )

    op.create_index(
        "ix_branch_monthly_targets_branch_month",
        "branch_monthly_targets",
        ["branch_id", "year_month"],
    )
    op.create_index(
        "ix_target_daily_allocations_date",
        "target_daily_allocations",
        ["target_date"],
    )


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_index("ix_target_daily_allocations_date", "target_daily_allocations")
    op.drop_index("ix_branch_monthly_targets_branch_month", "branch_monthly_targets")

    op.drop_table("branch_daily_sales")
    op.drop_table("commission_calculations")
    op.drop_table("commission_rates")
    op.drop_table("incentive_awards")
    op.drop_table("incentive_tiers")
    op.drop_table("seasons_holidays")
    op.drop_table("target_shift_allocations")
    op.drop_table("target_daily_allocations")
    op.drop_table("branch_monthly_targets")
    op.drop_table("target_weight_profiles")
    op.drop_table("cashier_sales_journals")
    op.drop_table("users")
    op.drop_table("branches")
