# salestrack/models/bonuses.py

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.sql import func

from salestrack.database import Base


BONUS_STATUS_PENDING = "pending"
BONUS_STATUS_APPROVED = "approved"
BONUS_STATUS_REJECTED = "rejected"
BONUS_STATUS_PAID = "paid"


class BonusRule(Base):
    """Achievement tier: reaching ``min_achievement_percent`` earns ``bonus_percent`` of the commission."""

    __tablename__ = "bonus_rules"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, index=True, nullable=False)

    min_achievement_percent = Column(Numeric(7, 2), nullable=False)
    # Open-ended tier when NULL
    max_achievement_percent = Column(Numeric(7, 2), nullable=True)
    bonus_percent = Column(Numeric(5, 2), nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("min_achievement_percent >= 0", name="ck_bonus_rule_min_non_negative"),
        CheckConstraint(
            "max_achievement_percent IS NULL OR max_achievement_percent > min_achievement_percent",
            name="ck_bonus_rule_range_valid",
        ),
        CheckConstraint("bonus_percent >= 0 AND bonus_percent <= 100", name="ck_bonus_rule_percent_valid"),
    )


class Bonus(Base):
    __tablename__ = "bonuses"

    id = Column(Integer, primary_key=True, index=True)

    employee_name = Column(String(50), nullable=False, index=True)
    # At most one bonus per objective
    objective_id = Column(
        Integer,
        ForeignKey("employee_objectives.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
        index=True,
    )
    bonus_rule_id = Column(Integer, ForeignKey("bonus_rules.id", ondelete="SET NULL"), nullable=True)
    bonus_rule_name = Column(String(100), nullable=True)

    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)

    total_sales = Column(Integer, nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total_commission = Column(Numeric(12, 2), nullable=False, default=0)

    achievement_percent = Column(Numeric(7, 2), nullable=False, default=0)
    bonus_rate = Column(Numeric(5, 2), nullable=False, default=0)
    bonus_amount = Column(Numeric(12, 2), nullable=False, default=0)

    status = Column(String(20), nullable=False, default=BONUS_STATUS_PENDING, index=True)
    notes = Column(Text, nullable=True)

    approved_at = Column(DateTime(timezone=True), nullable=True)
    approved_by = Column(String(50), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'paid')",
            name="ck_bonus_status_valid",
        ),
        CheckConstraint("bonus_amount >= 0", name="ck_bonus_amount_non_negative"),
    )
