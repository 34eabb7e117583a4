from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
    Index,
)
from sqlalchemy.sql import func

from salestrack.database import Base


OBJECTIVE_TYPES = ("weekly", "monthly", "yearly")


class Objective(Base):
    __tablename__ = "employee_objectives"

    __table_args__ = (
        CheckConstraint(
            "objective_type IN ('weekly', 'monthly', 'yearly')",
            name="ck_objective_type_valid",
        ),
        CheckConstraint(
            "period_end >= period_start",
            name="ck_objective_period_valid",
        ),
        CheckConstraint(
            "target_amount >= 0",
            name="ck_objective_target_amount_non_negative",
        ),
        CheckConstraint(
            "target_sales_count >= 0",
            name="ck_objective_target_count_non_negative",
        ),
        Index("ix_objectives_employee_period", "employee_name", "period_start", "period_end"),
    )

    id = Column(Integer, primary_key=True, index=True)

    employee_name = Column(String(50), nullable=False, index=True)
    objective_type = Column(String(20), nullable=False)

    target_amount = Column(Numeric(10, 2), nullable=False, default=0)
    target_sales_count = Column(Integer, nullable=False, default=0)

    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)

    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class ObjectiveHistory(Base):
    """Archived objective with the figures reached. Written once, never updated."""

    __tablename__ = "objective_history"

    id = Column(Integer, primary_key=True, index=True)

    # One snapshot per objective
    objective_id = Column(Integer, nullable=True, unique=True, index=True)

    employee_name = Column(String(50), nullable=False, index=True)
    objective_type = Column(String(20), nullable=False)

    target_amount = Column(Numeric(10, 2), nullable=False)
    target_sales_count = Column(Integer, nullable=False)

    achieved_amount = Column(Numeric(10, 2), nullable=False)
    achieved_sales_count = Column(Integer, nullable=False)

    progress_percentage_amount = Column(Numeric(5, 2), nullable=False)
    progress_percentage_sales = Column(Numeric(5, 2), nullable=False)

    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    description = Column(Text, nullable=True)

    is_completed = Column(Boolean, nullable=False)
    objective_achieved = Column(Boolean, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=True)
    archived_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
