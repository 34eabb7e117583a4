# salestrack/models/insurance_types.py

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, Numeric, String
from sqlalchemy.sql import func

from salestrack.database import Base


class InsuranceType(Base):
    __tablename__ = "insurance_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, index=True, nullable=False)

    # Flat amount credited per sold unit
    commission_amount = Column(Numeric(10, 2), nullable=False, default=0)

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

    __table_args__ = (
        CheckConstraint("commission_amount >= 0", name="ck_insurance_commission_non_negative"),
    )
