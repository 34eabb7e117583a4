# salestrack/models/sales.py

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from salestrack.database import Base


SALE_STATUS_ACTIVE = "active"
SALE_STATUS_CANCELLED = "cancelled"


class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)

    employee_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    # Owner identity used by the access gate and the aggregations
    employee_name = Column(String(50), nullable=False, index=True)

    client_name = Column(String(100), nullable=False)
    reservation_number = Column(String(50), nullable=False, index=True)

    amount = Column(Numeric(10, 2), nullable=False, default=0)
    commission_amount = Column(Numeric(10, 2), nullable=False, default=0)

    notes = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default=SALE_STATUS_ACTIVE)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    insurances = relationship(
        "SaleInsurance",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleInsurance.id",
    )


    # Composite index for employee and date filtering
    __table_args__ = (
        Index("ix_sales_employee_created", "employee_name", "created_at"),
        CheckConstraint("amount >= 0", name="ck_sale_amount_non_negative"),
        CheckConstraint("commission_amount >= 0", name="ck_sale_commission_non_negative"),
        CheckConstraint("status IN ('active', 'cancelled')", name="ck_sale_status_valid"),
    )
