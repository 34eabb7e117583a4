# salestrack/models/sale_insurances.py

from sqlalchemy import Column, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from salestrack.database import Base


class SaleInsurance(Base):
    """One insurance product sold on a sale, with its commission at sale time."""

    __tablename__ = "sale_insurances"

    id = Column(Integer, primary_key=True, index=True)

    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    insurance_type_id = Column(Integer, ForeignKey("insurance_types.id"), nullable=False, index=True)

    # Snapshots so renaming or repricing a type never rewrites history
    insurance_name = Column(String(100), nullable=False)
    commission_amount = Column(Numeric(10, 2), nullable=False)

    sale = relationship("Sale", back_populates="insurances")
    insurance_type = relationship("InsuranceType")
