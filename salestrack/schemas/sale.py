# schemas/sale.py

from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import List, Optional
from decimal import Decimal


class SaleCreate(BaseModel):
    # Free-form strings: the sale form validator reports field errors itself
    client_name: str = ""
    reservation_number: str = ""
    insurance_type_ids: List[int] = []
    notes: Optional[str] = None
    sale_date: Optional[date] = None
    amount: Decimal = Field(Decimal("0.00"), ge=0, lt=100_000_000)

    # Admins may record a sale on behalf of an employee
    employee_name: Optional[str] = None


class SaleUpdate(BaseModel):
    client_name: Optional[str] = None
    reservation_number: Optional[str] = None
    insurance_type_ids: Optional[List[int]] = None
    notes: Optional[str] = None
    amount: Optional[Decimal] = Field(None, ge=0, lt=100_000_000)


class InsuranceLine(BaseModel):
    insurance_type_id: Optional[int] = None
    insurance_name: str
    commission_amount: Decimal = Decimal("0.00")

    class Config:
        from_attributes = True


class SaleRecord(BaseModel):
    """Sale as seen by the aggregation engine."""

    id: Optional[int] = None
    employee_name: str = ""
    client_name: str = ""
    reservation_number: str = ""
    amount: Decimal = Decimal("0.00")
    commission_amount: Decimal = Decimal("0.00")
    status: str = "active"
    created_at: Optional[datetime] = None
    insurances: List[InsuranceLine] = []

    class Config:
        from_attributes = True


class SaleResponse(SaleRecord):
    id: int
    employee_id: Optional[int] = None
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None
