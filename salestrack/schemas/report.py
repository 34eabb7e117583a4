# schemas/report.py

from pydantic import BaseModel
from datetime import date
from decimal import Decimal
from typing import List, Optional

from salestrack.schemas.sale import SaleRecord


class SalesSummary(BaseModel):
    total_amount: Decimal = Decimal("0.00")
    total_commission: Decimal = Decimal("0.00")
    sales_count: int = 0
    average_amount: Decimal = Decimal("0.00")
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class MonthBucket(BaseModel):
    month: str
    month_start: date
    month_end: date
    total_amount: Decimal
    total_commission: Decimal
    sales_count: int


class InsuranceTypeBucket(BaseModel):
    insurance_name: str
    sales_count: int
    total_commission: Decimal


class EmployeeSummary(SalesSummary):
    employee_name: str


class TopSeller(BaseModel):
    employee_name: str
    sales_count: int
    total_commission: Decimal


class DayBucket(BaseModel):
    day: date
    sales_count: int
    total_commission: Decimal


class DashboardStats(BaseModel):
    total_sales: int
    total_commission: Decimal
    sales_this_week: int
    current_month: SalesSummary
    top_sellers: List[TopSeller]
    recent_sales: List[SaleRecord]
    weekly_evolution: List[DayBucket]
