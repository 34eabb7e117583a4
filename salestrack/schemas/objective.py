from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

ObjectiveType = Literal["weekly", "monthly", "yearly"]


class ObjectiveCreate(BaseModel):
    employee_name: str
    objective_type: ObjectiveType = "monthly"
    target_amount: Decimal = Field(Decimal("0.00"), ge=0, lt=100_000_000)
    target_sales_count: int = Field(0, ge=0)
    period_start: date
    period_end: date
    description: Optional[str] = Field(None, max_length=500)

class ObjectiveUpdate(BaseModel):
    objective_type: Optional[ObjectiveType] = None
    target_amount: Optional[Decimal] = Field(None, ge=0, lt=100_000_000)
    target_sales_count: Optional[int] = Field(None, ge=0)
    period_start: Optional[date] = None
    period_end: Optional[date] = None
    description: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None

class ObjectiveResponse(BaseModel):
    id: Optional[int] = None
    employee_name: str
    objective_type: ObjectiveType = "monthly"
    target_amount: Decimal = Decimal("0.00")
    target_sales_count: int = 0
    period_start: date
    period_end: date
    description: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ObjectiveProgress(BaseModel):
    objective: ObjectiveResponse
    achieved_amount: Decimal
    achieved_sales_count: int
    progress_percentage_amount: Decimal
    progress_percentage_sales: Decimal
    days_remaining: int


class ObjectiveHistoryResponse(BaseModel):
    id: int
    objective_id: Optional[int] = None
    employee_name: str
    objective_type: ObjectiveType
    target_amount: Decimal
    target_sales_count: int
    achieved_amount: Decimal
    achieved_sales_count: int
    progress_percentage_amount: Decimal
    progress_percentage_sales: Decimal
    period_start: date
    period_end: date
    description: Optional[str] = None
    is_completed: bool
    objective_achieved: bool
    created_at: Optional[datetime] = None
    archived_at: datetime

    class Config:
        from_attributes = True
