from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional

BonusStatus = Literal["pending", "approved", "rejected", "paid"]


class BonusRuleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    min_achievement_percent: Decimal = Field(..., ge=0, le=1000)
    max_achievement_percent: Optional[Decimal] = Field(None, gt=0, le=1000)
    bonus_percent: Decimal = Field(..., ge=0, le=100)

class BonusRuleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    min_achievement_percent: Optional[Decimal] = Field(None, ge=0, le=1000)
    max_achievement_percent: Optional[Decimal] = Field(None, gt=0, le=1000)
    bonus_percent: Optional[Decimal] = Field(None, ge=0, le=100)
    is_active: Optional[bool] = None

class BonusRuleResponse(BaseModel):
    id: Optional[int] = None
    name: str
    min_achievement_percent: Decimal
    max_achievement_percent: Optional[Decimal] = None
    bonus_percent: Decimal
    is_active: bool = True
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BonusCreate(BaseModel):
    objective_id: int
    notes: Optional[str] = Field(None, max_length=500)

class BonusStatusUpdate(BaseModel):
    status: BonusStatus
    notes: Optional[str] = Field(None, max_length=500)


class BonusComputation(BaseModel):
    """Bonus an objective earns with the sales recorded so far."""

    employee_name: str
    objective_id: Optional[int] = None
    period_start: date
    period_end: date
    total_sales: int
    total_amount: Decimal
    total_commission: Decimal
    achievement_percent: Decimal
    bonus_rule_id: Optional[int] = None
    bonus_rule_name: Optional[str] = None
    bonus_rate: Decimal
    bonus_amount: Decimal


class BonusResponse(BonusComputation):
    id: int
    status: BonusStatus
    notes: Optional[str] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
