from decimal import Decimal
from pydantic import BaseModel, Field
from datetime import datetime


class InsuranceTypeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)

    commission_amount: Decimal = Field(
        ...,
        ge=0,
        lt=1_000_000,
        description="Flat commission credited per sale of this product"
    )


class InsuranceTypeUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    commission_amount: Decimal | None = Field(None, ge=0, lt=1_000_000)
    is_active: bool | None = None

class InsuranceTypeResponse(BaseModel):
    id: int
    name: str
    commission_amount: Decimal
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
