from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class SystemSettingsResponse(BaseModel):
    app_name: str
    app_logo: Optional[str] = None
    notification_email: Optional[str] = None
    max_sales_per_day: int


class SystemSettingsUpdate(BaseModel):
    app_name: Optional[str] = Field(None, min_length=1, max_length=100)
    app_logo: Optional[str] = Field(None, max_length=500)
    notification_email: Optional[EmailStr] = None
    max_sales_per_day: Optional[int] = Field(None, ge=1, le=1000)


class PublicSettings(BaseModel):
    """Branding shown on the login page, before authentication."""

    app_name: str
    app_logo: Optional[str] = None
