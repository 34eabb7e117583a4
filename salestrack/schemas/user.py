from pydantic import BaseModel, EmailStr, Field
from datetime import datetime
from typing import List, Literal, Optional

Role = Literal["admin", "employee"]


class UserCreate(BaseModel):
    username: str = Field(..., min_length=2, max_length=50, description="Login name, case-insensitive")
    password: str = Field(..., max_length=72, description="Plain password (will be hashed)")
    email: Optional[EmailStr] = Field(None, description="Used for password notifications")
    role: Role = "employee"

class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    role: Optional[Role] = None
    is_active: Optional[bool] = None

class UserResponse(BaseModel):
    id: int
    username: str
    email: Optional[str] = None
    role: Role
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: Role


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(..., max_length=72)

class PasswordCheckRequest(BaseModel):
    password: str = ""

class ForgotPasswordRequest(BaseModel):
    username: str

class ResetTokenCheck(BaseModel):
    username: str
    token: str

class ResetPasswordRequest(ResetTokenCheck):
    new_password: str = Field(..., max_length=72)

class AdminPasswordReset(BaseModel):
    new_password: str = Field(..., max_length=72)
    notify_email: Optional[EmailStr] = Field(
        None, description="Defaults to the account email when omitted",
    )


class SeedRequest(BaseModel):
    password: Optional[str] = Field(None, max_length=72)
    usernames: Optional[List[str]] = None

class SeedResult(BaseModel):
    username: str
    success: bool
    created: bool = False
    message: str


class BootstrapAdminRequest(BaseModel):
    username: str = Field(..., min_length=2, max_length=50)
    password: str = Field(..., max_length=72)
    email: Optional[EmailStr] = None
