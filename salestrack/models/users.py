# salestrack/models/users.py

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from salestrack.database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # Stored trimmed and lower-cased so lookups are case-insensitive
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String, nullable=True)
    password_hash = Column(String, nullable=False)

    role = Column(String(20), nullable=False, default="employee")
    is_active = Column(Boolean, default=True, nullable=False)

    reset_token_hash = Column(String, nullable=True)
    reset_token_expires_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'employee')", name="ck_user_role_valid"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def normalize_username(username: str | None) -> str:
    return (username or "").strip().lower()
