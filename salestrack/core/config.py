# salestrack/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal

class Settings(BaseSettings):
    # App
    ENV: str = "development"
    DEBUG: bool = False

    # Security
    SECRET_KEY: str
    ALGORITHM: Literal["HS256", "HS512"] = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    BCRYPT_ROUNDS: int = 12

    # Database
    DATABASE_URL: str

    # Email (Resend). Without an API key, notifications are skipped.
    RESEND_API_KEY: str | None = None
    RESEND_FROM_EMAIL: str = "SalesTrack <noreply@resend.dev>"
    ADMIN_RESET_EMAIL: str | None = None

    # Password reset
    PASSWORD_RESET_EXPIRE_MINUTES: int = 30

    # Frontend
    FRONTEND_RESET_URL: str = "http://localhost:5173/reset-password"
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # Bootstrap / seeding
    INTERNAL_ADMIN_SECRET: str
    DEFAULT_USER_PASSWORD: str | None = None

    # Outbound calls
    UPSTREAM_TIMEOUT_SECONDS: float = 10.0

    RATE_LIMIT_ENABLED: bool = True


    model_config = SettingsConfigDict(
        env_file=".env",
        extra="forbid",
    )


settings = Settings()
