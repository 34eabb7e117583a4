# salestrack/core/jwt.py

from datetime import datetime, timedelta, timezone

from jose import jwt, JWTError

from salestrack.core.config import settings

TOKEN_TYPE = "access"


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    issued_at = datetime.now(timezone.utc)

    claims = dict(data)
    claims.update({
        "iat": issued_at,
        "exp": issued_at + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)),
        "type": TOKEN_TYPE,
    })

    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_user_token(user) -> str:
    """
    Token for a signed-in account.

    Username and role are informational for the client; requests are
    authorised from the database row behind ``sub``.
    """
    return create_access_token(
        data={"sub": str(user.id), "username": user.username, "role": user.role}
    )


def decode_access_token(token: str) -> dict | None:
    """Claims of a valid access token, or None if it is expired, forged or malformed."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    if payload.get("type") != TOKEN_TYPE:
        return None

    if not str(payload.get("sub", "")).isdigit():
        return None

    return payload
