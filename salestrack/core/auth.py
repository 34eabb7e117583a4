# salestrack/core/auth.py

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from salestrack.database import get_db
from salestrack.models.users import User
from salestrack.core.access import Actor
from salestrack.core.errors import AccessDenied
from salestrack.core.jwt import decode_access_token

# Tokens are issued by POST /auth/login
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
):
    payload = decode_access_token(token)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.query(User).filter(User.id == int(payload["sub"])).first()

    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )

    return user


def get_current_actor(
    current_user: User = Depends(get_current_user),
) -> Actor:
    # Role is read from the database row, never trusted from the token
    return Actor.from_user(current_user)


def get_admin_actor(
    actor: Actor = Depends(get_current_actor),
) -> Actor:
    if not actor.is_admin:
        raise AccessDenied()
    return actor
