# salestrack/services/users.py

"""
Privileged account operations.

Routers check that the caller is an admin before calling in here. Each
function commits its own changes; database errors propagate to the router,
which rolls back.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from salestrack.core.access import ROLE_ADMIN, ROLE_EMPLOYEE, Actor
from salestrack.core.config import settings
from salestrack.core.errors import NotFound, ValidationError
from salestrack.core.hashing import hash_password, verify_password
from salestrack.core.validation import ensure_strong_password
from salestrack.models.users import User, normalize_username
from salestrack.schemas.user import SeedResult
from salestrack.services.stats import as_utc

logger = logging.getLogger("salestrack")

DEFAULT_USERS = [
    {"username": "admin", "role": ROLE_ADMIN},
    {"username": "julie", "role": ROLE_EMPLOYEE},
    {"username": "sherman", "role": ROLE_EMPLOYEE},
    {"username": "alvin", "role": ROLE_EMPLOYEE},
    {"username": "stef", "role": ROLE_EMPLOYEE},
]


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.query(User).filter(User.username == normalize_username(username)).first()


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User")
    return user


def _active_admins_besides(db: Session, user_id: int) -> int:
    return (
        db.query(User)
        .filter(
            User.role == ROLE_ADMIN,
            User.is_active == True,  # noqa: E712
            User.id != user_id,
        )
        .count()
    )


def _guard_last_admin(db: Session, user: User):
    if user.role == ROLE_ADMIN and user.is_active and _active_admins_besides(db, user.id) == 0:
        raise ValidationError({"role": "At least one active administrator must remain"})


# =========================================================
# CREATE / UPDATE / DELETE
# =========================================================

def create_user(
    db: Session,
    username: str,
    password: str,
    role: str = ROLE_EMPLOYEE,
    email: str | None = None,
) -> User:
    username = normalize_username(username)

    if len(username) < 2:
        raise ValidationError({"username": "Username must contain at least 2 characters"})

    ensure_strong_password(password)

    if get_user_by_username(db, username):
        raise ValidationError({"username": "Username already exists"})

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"User {username} created with role {role}")
    return user


def update_user(
    db: Session,
    actor: Actor,
    user_id: int,
    email: str | None = None,
    role: str | None = None,
    is_active: bool | None = None,
) -> User:
    user = get_user(db, user_id)

    losing_admin = (role is not None and role != ROLE_ADMIN) or is_active is False

    if losing_admin and user.id == actor.user_id:
        raise ValidationError({"user_id": "You cannot demote or deactivate your own account"})

    if losing_admin:
        _guard_last_admin(db, user)

    if email is not None:
        user.email = email
    if role is not None:
        user.role = role
    if is_active is not None:
        user.is_active = is_active

    db.commit()
    db.refresh(user)

    logger.info(f"User {user.username} updated by {actor.username}")
    return user


def delete_user(db: Session, actor: Actor, user_id: int):
    user = get_user(db, user_id)

    if user.id == actor.user_id:
        raise ValidationError({"user_id": "You cannot delete your own account"})

    _guard_last_admin(db, user)

    # Sales keep employee_name, so history survives the account
    db.delete(user)
    db.commit()

    logger.info(f"User {user.username} deleted by {actor.username}")


# =========================================================
# PASSWORDS
# =========================================================

def change_password(db: Session, user: User, current_password: str, new_password: str):
    if not verify_password(current_password, user.password_hash):
        raise ValidationError({"current_password": "Current password is incorrect"})

    ensure_strong_password(new_password, field="new_password")

    user.password_hash = hash_password(new_password)
    db.commit()


def set_password(db: Session, user: User, new_password: str):
    ensure_strong_password(new_password, field="new_password")

    user.password_hash = hash_password(new_password)
    user.reset_token_hash = None
    user.reset_token_expires_at = None
    db.commit()

    logger.info(f"Password updated for user {user.username}")


def issue_reset_token(db: Session, username: str) -> tuple[User, str] | None:
    """Store a hashed one-time token for ``username``; None if unknown or inactive."""
    user = get_user_by_username(db, username)

    if not user or not user.is_active:
        return None

    raw_token = secrets.token_urlsafe(32)

    user.reset_token_hash = hash_password(raw_token)
    user.reset_token_expires_at = datetime.now(timezone.utc) + timedelta(
        minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES
    )
    db.commit()

    return user, raw_token


def find_user_for_reset_token(db: Session, username: str, token: str) -> User:
    user = get_user_by_username(db, username)

    if (
        not user
        or not user.reset_token_hash
        or not user.reset_token_expires_at
        or as_utc(user.reset_token_expires_at) <= datetime.now(timezone.utc)
        or not verify_password(token, user.reset_token_hash)
    ):
        raise NotFound("Reset token")

    return user


def reset_password_with_token(db: Session, username: str, token: str, new_password: str) -> User:
    user = find_user_for_reset_token(db, username, token)
    set_password(db, user, new_password)
    return user


# =========================================================
# SEEDING / BOOTSTRAP
# =========================================================

def seed_default_users(
    db: Session,
    password: str | None = None,
    usernames: list[str] | None = None,
) -> list[SeedResult]:
    """
    Create the default accounts that do not exist yet.

    Existing usernames are reported and left untouched, so running this
    twice never creates duplicates.
    """
    password = password or settings.DEFAULT_USER_PASSWORD
    if not password:
        raise ValidationError({"password": "A password is required to seed accounts"})

    ensure_strong_password(password)

    wanted = {normalize_username(name) for name in usernames} if usernames else None

    results = []

    for entry in DEFAULT_USERS:
        username = entry["username"]

        if wanted is not None and username not in wanted:
            continue

        if get_user_by_username(db, username):
            results.append(
                SeedResult(username=username, success=True, created=False, message="User already exists")
            )
            continue

        create_user(db, username, password, role=entry["role"])
        results.append(
            SeedResult(username=username, success=True, created=True, message="User created")
        )

    return results


def bootstrap_admin(db: Session, username: str, password: str, email: str | None = None) -> User:
    """Create the first admin, or promote and re-activate an existing account."""
    user = get_user_by_username(db, username)

    if user is None:
        return create_user(db, username, password, role=ROLE_ADMIN, email=email)

    user.role = ROLE_ADMIN
    user.is_active = True
    if email:
        user.email = email
    db.commit()
    db.refresh(user)

    logger.info(f"User {user.username} promoted to admin through bootstrap")
    return user
