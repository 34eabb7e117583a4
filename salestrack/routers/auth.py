import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import SQLAlchemyError

from salestrack.database import get_db
from salestrack.models.users import User
from salestrack.schemas.user import (
    ForgotPasswordRequest,
    PasswordChange,
    PasswordCheckRequest,
    ResetPasswordRequest,
    ResetTokenCheck,
    TokenResponse,
    UserResponse,
)
from salestrack.core.auth import get_current_user
from salestrack.core.config import settings
from salestrack.core.email import send_password_reset_link, send_reset_request_to_admin
from salestrack.core.hashing import verify_password
from salestrack.core.jwt import create_user_token
from salestrack.core.rate_limiter import limiter
from salestrack.core.validation import PASSWORD_RULES, validate_password
from salestrack.services import system_settings as settings_service
from salestrack.services import users as user_service
from salestrack.services.audit import record_action

router = APIRouter(prefix="/auth", tags=["Authentication"])

logger = logging.getLogger("salestrack")


# ---------------- LOGIN (TOKEN-BASED) ----------------
@router.post("/login", response_model=TokenResponse)
@limiter.limit("5/minute")
def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    user = user_service.get_user_by_username(db, form_data.username)

    if not user or not verify_password(form_data.password, user.password_hash):
        logger.info(f"Failed login for {form_data.username!r}")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is disabled")

    token = create_user_token(user)

    return {
        "access_token": token,
        "token_type": "bearer",
        "role": user.role,
    }


# ---------------- LOGOUT ----------------
@router.post("/logout")
def logout():
    return {"message": "Logged out successfully"}


# ---------------- CURRENT USER ----------------
@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/change-password")
def change_password(
    data: PasswordChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    try:
        user_service.change_password(db, current_user, data.current_password, data.new_password)
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to update password")

    return {"message": "Password updated successfully"}


# ---------------- PASSWORD RULES ----------------
@router.get("/password-rules")
def password_rules():
    return [{"key": key, "label": label} for key, label in PASSWORD_RULES]


@router.post("/password-check")
def password_check(data: PasswordCheckRequest):
    return validate_password(data.password).as_dict()


# ---------------- FORGOT PASSWORD ----------------
@router.post("/forgot-password")
@limiter.limit("3/minute")
def forgot_password(request: Request, data: ForgotPasswordRequest, db: Session = Depends(get_db)):
    issued = user_service.issue_reset_token(db, data.username)

    if issued:
        user, raw_token = issued
        reset_link = f"{settings.FRONTEND_RESET_URL}?token={raw_token}&username={user.username}"

        # The token is stored either way; a failed email is only logged
        if user.email:
            send_password_reset_link(user.email, user.username, reset_link)
        else:
            send_reset_request_to_admin(
                user.username,
                reset_link,
                to_email=settings_service.get_setting(db, "notification_email"),
            )

        record_action(
            db, None, "password_reset_request", "users", user.id,
            new_values={"delivered_to": "user" if user.email else "admin"},
            request=request,
        )
        db.commit()

    return {"message": "If the account exists, a reset link has been sent."}


# ---------------- RESET PASSWORD ----------------
@router.post("/validate-reset-token")
def validate_reset_token(data: ResetTokenCheck, db: Session = Depends(get_db)):
    user_service.find_user_for_reset_token(db, data.username, data.token)
    return {"valid": True}


@router.post("/reset-password")
@limiter.limit("5/minute")
def reset_password(
    request: Request,
    data: ResetPasswordRequest,
    db: Session = Depends(get_db),
):
    try:
        user_service.reset_password_with_token(db, data.username, data.token, data.new_password)
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to reset password")

    return {"message": "Password reset successful. Please login."}
