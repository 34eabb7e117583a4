# salestrack/routers/users.py

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from salestrack.database import get_db
from salestrack.core.access import Actor
from salestrack.core.auth import get_admin_actor
from salestrack.core.email import send_password_changed_by_admin
from salestrack.models.users import User
from salestrack.schemas.user import (
    AdminPasswordReset,
    SeedRequest,
    SeedResult,
    UserCreate,
    UserResponse,
    UserUpdate,
)
from salestrack.services import users as user_service
from salestrack.services.audit import changed_fields, record_action, snapshot

router = APIRouter(prefix="/users", tags=["Users"])

logger = logging.getLogger("salestrack")


# =========================================================
# LIST / CREATE
# =========================================================
@router.get("", response_model=list[UserResponse])
def list_users(
    include_inactive: bool = Query(True),
    db: Session = Depends(get_db),
    admin: Actor = Depends(get_admin_actor),
):
    query = db.query(User)

    if not include_inactive:
        query = query.filter(User.is_active == True)  # noqa: E712

    return query.order_by(User.username).all()


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    request: Request,
    data: UserCreate,
    db: Session = Depends(get_db),
    admin: Actor = Depends(get_admin_actor),
):
    try:
        user = user_service.create_user(
            db,
            username=data.username,
            password=data.password,
            role=data.role,
            email=data.email,
        )
        record_action(
            db, admin, "create", "users", user.id,
            new_values=snapshot(user, UserResponse), request=request,
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to create user")

    return user


# =========================================================
# UPDATE / DELETE
# =========================================================
@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    request: Request,
    data: UserUpdate,
    db: Session = Depends(get_db),
    admin: Actor = Depends(get_admin_actor),
):
    before = snapshot(user_service.get_user(db, user_id), UserResponse)

    try:
        user = user_service.update_user(
            db,
            admin,
            user_id,
            email=data.email,
            role=data.role,
            is_active=data.is_active,
        )
        old_values, new_values = changed_fields(before, snapshot(user, UserResponse))
        if new_values:
            record_action(
                db, admin, "update", "users", user.id,
                old_values=old_values, new_values=new_values, request=request,
            )
            db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to update user")

    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: Actor = Depends(get_admin_actor),
):
    before = snapshot(user_service.get_user(db, user_id), UserResponse)

    try:
        user_service.delete_user(db, admin, user_id)
        record_action(db, admin, "delete", "users", user_id, old_values=before, request=request)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to delete user")


# =========================================================
# PASSWORD RESET BY ADMIN
# =========================================================
@router.post("/{user_id}/reset-password")
def admin_reset_password(
    user_id: int,
    request: Request,
    data: AdminPasswordReset,
    db: Session = Depends(get_db),
    admin: Actor = Depends(get_admin_actor),
):
    user = user_service.get_user(db, user_id)

    try:
        user_service.set_password(db, user, data.new_password)
        record_action(db, admin, "password_reset", "users", user.id, request=request)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to reset password")

    logger.info(f"Password of {user.username} reset by {admin.username}")

    # The password is already changed; the email is a courtesy
    email_sent = send_password_changed_by_admin(data.notify_email or user.email, user.username)

    return {
        "message": f"Password reset for {user.username}",
        "email_sent": email_sent,
    }


# =========================================================
# DEFAULT ACCOUNTS
# =========================================================
@router.post("/seed", response_model=list[SeedResult])
def seed_users(
    request: Request,
    data: SeedRequest,
    db: Session = Depends(get_db),
    admin: Actor = Depends(get_admin_actor),
):
    try:
        results = user_service.seed_default_users(db, password=data.password, usernames=data.usernames)
        created_names = [result.username for result in results if result.created]
        if created_names:
            record_action(
                db, admin, "seed", "users",
                new_values={"created": created_names}, request=request,
            )
            db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to seed users")

    logger.info(f"Seeding by {admin.username}: {len(created_names)} account(s) created")

    return results
