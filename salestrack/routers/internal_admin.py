import hmac
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salestrack.database import get_db
from salestrack.core.config import settings
from salestrack.schemas.user import BootstrapAdminRequest, UserResponse
from salestrack.services import users as user_service
from salestrack.services.audit import record_action

router = APIRouter(prefix="/internal", tags=["Internal"])

logger = logging.getLogger("salestrack")


@router.post("/bootstrap-admin", response_model=UserResponse)
def bootstrap_admin(
    request: Request,
    data: BootstrapAdminRequest,
    x_internal_secret: str = Header(""),
    db: Session = Depends(get_db),
):
    # Protect this route with a secret key
    if not hmac.compare_digest(x_internal_secret.encode(), settings.INTERNAL_ADMIN_SECRET.encode()):
        raise HTTPException(status_code=403, detail="Unauthorized")

    try:
        user = user_service.bootstrap_admin(db, data.username, data.password, data.email)
        record_action(db, None, "bootstrap_admin", "users", user.id, request=request)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to bootstrap admin")

    logger.info(f"Admin bootstrap used for {user.username}")
    return user
