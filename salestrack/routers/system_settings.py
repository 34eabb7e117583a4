# salestrack/routers/system_settings.py

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salestrack.database import get_db
from salestrack.core.access import Actor
from salestrack.core.auth import get_admin_actor
from salestrack.schemas.system_setting import (
    PublicSettings,
    SystemSettingsResponse,
    SystemSettingsUpdate,
)
from salestrack.services import system_settings as settings_service
from salestrack.services.audit import record_action

router = APIRouter(prefix="/settings", tags=["Settings"])

logger = logging.getLogger("salestrack")


@router.get("/public", response_model=PublicSettings)
def public_settings(db: Session = Depends(get_db)):
    values = settings_service.load_settings(db)
    return PublicSettings(app_name=values["app_name"], app_logo=values["app_logo"])


@router.get("", response_model=SystemSettingsResponse)
def read_settings(
    db: Session = Depends(get_db),
    admin: Actor = Depends(get_admin_actor),
):
    return settings_service.get_settings(db)


@router.put("", response_model=SystemSettingsResponse)
def update_settings(
    request: Request,
    data: SystemSettingsUpdate,
    db: Session = Depends(get_db),
    admin: Actor = Depends(get_admin_actor),
):
    changes = {
        key: value
        for key, value in data.model_dump(mode="json", exclude_unset=True).items()
        if value is not None or key in settings_service.NULLABLE_SETTINGS
    }

    try:
        previous = settings_service.update_settings(db, changes, admin.username)

        if previous:
            record_action(
                db, admin, "update", "system_settings",
                old_values=previous,
                new_values={key: changes[key] for key in previous},
                request=request,
            )
        db.commit()

    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to save settings")

    return settings_service.get_settings(db)
