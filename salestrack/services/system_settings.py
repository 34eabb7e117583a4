# salestrack/services/system_settings.py

import logging

from sqlalchemy.orm import Session

from salestrack.models.system_settings import SystemSetting
from salestrack.schemas.system_setting import SystemSettingsResponse

logger = logging.getLogger("salestrack")

# Values used until an admin stores their own
DEFAULT_SETTINGS = {
    "app_name": "Gestion des Ventes",
    "app_logo": None,
    "notification_email": None,
    "max_sales_per_day": 50,
}

# Settings an admin may clear back to "not set"
NULLABLE_SETTINGS = {"app_logo", "notification_email"}

DESCRIPTIONS = {
    "app_name": "Name shown in the header and on the login page",
    "app_logo": "Logo URL shown next to the name",
    "notification_email": "Recipient of password reset requests, overrides ADMIN_RESET_EMAIL",
    "max_sales_per_day": "Sales one employee may record per day",
}


def load_settings(db: Session) -> dict:
    values = dict(DEFAULT_SETTINGS)
    for row in db.query(SystemSetting).filter(SystemSetting.key.in_(DEFAULT_SETTINGS)).all():
        values[row.key] = row.value
    return values


def get_settings(db: Session) -> SystemSettingsResponse:
    return SystemSettingsResponse(**load_settings(db))


def get_setting(db: Session, key: str):
    row = db.query(SystemSetting).filter(SystemSetting.key == key).first()
    if row is None:
        return DEFAULT_SETTINGS[key]
    return row.value


def update_settings(db: Session, changes: dict, updated_by: str) -> dict:
    """Upsert ``changes`` without committing. Returns the previous values of the changed keys."""
    current = load_settings(db)
    rows = {
        row.key: row
        for row in db.query(SystemSetting).filter(SystemSetting.key.in_(list(changes))).all()
    }

    previous = {}

    for key, value in changes.items():
        if current.get(key) == value:
            continue

        previous[key] = current.get(key)

        row = rows.get(key)
        if row is None:
            row = SystemSetting(key=key, description=DESCRIPTIONS.get(key))
            db.add(row)

        row.value = value
        row.updated_by = updated_by

    if previous:
        logger.info(f"Settings {sorted(previous)} updated by {updated_by}")

    return previous
