# salestrack/routers/audit_logs.py

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from salestrack.database import get_db
from salestrack.core.access import Actor
from salestrack.core.auth import get_admin_actor
from salestrack.core.errors import ValidationError
from salestrack.models.audit_logs import AuditLog
from salestrack.schemas.audit_log import AuditLogResponse
from salestrack.services.stats import day_end, day_start

router = APIRouter(prefix="/audit-logs", tags=["Audit"])


@router.get("", response_model=list[AuditLogResponse])
def list_audit_logs(
    table_name: Optional[str] = Query(None),
    action: Optional[str] = Query(None),
    actor_username: Optional[str] = Query(None),
    record_id: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    admin: Actor = Depends(get_admin_actor),
):
    if start_date and end_date and start_date > end_date:
        raise ValidationError({"end_date": "End date must not be before start date"})

    query = db.query(AuditLog)

    if table_name:
        query = query.filter(AuditLog.table_name == table_name)
    if action:
        query = query.filter(AuditLog.action == action)
    if actor_username:
        query = query.filter(AuditLog.actor_username == actor_username.strip().lower())
    if record_id:
        query = query.filter(AuditLog.record_id == record_id)
    if start_date:
        query = query.filter(AuditLog.created_at >= day_start(start_date))
    if end_date:
        query = query.filter(AuditLog.created_at <= day_end(end_date))

    return (
        query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
