# salestrack/services/audit.py

"""
Audit trail of privileged changes.

``record_action`` only adds the row to the session: it is committed together
with the change it describes, or rolled back with it.
"""

from decimal import Decimal
from typing import Any, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from sqlalchemy.orm import Session

from salestrack.core.access import Actor
from salestrack.models.audit_logs import AuditLog

SYSTEM_ACTOR = "system"
USER_AGENT_MAX = 255

# Maintained by the database, never worth a diff
BOOKKEEPING_FIELDS = {"updated_at"}


def snapshot(obj, schema: type[BaseModel]) -> dict[str, Any]:
    """JSON-ready copy of ``obj`` as ``schema`` exposes it (no secrets)."""
    return schema.model_validate(obj).model_dump(mode="json")


def _as_json(values) -> Optional[dict]:
    if values is None:
        return None
    # Money stays exact in the trail
    return jsonable_encoder(values, custom_encoder={Decimal: str})


def record_action(
    db: Session,
    actor: Optional[Actor],
    action: str,
    table_name: str,
    record_id=None,
    old_values: Optional[dict] = None,
    new_values: Optional[dict] = None,
    request: Optional[Request] = None,
) -> AuditLog:
    ip_address = None
    user_agent = None
    if request is not None:
        ip_address = request.client.host if request.client else None
        user_agent = (request.headers.get("user-agent") or "")[:USER_AGENT_MAX] or None

    entry = AuditLog(
        actor_id=actor.user_id if actor else None,
        actor_username=actor.username if actor else SYSTEM_ACTOR,
        action=action,
        table_name=table_name,
        record_id=str(record_id) if record_id is not None else None,
        old_values=_as_json(old_values),
        new_values=_as_json(new_values),
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(entry)
    return entry


def changed_fields(before: dict, after: dict) -> tuple[dict, dict]:
    """Only the keys whose value differs, as ``(old, new)``."""
    keys = [
        key for key in after
        if key not in BOOKKEEPING_FIELDS and before.get(key) != after.get(key)
    ]
    return {key: before.get(key) for key in keys}, {key: after.get(key) for key in keys}
