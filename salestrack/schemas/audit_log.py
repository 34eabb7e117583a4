from pydantic import BaseModel
from datetime import datetime
from typing import Any, Optional


class AuditLogResponse(BaseModel):
    id: int
    actor_id: Optional[int] = None
    actor_username: str
    action: str
    table_name: str
    record_id: Optional[str] = None
    old_values: Optional[dict[str, Any]] = None
    new_values: Optional[dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
