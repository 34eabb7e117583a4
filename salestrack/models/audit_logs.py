# salestrack/models/audit_logs.py

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.sql import func

from salestrack.database import Base


class AuditLog(Base):
    """Append-only trail of privileged changes."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)

    actor_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    # Kept after the account is gone; "system" for internal calls
    actor_username = Column(String(50), nullable=False, index=True)

    action = Column(String(50), nullable=False, index=True)
    table_name = Column(String(50), nullable=False)
    record_id = Column(String(50), nullable=True)

    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)

    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    __table_args__ = (
        Index("ix_audit_logs_table_record", "table_name", "record_id"),
    )
