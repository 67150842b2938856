"""Audit entry model for admin-sensitive actions."""

from sqlalchemy import Column, Integer, String, DateTime, Text, Index
from sqlalchemy.sql import func

from app.core.database import Base


class AuditEntry(Base):
    """Immutable audit entries."""

    __tablename__ = "audit_entries"

    id = Column(Integer, primary_key=True, index=True)
    # No foreign keys: entries outlive the accounts they mention.
    actor_id = Column(String(36), nullable=True, index=True)
    target_id = Column(String(36), nullable=True, index=True)
    action = Column(String(64), nullable=False, index=True)
    message = Column(Text, nullable=True)
    ip = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_audit_entries_created_at", "created_at"),
    )
