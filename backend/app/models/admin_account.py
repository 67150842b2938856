"""Admin account model"""

import uuid

from sqlalchemy import Column, String, Boolean, DateTime, Index
from sqlalchemy.sql import func

from app.core.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class AdminAccount(Base):
    """Back-office administrator identity"""

    __tablename__ = "admin_accounts"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), default="ADMIN", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index('idx_admin_accounts_role_active', 'role', 'is_active'),
    )

    def __repr__(self):
        return f"<AdminAccount(id={self.id}, email='{self.email}', role='{self.role}')>"
