"""Login attempt ledger model"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Index

from app.core.database import Base


class LoginAttempt(Base):
    """Immutable record of a single login attempt."""

    __tablename__ = "login_attempts"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False)
    success = Column(Boolean, nullable=False)
    ip = Column(String(64), nullable=False, default="unknown")
    user_agent = Column(String(512), nullable=False, default="unknown")
    # Naive UTC; the ledger supplies the instant so window math stays in one clock.
    created_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_login_attempts_email_created_at", "email", "created_at"),
        Index("idx_login_attempts_created_at", "created_at"),
    )
