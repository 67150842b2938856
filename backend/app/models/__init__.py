"""Database models"""

from app.models.admin_account import AdminAccount
from app.models.login_attempt import LoginAttempt
from app.models.audit import AuditEntry

__all__ = ["AdminAccount", "LoginAttempt", "AuditEntry"]
