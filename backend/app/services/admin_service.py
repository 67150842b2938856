"""Admin account service - lookups, bootstrap and password management"""

from sqlalchemy import exists, insert, literal, select
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
import uuid

from app.core.database import advisory_xact_lock
from app.core.exceptions import (
    ForbiddenError,
    ResourceNotFoundError,
    UnauthorizedError,
    ValidationError,
)
from app.core.principal import Principal, RequestContext, SUPERADMIN
from app.core.security import DEFAULT_ROUNDS, get_password_hash, verify_password
from app.models.admin_account import AdminAccount
from app.schemas.auth import RegisterRequest
from app.services.audit_service import AuditAction, AuditEmitter, AuditRecord

logger = logging.getLogger(__name__)


class AdminService:
    """Service for admin account reads and credential changes"""

    def __init__(self, db: Session, audit: AuditEmitter, bcrypt_rounds: int = DEFAULT_ROUNDS) -> None:
        self.db = db
        self.audit = audit
        self.bcrypt_rounds = bcrypt_rounds

    def get_admin_by_id(self, admin_id: str) -> Optional[AdminAccount]:
        """Get admin by ID"""
        return self.db.query(AdminAccount).filter(AdminAccount.id == admin_id).first()

    def get_admin(self, admin_id: str) -> AdminAccount:
        admin = self.get_admin_by_id(admin_id)
        if not admin:
            raise ResourceNotFoundError("Admin")
        return admin

    def list_admins(self) -> List[AdminAccount]:
        """All admins, newest first"""
        return self.db.query(AdminAccount).order_by(AdminAccount.created_at.desc()).all()

    def is_bootstrapped(self) -> bool:
        return self.db.query(exists().where(AdminAccount.id.isnot(None))).scalar()

    def bootstrap_superadmin(self, data: RegisterRequest, context: Optional[RequestContext] = None) -> AdminAccount:
        """
        Create the first account as SUPERADMIN.

        The insert only takes effect while the table is empty, so two
        racing registrations cannot both succeed.

        Raises:
            ForbiddenError: an account already exists
        """
        advisory_xact_lock(self.db, "admin-bootstrap")
        new_id = str(uuid.uuid4())
        source = select(
            literal(new_id),
            literal(data.name),
            literal(data.email),
            literal(get_password_hash(data.password, self.bcrypt_rounds)),
            literal(SUPERADMIN),
            literal(True),
        ).where(~exists().where(AdminAccount.id.isnot(None)))
        result = self.db.execute(
            insert(AdminAccount).from_select(
                ["id", "name", "email", "password_hash", "role", "is_active"],
                source,
            )
        )
        if result.rowcount != 1:
            self.db.rollback()
            raise ForbiddenError("Superadmin already exists.", code="already_bootstrapped")
        self.db.commit()

        admin = self.get_admin(new_id)
        logger.info(f"Bootstrapped superadmin: {admin.email}")
        self.audit.record(AuditRecord.build(
            actor_id=admin.id,
            target_id=admin.id,
            action=AuditAction.BOOTSTRAP_SUPERADMIN,
            message=f"Registered initial superadmin: {admin.email}",
            context=context,
        ))
        return admin

    def change_password(
        self,
        principal: Principal,
        old_password: str,
        new_password: str,
        context: Optional[RequestContext] = None,
    ) -> None:
        """
        Change the caller's own password

        Raises:
            UnauthorizedError: account no longer exists or is inactive
            ValidationError: old password does not match
        """
        admin = self.get_admin_by_id(principal.subject_id)
        if not admin or not admin.is_active:
            raise UnauthorizedError("Not authorized")

        if not verify_password(old_password, admin.password_hash):
            raise ValidationError("Old password is incorrect", details={"old_password": "mismatch"})

        admin.password_hash = get_password_hash(new_password, self.bcrypt_rounds)
        self.db.commit()

        logger.info(f"Password changed for admin: {admin.email}")
        self.audit.record(AuditRecord.build(
            actor_id=admin.id,
            target_id=admin.id,
            action=AuditAction.CHANGE_PASSWORD,
            message=f"Changed own password: {admin.email}",
            context=context,
        ))

    def reset_password(
        self,
        actor: Principal,
        target_id: str,
        new_password: str,
        context: Optional[RequestContext] = None,
    ) -> None:
        """Superadmin reset of another account's password; no old-password check"""
        admin = self.get_admin(target_id)
        admin.password_hash = get_password_hash(new_password, self.bcrypt_rounds)
        self.db.commit()

        logger.info(f"Password reset for admin: {admin.email} by {actor.subject_id}")
        self.audit.record(AuditRecord.build(
            actor_id=actor.subject_id,
            target_id=admin.id,
            action=AuditAction.RESET_PASSWORD,
            message=f"Reset password for: {admin.email}",
            context=context,
        ))
