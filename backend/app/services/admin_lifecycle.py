"""Guarded create/update/delete of admin accounts.

Every mutation re-derives the number of active superadmins from the store
inside the same transaction as its write, while holding an invariant lock,
so concurrent demotions or deletions cannot together remove the last one.
"""

from __future__ import annotations

from typing import Optional
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import advisory_xact_lock
from app.core.exceptions import (
    ForbiddenError,
    LastSuperadminProtectedError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
    SelfDeleteForbiddenError,
    SelfDemotionForbiddenError,
)
from app.core.principal import Principal, RequestContext, SUPERADMIN
from app.core.security import DEFAULT_ROUNDS, get_password_hash
from app.models.admin_account import AdminAccount
from app.schemas.admin import AdminCreate, AdminUpdate
from app.services.audit_service import AuditAction, AuditEmitter, AuditRecord

logger = logging.getLogger(__name__)

_INVARIANT_LOCK = "admin-superadmin-invariant"


class AdminLifecycleGuard:
    """Enforces superadmin invariants around admin account mutations."""

    def __init__(self, db: Session, audit: AuditEmitter, bcrypt_rounds: int = DEFAULT_ROUNDS) -> None:
        self.db = db
        self.audit = audit
        self.bcrypt_rounds = bcrypt_rounds

    def _lock(self) -> None:
        advisory_xact_lock(self.db, _INVARIANT_LOCK)

    def active_superadmin_count(self) -> int:
        return (
            self.db.query(func.count(AdminAccount.id))
            .filter(AdminAccount.role == SUPERADMIN, AdminAccount.is_active.is_(True))
            .scalar()
        )

    def _load_target(self, target_id: str) -> AdminAccount:
        target = self.db.query(AdminAccount).filter(AdminAccount.id == target_id).first()
        if not target:
            raise ResourceNotFoundError("Admin")
        return target

    def _reject(self, error: ForbiddenError, actor: Principal, target_id: str) -> None:
        self.db.rollback()
        logger.warning("Admin mutation rejected: %s actor=%s target=%s", error.code, actor.subject_id, target_id)
        raise error

    def create_admin(
        self,
        actor: Principal,
        data: AdminCreate,
        context: Optional[RequestContext] = None,
    ) -> AdminAccount:
        """
        Create a non-superadmin account.

        Raises:
            ForbiddenError: SUPERADMIN role requested
            ResourceAlreadyExistsError: email already registered
        """
        if data.role.value == SUPERADMIN:
            raise ForbiddenError("Only one super_admin is allowed.", code="superadmin_creation_forbidden")

        if self.db.query(AdminAccount.id).filter(AdminAccount.email == data.email).first():
            raise ResourceAlreadyExistsError("Email")

        admin = AdminAccount(
            name=data.name,
            email=data.email,
            password_hash=get_password_hash(data.password, self.bcrypt_rounds),
            role=data.role.value,
            is_active=True,
        )
        self.db.add(admin)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ResourceAlreadyExistsError("Email")
        self.db.refresh(admin)

        logger.info(f"Created admin: {admin.email} (role: {admin.role})")
        self.audit.record(AuditRecord.build(
            actor_id=actor.subject_id,
            target_id=admin.id,
            action=AuditAction.CREATE_ADMIN,
            message=f"Created admin: {admin.email}",
            context=context,
        ))
        return admin

    def update_admin(
        self,
        actor: Principal,
        target_id: str,
        changes: AdminUpdate,
        context: Optional[RequestContext] = None,
    ) -> AdminAccount:
        """
        Apply a partial update to an account.

        Raises:
            ResourceNotFoundError: target does not exist
            SelfDemotionForbiddenError: a superadmin changing their own role
            LastSuperadminProtectedError: would demote or deactivate the last active superadmin
        """
        self._lock()
        target = self._load_target(target_id)

        requested_role = changes.role.value if changes.role is not None else None
        proposed_role = requested_role or target.role
        proposed_active = changes.is_active if changes.is_active is not None else target.is_active

        if (
            target.id == actor.subject_id
            and actor.is_superadmin
            and requested_role is not None
            and requested_role != SUPERADMIN
        ):
            self._reject(SelfDemotionForbiddenError(), actor, target_id)

        if target.role == SUPERADMIN and (proposed_role != SUPERADMIN or not proposed_active):
            if self.active_superadmin_count() <= 1:
                self._reject(LastSuperadminProtectedError(), actor, target_id)

        if changes.name is not None:
            target.name = changes.name
        target.role = proposed_role
        target.is_active = proposed_active
        self.db.commit()
        self.db.refresh(target)

        logger.info(f"Updated admin: {target.email} by {actor.subject_id}")
        self.audit.record(AuditRecord.build(
            actor_id=actor.subject_id,
            target_id=target.id,
            action=AuditAction.UPDATE_ADMIN,
            message=f"Updated admin: {target.email}",
            context=context,
        ))
        return target

    def delete_admin(
        self,
        actor: Principal,
        target_id: str,
        context: Optional[RequestContext] = None,
    ) -> None:
        """
        Delete an account.

        Raises:
            ResourceNotFoundError: target does not exist
            SelfDeleteForbiddenError: actor targets their own account
            LastSuperadminProtectedError: target is the last active superadmin
        """
        self._lock()
        target = self._load_target(target_id)

        if target.id == actor.subject_id:
            self._reject(SelfDeleteForbiddenError(), actor, target_id)

        if target.role == SUPERADMIN and self.active_superadmin_count() <= 1:
            self._reject(LastSuperadminProtectedError(), actor, target_id)

        email = target.email
        self.db.delete(target)
        self.db.commit()

        logger.info(f"Deleted admin: {email} by {actor.subject_id}")
        self.audit.record(AuditRecord.build(
            actor_id=actor.subject_id,
            target_id=target_id,
            action=AuditAction.DELETE_ADMIN,
            message=f"Deleted admin: {email}",
            context=context,
        ))
