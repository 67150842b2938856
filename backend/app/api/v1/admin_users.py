"""Admin account management routes"""

from fastapi import APIRouter, Depends, Query, status
from typing import List

from app.api.deps import (
    get_admin_service,
    get_auth_rate_limiter,
    get_db,
    get_lifecycle_guard,
    get_login_ledger,
    get_request_context,
    require_admin,
    require_superadmin,
)
from app.core.principal import Principal, RequestContext
from app.schemas.admin import AdminCreate, AdminResponse, AdminUpdate, PasswordReset
from app.schemas.audit import AuditEntryResponse, LoginAttemptResponse
from app.schemas.response import APIResponse
from app.services.admin_lifecycle import AdminLifecycleGuard
from app.services.admin_service import AdminService
from app.services.audit_service import AuditEmitter
from app.services.login_ledger import LoginAttemptLedger, describe_attempt
from app.services.rate_limiter import InMemoryRateLimiter
from sqlalchemy.orm import Session

router = APIRouter()


@router.get("", response_model=List[AdminResponse])
def list_admins(
    principal: Principal = Depends(require_superadmin),
    admin_service: AdminService = Depends(get_admin_service),
):
    """List all admin accounts (superadmin only)"""
    return [AdminResponse.model_validate(admin) for admin in admin_service.list_admins()]


@router.get("/logs/audit", response_model=List[AuditEntryResponse])
def audit_logs(
    limit: int = Query(50, ge=1, le=500),
    principal: Principal = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Most recent audit entries (admin or superadmin)"""
    return [AuditEntryResponse.model_validate(entry) for entry in AuditEmitter.recent_entries(db, limit)]


@router.get("/logs/login", response_model=List[LoginAttemptResponse])
def login_logs(
    limit: int = Query(10, ge=1, le=500),
    principal: Principal = Depends(require_admin),
    ledger: LoginAttemptLedger = Depends(get_login_ledger),
):
    """Most recent login attempts with device details (admin or superadmin)"""
    return [LoginAttemptResponse(**describe_attempt(attempt)) for attempt in ledger.recent_attempts(limit)]


@router.post("", response_model=AdminResponse, status_code=status.HTTP_201_CREATED)
def create_admin(
    payload: AdminCreate,
    principal: Principal = Depends(require_superadmin),
    context: RequestContext = Depends(get_request_context),
    guard: AdminLifecycleGuard = Depends(get_lifecycle_guard),
):
    """Create a non-superadmin account (superadmin only)"""
    admin = guard.create_admin(principal, payload, context)
    return AdminResponse.model_validate(admin)


@router.get("/{admin_id}", response_model=AdminResponse)
def get_admin(
    admin_id: str,
    principal: Principal = Depends(require_superadmin),
    admin_service: AdminService = Depends(get_admin_service),
):
    """Single admin account details (superadmin only)"""
    return AdminResponse.model_validate(admin_service.get_admin(admin_id))


@router.patch("/{admin_id}", response_model=AdminResponse)
def update_admin(
    admin_id: str,
    payload: AdminUpdate,
    principal: Principal = Depends(require_superadmin),
    context: RequestContext = Depends(get_request_context),
    guard: AdminLifecycleGuard = Depends(get_lifecycle_guard),
):
    """Update name, role or activation of an account (superadmin only)"""
    admin = guard.update_admin(principal, admin_id, payload, context)
    return AdminResponse.model_validate(admin)


@router.delete("/{admin_id}", response_model=APIResponse, status_code=status.HTTP_200_OK)
def delete_admin(
    admin_id: str,
    principal: Principal = Depends(require_superadmin),
    context: RequestContext = Depends(get_request_context),
    guard: AdminLifecycleGuard = Depends(get_lifecycle_guard),
):
    """Delete an account (superadmin only)"""
    guard.delete_admin(principal, admin_id, context)
    return APIResponse(message="Admin user deleted")


@router.patch("/{admin_id}/password", response_model=APIResponse, status_code=status.HTTP_200_OK)
def reset_admin_password(
    admin_id: str,
    payload: PasswordReset,
    principal: Principal = Depends(require_superadmin),
    context: RequestContext = Depends(get_request_context),
    admin_service: AdminService = Depends(get_admin_service),
    limiter: InMemoryRateLimiter = Depends(get_auth_rate_limiter),
):
    """Reset another admin's password without the old one (superadmin only)"""
    limiter.hit(f"reset-password:{context.ip}")
    admin_service.reset_password(principal, admin_id, payload.new_password, context)
    return APIResponse(message="Password reset successful")
