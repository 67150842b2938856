"""Pydantic schemas for API validation"""

from app.schemas.admin import AdminRole, AdminCreate, AdminUpdate, AdminResponse, PasswordReset
from app.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    ChangePasswordRequest,
    RefreshTokenRequest,
    SessionResponse,
    PrincipalResponse,
    BootstrapStatus,
)
from app.schemas.audit import AuditEntryResponse, LoginAttemptResponse
from app.schemas.response import APIResponse, ErrorResponse, HealthResponse

__all__ = [
    "AdminRole", "AdminCreate", "AdminUpdate", "AdminResponse", "PasswordReset",
    "LoginRequest", "RegisterRequest", "ChangePasswordRequest", "RefreshTokenRequest",
    "SessionResponse", "PrincipalResponse", "BootstrapStatus",
    "AuditEntryResponse", "LoginAttemptResponse",
    "APIResponse", "ErrorResponse", "HealthResponse",
]
