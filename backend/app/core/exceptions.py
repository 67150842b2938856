"""Custom exception classes for the application"""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorKind(str, Enum):
    """Closed set of failure categories surfaced to API callers"""
    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    TOO_MANY_ATTEMPTS = "too_many_attempts"
    INTERNAL = "internal"


STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.CONFLICT: 409,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.TOO_MANY_ATTEMPTS: 429,
    ErrorKind.INTERNAL: 500,
}


class BaseAPIException(Exception):
    """Base exception for all API errors"""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.INTERNAL,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.kind = kind
        self.code = code or kind.value
        self.details = details or {}
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


# Validation Errors
class ValidationError(BaseAPIException):
    """Validation error"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorKind.VALIDATION, details=details)


# Authentication Errors
class UnauthorizedError(BaseAPIException):
    """No credential was presented"""
    def __init__(self, message: str = "Authentication required", code: str = "unauthorized"):
        super().__init__(message, ErrorKind.UNAUTHORIZED, code=code)


class InvalidCredentialsError(UnauthorizedError):
    """Invalid email or password"""
    def __init__(self):
        super().__init__("Invalid credentials", code="invalid_credentials")


# Authorization Errors
class ForbiddenError(BaseAPIException):
    """Credential present but not sufficient"""
    def __init__(self, message: str = "Insufficient permissions", code: str = "forbidden"):
        super().__init__(message, ErrorKind.FORBIDDEN, code=code)


class TokenExpiredError(ForbiddenError):
    """Session token has expired"""
    def __init__(self):
        super().__init__("Token has expired", code="token_expired")


class TokenInvalidError(ForbiddenError):
    """Session token signature or payload is invalid"""
    def __init__(self, message: str = "Invalid token"):
        super().__init__(message, code="token_invalid")


class SelfDemotionForbiddenError(ForbiddenError):
    def __init__(self):
        super().__init__("You cannot demote yourself", code="self_demotion_forbidden")


class SelfDeleteForbiddenError(ForbiddenError):
    def __init__(self):
        super().__init__("You cannot delete yourself", code="self_delete_forbidden")


class LastSuperadminProtectedError(ForbiddenError):
    """Mutation would leave no active SUPERADMIN"""
    def __init__(self, message: str = "Cannot demote, deactivate or delete the last SUPERADMIN"):
        super().__init__(message, code="last_superadmin_protected")


# Resource Errors
class ResourceNotFoundError(BaseAPIException):
    """Resource not found"""
    def __init__(self, resource: str):
        super().__init__(f"{resource} not found", ErrorKind.NOT_FOUND)


class ResourceAlreadyExistsError(BaseAPIException):
    """Resource already exists"""
    def __init__(self, resource: str):
        super().__init__(f"{resource} already exists", ErrorKind.CONFLICT)


# Throttling Errors
class TooManyAttemptsError(BaseAPIException):
    """Login lockout engaged for an email"""
    def __init__(self, window_minutes: int):
        super().__init__(
            f"Too many failed attempts. Try again in {window_minutes} minutes.",
            ErrorKind.TOO_MANY_ATTEMPTS,
            code="login_locked",
        )


class RateLimitExceededError(BaseAPIException):
    """Rate limit exceeded"""
    def __init__(self, message: str = "Rate limit exceeded. Please try again later."):
        super().__init__(message, ErrorKind.TOO_MANY_ATTEMPTS, code="rate_limited")


# System Errors
class InternalError(BaseAPIException):
    """Unexpected store or signing failure"""
    def __init__(self, message: str = "An unexpected error occurred"):
        super().__init__(message, ErrorKind.INTERNAL)
