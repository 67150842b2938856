"""API dependencies - session, services, authentication and authorization"""

from fastapi import BackgroundTasks, Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import AbstractSet, Generator, Optional

from app.config import Settings
from app.core.principal import ADMIN_ROLES, SUPERADMIN_ONLY, Principal, RequestContext
from app.services.admin_lifecycle import AdminLifecycleGuard
from app.services.admin_service import AdminService
from app.services.audit_service import AuditEmitter
from app.services.auth_service import AuthService
from app.services.authorization import AuthorizationGuard
from app.services.login_ledger import LoginAttemptLedger
from app.services.rate_limiter import InMemoryRateLimiter
from app.services.token_service import TokenService

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"

# Bearer header is optional; browsers send the access cookie instead.
bearer_scheme = HTTPBearer(auto_error=False)


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Dependency for getting database session

    Yields:
        Session: Database session
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_request_context(request: Request) -> RequestContext:
    return RequestContext(
        ip=request.client.host if request.client else "unknown",
        user_agent=request.headers.get("user-agent", "unknown"),
    )


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_auth_rate_limiter(request: Request) -> InMemoryRateLimiter:
    return request.app.state.auth_rate_limiter


def get_audit_emitter(request: Request, background_tasks: BackgroundTasks) -> AuditEmitter:
    return AuditEmitter(request.app.state.session_factory, background_tasks=background_tasks)


def get_login_ledger(request: Request, db: Session = Depends(get_db)) -> LoginAttemptLedger:
    return LoginAttemptLedger(db, request.app.state.lockout_policy)


def get_auth_service(
    db: Session = Depends(get_db),
    ledger: LoginAttemptLedger = Depends(get_login_ledger),
    token_service: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings_dep),
) -> AuthService:
    return AuthService(db, ledger, token_service, bcrypt_rounds=settings.BCRYPT_ROUNDS)


def get_admin_service(
    db: Session = Depends(get_db),
    audit: AuditEmitter = Depends(get_audit_emitter),
    settings: Settings = Depends(get_settings_dep),
) -> AdminService:
    return AdminService(db, audit, bcrypt_rounds=settings.BCRYPT_ROUNDS)


def get_lifecycle_guard(
    db: Session = Depends(get_db),
    audit: AuditEmitter = Depends(get_audit_emitter),
    settings: Settings = Depends(get_settings_dep),
) -> AdminLifecycleGuard:
    return AdminLifecycleGuard(db, audit, bcrypt_rounds=settings.BCRYPT_ROUNDS)


def get_authorization_guard(token_service: TokenService = Depends(get_token_service)) -> AuthorizationGuard:
    return AuthorizationGuard(token_service)


async def get_current_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    guard: AuthorizationGuard = Depends(get_authorization_guard),
) -> Principal:
    """
    Resolve the caller from the access token

    An explicit Authorization header wins over the access cookie.

    Raises:
        UnauthorizedError: no token presented
        TokenExpiredError / TokenInvalidError: token unusable
    """
    token = credentials.credentials if credentials else request.cookies.get(ACCESS_COOKIE)
    return guard.authenticate(token)


class RoleChecker:
    """Dependency that admits principals whose role is in ``allowed_roles``"""

    def __init__(self, allowed_roles: AbstractSet[str]) -> None:
        self.allowed_roles = allowed_roles

    async def __call__(self, principal: Principal = Depends(get_current_principal)) -> Principal:
        return AuthorizationGuard.require_role(principal, self.allowed_roles)


require_admin = RoleChecker(ADMIN_ROLES)
require_superadmin = RoleChecker(SUPERADMIN_ONLY)
