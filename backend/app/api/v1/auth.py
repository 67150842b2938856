"""Authentication routes"""

from fastapi import APIRouter, Body, Depends, Request, Response, status
from typing import Optional

from app.api.deps import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    get_admin_service,
    get_auth_rate_limiter,
    get_auth_service,
    get_current_principal,
    get_request_context,
    get_settings_dep,
)
from app.config import Settings
from app.core.exceptions import UnauthorizedError
from app.core.principal import Principal, RequestContext
from app.schemas.admin import AdminResponse
from app.schemas.response import APIResponse
from app.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    PrincipalResponse,
    RefreshTokenRequest,
    SessionResponse,
)
from app.services.admin_service import AdminService
from app.services.auth_service import AuthService
from app.services.rate_limiter import InMemoryRateLimiter
from app.services.token_service import TokenPair

router = APIRouter()


def set_session_cookies(response: Response, tokens: TokenPair, settings: Settings) -> None:
    policy = settings.cookie_policy()
    response.set_cookie(
        ACCESS_COOKIE,
        tokens.access_token,
        max_age=policy.access_max_age,
        path=policy.access_path,
        httponly=True,
        secure=policy.secure,
        samesite="strict",
    )
    response.set_cookie(
        REFRESH_COOKIE,
        tokens.refresh_token,
        max_age=policy.refresh_max_age,
        path=policy.refresh_path,
        httponly=True,
        secure=policy.secure,
        samesite="strict",
    )


def clear_session_cookies(response: Response, settings: Settings) -> None:
    policy = settings.cookie_policy()
    response.delete_cookie(ACCESS_COOKIE, path=policy.access_path, httponly=True, secure=policy.secure, samesite="strict")
    response.delete_cookie(REFRESH_COOKIE, path=policy.refresh_path, httponly=True, secure=policy.secure, samesite="strict")


@router.post("/login", response_model=SessionResponse, status_code=status.HTTP_200_OK)
def login(
    credentials: LoginRequest,
    response: Response,
    context: RequestContext = Depends(get_request_context),
    auth_service: AuthService = Depends(get_auth_service),
    limiter: InMemoryRateLimiter = Depends(get_auth_rate_limiter),
    settings: Settings = Depends(get_settings_dep),
):
    """
    Login endpoint - authenticate admin and set session cookies

    Args:
        credentials: Email and password

    Returns:
        Session lifetimes and admin info
    """
    limiter.hit(f"login:{context.ip}")

    result = auth_service.login(credentials.email, credentials.password, context)
    set_session_cookies(response, result.tokens, settings)

    policy = settings.cookie_policy()
    return SessionResponse(
        expires_in=policy.access_max_age,
        refresh_expires_in=policy.refresh_max_age,
        user=AdminResponse.model_validate(result.admin),
    )


@router.post("/logout", response_model=APIResponse, status_code=status.HTTP_200_OK)
def logout(
    response: Response,
    settings: Settings = Depends(get_settings_dep),
):
    """
    Logout endpoint - clear both session cookies

    Tokens are stateless, so nothing is revoked server-side.
    """
    clear_session_cookies(response, settings)
    return APIResponse(message="Logout Successful.")


@router.post("/refresh", response_model=SessionResponse)
def refresh_session(
    request: Request,
    response: Response,
    body: Optional[RefreshTokenRequest] = Body(None),
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings_dep),
):
    """
    Rotate the access/refresh pair using the refresh credential

    Returns:
        New session lifetimes
    """
    token = request.cookies.get(REFRESH_COOKIE) or (body.refresh_token if body else None)
    if not token:
        raise UnauthorizedError("Refresh token missing", code="refresh_token_missing")

    tokens = auth_service.refresh(token)
    set_session_cookies(response, tokens, settings)

    policy = settings.cookie_policy()
    return SessionResponse(
        expires_in=policy.access_max_age,
        refresh_expires_in=policy.refresh_max_age,
    )


@router.get("/verify", response_model=PrincipalResponse)
def verify(principal: Principal = Depends(get_current_principal)):
    """Confirm the access credential and return the principal it carries"""
    return PrincipalResponse(subject_id=principal.subject_id, role=principal.role)


@router.patch("/change-password", response_model=APIResponse, status_code=status.HTTP_200_OK)
def change_password(
    payload: ChangePasswordRequest,
    principal: Principal = Depends(get_current_principal),
    context: RequestContext = Depends(get_request_context),
    admin_service: AdminService = Depends(get_admin_service),
):
    """Change the logged-in admin's password; the old password must match"""
    admin_service.change_password(principal, payload.old_password, payload.new_password, context)
    return APIResponse(message="Password changed successfully")
