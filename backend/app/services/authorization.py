"""Authorization guard - principal resolution and role checks"""

from typing import AbstractSet, Optional
import logging

from app.core.exceptions import (
    ForbiddenError,
    TokenExpiredError,
    TokenInvalidError,
    UnauthorizedError,
)
from app.core.principal import Principal, SUPERADMIN_ONLY
from app.services.token_service import TokenClass, TokenService

logger = logging.getLogger(__name__)


class AuthorizationGuard:
    """Turns an access token into a Principal and enforces role membership"""

    def __init__(self, token_service: TokenService) -> None:
        self.token_service = token_service

    def authenticate(self, token: Optional[str]) -> Principal:
        """
        Resolve the principal behind an access token

        Raises:
            UnauthorizedError: no token was presented
            TokenExpiredError / TokenInvalidError: token present but unusable
        """
        if not token:
            raise UnauthorizedError()
        try:
            return self.token_service.verify(token, TokenClass.ACCESS)
        except (TokenExpiredError, TokenInvalidError) as exc:
            logger.info("Rejected access token: %s", exc.code)
            raise

    @staticmethod
    def require_role(principal: Principal, allowed_roles: AbstractSet[str]) -> Principal:
        if principal.role not in allowed_roles:
            raise ForbiddenError(
                "Superadmin access only" if allowed_roles == SUPERADMIN_ONLY else "Admin access only"
            )
        return principal
