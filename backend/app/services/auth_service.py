"""Authentication service - login and session rotation"""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional
import logging

from sqlalchemy.orm import Session

from app.core.exceptions import InvalidCredentialsError, TooManyAttemptsError
from app.core.metrics import LOGIN_ATTEMPTS
from app.core.principal import RequestContext
from app.core.security import DEFAULT_ROUNDS, burn_password_check, verify_password
from app.models.admin_account import AdminAccount
from app.services.login_ledger import LoginAttemptLedger
from app.services.token_service import TokenPair, TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    admin: AdminAccount
    tokens: TokenPair


class AuthService:
    """Credential checks gated by the login attempt ledger"""

    def __init__(
        self,
        db: Session,
        ledger: LoginAttemptLedger,
        token_service: TokenService,
        clock: Optional[Callable[[], datetime]] = None,
        bcrypt_rounds: int = DEFAULT_ROUNDS,
    ) -> None:
        self.db = db
        self.ledger = ledger
        self.token_service = token_service
        self.bcrypt_rounds = bcrypt_rounds
        self._clock = clock or datetime.utcnow

    def login(self, email: str, password: str, context: Optional[RequestContext] = None) -> LoginResult:
        """
        Authenticate an admin with sliding-window lockout protection

        The lockout check runs first. A locked email skips the credential
        check and appends nothing; otherwise exactly one attempt is appended.

        Raises:
            TooManyAttemptsError: lockout engaged for this email
            InvalidCredentialsError: unknown email, inactive account or wrong password
        """
        context = context or RequestContext()
        now = self._clock()

        self.ledger.serialize(email)
        if self.ledger.is_locked(email, now):
            self.db.rollback()
            LOGIN_ATTEMPTS.labels("locked").inc()
            logger.warning(f"Login locked for: {email}")
            raise TooManyAttemptsError(int(self.ledger.policy.window.total_seconds() // 60))

        admin = self.db.query(AdminAccount).filter(AdminAccount.email == email).first()
        if admin and admin.is_active:
            valid = verify_password(password, admin.password_hash)
        else:
            valid = burn_password_check(password, self.bcrypt_rounds)

        self.ledger.record_attempt(email, valid, context.ip, context.user_agent, now=now)

        if not valid:
            LOGIN_ATTEMPTS.labels("failure").inc()
            logger.info(f"Failed login for: {email}")
            raise InvalidCredentialsError()

        LOGIN_ATTEMPTS.labels("success").inc()
        logger.info(f"Admin authenticated: {email}")
        return LoginResult(admin=admin, tokens=self.token_service.issue(admin.id, admin.role))

    def refresh(self, refresh_token: str) -> TokenPair:
        """Rotate a refresh token into a fresh access/refresh pair"""
        return self.token_service.rotate(refresh_token)
