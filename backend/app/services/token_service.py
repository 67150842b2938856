"""Session credential issuance, verification and rotation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional
import secrets

from jose import JWTError, jwt

from app.config import TokenConfig
from app.core.exceptions import TokenExpiredError, TokenInvalidError
from app.core.principal import Principal, ROLES


class TokenClass(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    access_expires_at: datetime
    refresh_expires_at: datetime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """
    Stateless signed tokens.

    Access and refresh tokens are signed with separate secrets, so a leaked
    access key cannot mint refresh tokens. Nothing is stored per token:
    a refresh token stays valid until its own expiry even after rotation.
    """

    def __init__(self, config: TokenConfig, clock: Optional[Callable[[], datetime]] = None) -> None:
        self._config = config
        self._clock = clock or _utcnow

    def _secret_for(self, token_class: TokenClass) -> str:
        if token_class is TokenClass.ACCESS:
            return self._config.access_secret
        return self._config.refresh_secret

    def _encode(self, subject_id: str, role: str, token_class: TokenClass, issued_at: datetime) -> tuple:
        ttl = self._config.access_ttl if token_class is TokenClass.ACCESS else self._config.refresh_ttl
        expires_at = issued_at + ttl
        payload: Dict[str, Any] = {
            "sub": subject_id,
            "role": role,
            "typ": token_class.value,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": secrets.token_urlsafe(16),
        }
        token = jwt.encode(payload, self._secret_for(token_class), algorithm=self._config.algorithm)
        return token, expires_at

    def issue(self, subject_id: str, role: str) -> TokenPair:
        issued_at = self._clock()
        access_token, access_expires_at = self._encode(subject_id, role, TokenClass.ACCESS, issued_at)
        refresh_token, refresh_expires_at = self._encode(subject_id, role, TokenClass.REFRESH, issued_at)
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            access_expires_at=access_expires_at,
            refresh_expires_at=refresh_expires_at,
        )

    def verify(self, token: str, token_class: TokenClass) -> Principal:
        """
        Verify a token of the given class and return its principal.

        Raises:
            TokenExpiredError: current time is past ``exp``
            TokenInvalidError: bad signature, wrong class or malformed payload
        """
        try:
            # Expiry is checked below against the injected clock.
            payload = jwt.decode(
                token,
                self._secret_for(token_class),
                algorithms=[self._config.algorithm],
                options={"verify_exp": False},
            )
        except JWTError:
            raise TokenInvalidError()

        subject_id = payload.get("sub")
        role = payload.get("role")
        exp = payload.get("exp")
        if payload.get("typ") != token_class.value:
            raise TokenInvalidError("Token class mismatch")
        if not subject_id or role not in ROLES or not isinstance(exp, int):
            raise TokenInvalidError("Malformed token payload")

        if self._clock().timestamp() > exp:
            raise TokenExpiredError()

        return Principal(subject_id=subject_id, role=role)

    def rotate(self, refresh_token: str) -> TokenPair:
        principal = self.verify(refresh_token, TokenClass.REFRESH)
        return self.issue(principal.subject_id, principal.role)
