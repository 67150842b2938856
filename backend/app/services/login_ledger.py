"""Login attempt ledger and sliding-window lockout."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from app.config import LockoutPolicy
from app.core.database import advisory_xact_lock
from app.models.login_attempt import LoginAttempt

logger = logging.getLogger(__name__)


class LoginAttemptLedger:
    """Append-only record of login attempts, read over a trailing window."""

    def __init__(self, db: Session, policy: LockoutPolicy) -> None:
        self.db = db
        self.policy = policy

    def serialize(self, email: str) -> None:
        """
        Hold a per-email lock until the current transaction ends.

        Taken before ``is_locked`` so the failure count and the attempt
        appended after it cannot interleave with another login for the
        same email.
        """
        advisory_xact_lock(self.db, f"login:{email}")

    def record_attempt(
        self,
        email: str,
        success: bool,
        ip: Optional[str],
        user_agent: Optional[str],
        now: Optional[datetime] = None,
    ) -> LoginAttempt:
        attempt = LoginAttempt(
            email=email,
            success=success,
            ip=ip or "unknown",
            user_agent=user_agent or "unknown",
            created_at=now or datetime.utcnow(),
        )
        self.db.add(attempt)
        self.db.commit()
        return attempt

    def failure_count(self, email: str, now: datetime) -> int:
        cutoff = now - self.policy.window
        recent = (
            self.db.query(LoginAttempt.success)
            .filter(LoginAttempt.email == email, LoginAttempt.created_at >= cutoff)
            .order_by(LoginAttempt.created_at.desc(), LoginAttempt.id.desc())
            .limit(self.policy.max_failures)
            .all()
        )
        return sum(1 for (success,) in recent if not success)

    def is_locked(self, email: str, now: datetime) -> bool:
        locked = self.failure_count(email, now) >= self.policy.max_failures
        if locked:
            logger.warning("Login locked for %s", email)
        return locked

    def recent_attempts(self, limit: int = 10) -> List[LoginAttempt]:
        return (
            self.db.query(LoginAttempt)
            .order_by(LoginAttempt.created_at.desc(), LoginAttempt.id.desc())
            .limit(limit)
            .all()
        )


def parse_user_agent(user_agent: Optional[str]) -> Dict[str, str]:
    """Coarse device/browser/OS detection for the login log view."""
    if not user_agent:
        return {"device": "Unknown", "browser": "Unknown", "os": "Unknown"}

    ua = user_agent.lower()

    device = "Desktop"
    if "mobile" in ua or "android" in ua or "iphone" in ua:
        device = "Mobile"
    elif "tablet" in ua or "ipad" in ua:
        device = "Tablet"

    browser = "Unknown"
    if "edg" in ua:
        browser = "Edge"
    elif "chrome" in ua:
        browser = "Chrome"
    elif "firefox" in ua:
        browser = "Firefox"
    elif "safari" in ua:
        browser = "Safari"

    os_name = "Unknown"
    if "windows" in ua:
        os_name = "Windows"
    elif "iphone" in ua or "ipad" in ua:
        os_name = "iOS"
    elif "android" in ua:
        os_name = "Android"
    elif "mac" in ua:
        os_name = "macOS"
    elif "linux" in ua:
        os_name = "Linux"

    return {"device": device, "browser": browser, "os": os_name}


def format_ip(ip: Optional[str]) -> str:
    if ip in ("::1", "127.0.0.1", "localhost"):
        return "localhost"
    return ip or "unknown"


def describe_attempt(attempt: LoginAttempt) -> Dict[str, Any]:
    device_info = parse_user_agent(attempt.user_agent)
    return {
        "id": attempt.id,
        "email": attempt.email,
        "success": attempt.success,
        "ip": attempt.ip,
        "user_agent": attempt.user_agent,
        "created_at": attempt.created_at,
        "device_info": device_info,
        "formatted_ip": format_ip(attempt.ip),
        "device_name": f"{device_info['os']} - {device_info['browser']}",
    }
