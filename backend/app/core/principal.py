"""Request-scoped identity values"""

from dataclasses import dataclass
from typing import Optional

ADMIN = "ADMIN"
SUPERADMIN = "SUPERADMIN"

ROLES = frozenset({ADMIN, SUPERADMIN})
ADMIN_ROLES = frozenset({ADMIN, SUPERADMIN})
SUPERADMIN_ONLY = frozenset({SUPERADMIN})


@dataclass(frozen=True)
class Principal:
    """Identity resolved from a verified session token."""

    subject_id: str
    role: str

    @property
    def is_superadmin(self) -> bool:
        return self.role == SUPERADMIN


@dataclass(frozen=True)
class RequestContext:
    """Client details recorded alongside sensitive actions."""

    ip: Optional[str] = None
    user_agent: Optional[str] = None
