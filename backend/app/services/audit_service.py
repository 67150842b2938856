"""Audit emitter for sensitive admin events."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional
import logging

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from app.core.metrics import AUDIT_WRITE_FAILURES
from app.core.principal import RequestContext
from app.models.audit import AuditEntry

logger = logging.getLogger(__name__)


class AuditAction(str, Enum):
    BOOTSTRAP_SUPERADMIN = "BOOTSTRAP_SUPERADMIN"
    CREATE_ADMIN = "CREATE_ADMIN"
    UPDATE_ADMIN = "UPDATE_ADMIN"
    DELETE_ADMIN = "DELETE_ADMIN"
    RESET_PASSWORD = "RESET_PASSWORD"
    CHANGE_PASSWORD = "CHANGE_PASSWORD"


@dataclass(frozen=True)
class AuditRecord:
    actor_id: Optional[str]
    action: AuditAction
    message: str
    target_id: Optional[str] = None
    ip: Optional[str] = None
    user_agent: Optional[str] = None

    @classmethod
    def build(
        cls,
        *,
        actor_id: Optional[str],
        target_id: Optional[str],
        action: AuditAction,
        message: str,
        context: Optional[RequestContext],
    ) -> "AuditRecord":
        context = context or RequestContext()
        return cls(
            actor_id=actor_id,
            target_id=target_id,
            action=action,
            message=message,
            ip=context.ip,
            user_agent=context.user_agent,
        )


class AuditEmitter:
    """
    Best-effort audit trail writer.

    Entries are written on their own session after the primary change has
    committed. Inside a request the write is deferred to a background task.
    A failed write is logged and counted, never raised.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> None:
        self._session_factory = session_factory
        self._background_tasks = background_tasks

    def record(self, entry: AuditRecord) -> None:
        if self._background_tasks is not None:
            self._background_tasks.add_task(self._write, entry)
        else:
            self._write(entry)

    def _write(self, entry: AuditRecord) -> None:
        db = None
        try:
            db = self._session_factory()
            db.add(
                AuditEntry(
                    actor_id=entry.actor_id,
                    target_id=entry.target_id,
                    action=entry.action.value,
                    message=entry.message,
                    ip=entry.ip,
                    user_agent=entry.user_agent,
                )
            )
            db.commit()
        except Exception:
            AUDIT_WRITE_FAILURES.inc()
            logger.exception("Failed to write audit entry action=%s target=%s", entry.action.value, entry.target_id)
            if db is not None:
                db.rollback()
        finally:
            if db is not None:
                db.close()

    @staticmethod
    def recent_entries(db: Session, limit: int = 50) -> List[AuditEntry]:
        return (
            db.query(AuditEntry)
            .order_by(AuditEntry.created_at.desc(), AuditEntry.id.desc())
            .limit(limit)
            .all()
        )
