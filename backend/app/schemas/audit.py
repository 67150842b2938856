"""Audit and login log response schemas."""

from datetime import datetime
from typing import Optional, Dict

from pydantic import BaseModel


class AuditEntryResponse(BaseModel):
    id: int
    actor_id: Optional[str]
    target_id: Optional[str]
    action: str
    message: Optional[str]
    ip: Optional[str]
    user_agent: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class LoginAttemptResponse(BaseModel):
    id: int
    email: str
    success: bool
    ip: str
    user_agent: str
    created_at: datetime
    device_info: Dict[str, str]
    formatted_ip: str
    device_name: str
