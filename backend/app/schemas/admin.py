"""Admin account schemas"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime
from enum import Enum


class AdminRole(str, Enum):
    """Admin role enumeration"""
    ADMIN = "ADMIN"
    SUPERADMIN = "SUPERADMIN"


def _normalize_email(value: str) -> str:
    return value.strip().lower()


# bcrypt only hashes the first 72 bytes
PASSWORD_MAX_BYTES = 72


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
    return value


class AdminCreate(BaseModel):
    """Admin creation schema"""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=64)
    role: AdminRole = AdminRole.ADMIN

    @field_validator('email')
    @classmethod
    def email_lowercase(cls, v):
        return _normalize_email(v)

    @field_validator('password')
    @classmethod
    def password_bytes(cls, v):
        return _check_password_bytes(v)


class AdminUpdate(BaseModel):
    """Partial admin update; unknown fields are rejected"""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    role: Optional[AdminRole] = None
    is_active: Optional[bool] = None


class PasswordReset(BaseModel):
    """Superadmin password reset for another account"""
    new_password: str = Field(..., min_length=6, max_length=64)
    confirm_password: str = Field(..., min_length=6, max_length=64)

    @field_validator('new_password', 'confirm_password')
    @classmethod
    def password_bytes(cls, v):
        return _check_password_bytes(v)

    @model_validator(mode='after')
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError('Passwords do not match')
        return self


class AdminResponse(BaseModel):
    """Admin response schema"""
    id: str
    name: str
    email: str
    role: AdminRole
    is_active: bool
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
