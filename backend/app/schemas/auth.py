"""Authentication schemas"""

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional

from app.schemas.admin import AdminResponse, _check_password_bytes, _normalize_email


class LoginRequest(BaseModel):
    """Login schema"""
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=64)

    @field_validator('email')
    @classmethod
    def email_lowercase(cls, v):
        return _normalize_email(v)

    @field_validator('password')
    @classmethod
    def password_bytes(cls, v):
        return _check_password_bytes(v)


class RegisterRequest(BaseModel):
    """Bootstrap registration of the first superadmin"""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=64)

    @field_validator('email')
    @classmethod
    def email_lowercase(cls, v):
        return _normalize_email(v)

    @field_validator('password')
    @classmethod
    def password_bytes(cls, v):
        return _check_password_bytes(v)


class ChangePasswordRequest(BaseModel):
    """Change password for the logged-in admin"""
    old_password: str = Field(..., min_length=6, max_length=64)
    new_password: str = Field(..., min_length=6, max_length=64)
    confirm_password: str = Field(..., min_length=6, max_length=64)

    @field_validator('old_password', 'new_password', 'confirm_password')
    @classmethod
    def password_bytes(cls, v):
        return _check_password_bytes(v)

    @model_validator(mode='after')
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError('New passwords do not match')
        return self


class RefreshTokenRequest(BaseModel):
    """Refresh token supplied in the body when cookies are unavailable"""
    refresh_token: Optional[str] = None


class SessionResponse(BaseModel):
    """Session established or rotated; credentials travel in cookies"""
    expires_in: int
    refresh_expires_in: int
    user: Optional[AdminResponse] = None


class PrincipalResponse(BaseModel):
    subject_id: str
    role: str


class BootstrapStatus(BaseModel):
    initialized: bool
