"""
Mobile API schemas.

Bodies accepted under /api/v1/mobile/auth and the user/token shapes the
mobile clients expect inside the ``data`` envelope.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator


class MobileLoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    tenant_slug: str | None = Field(default=None, min_length=1, max_length=50)


class MobileRegisterRequest(BaseModel):
    """Self sign-up from the mobile app."""

    name: str = Field(min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    tenant_slug: str | None = Field(default=None, max_length=50)

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        if not any(c.isupper() for c in v):
            raise ValueError("Password must contain at least one uppercase letter")
        if not any(c.islower() for c in v):
            raise ValueError("Password must contain at least one lowercase letter")
        if not any(c.isdigit() for c in v):
            raise ValueError("Password must contain at least one number")
        return v


class MobileRefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class MobileUser(BaseModel):
    id: UUID
    email: str
    name: str | None
    tenant_id: UUID | None
    role: str | None
    created_at: datetime
    avatar_url: str | None


class MobileTokens(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(description="Access token TTL in seconds")
    expires_at: int = Field(description="Access token expiry as a unix timestamp")


class MobileAuthData(BaseModel):
    user: MobileUser
    tokens: MobileTokens
