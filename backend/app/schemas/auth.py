"""
Authentication schemas.

Request/response models for the web auth endpoints.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator


def _check_password_strength(v: str) -> str:
    if not any(c.isdigit() for c in v):
        raise ValueError("Password must contain at least one number")
    return v


# ---------------------------------------------------------------------------
# Register
# ---------------------------------------------------------------------------

class RegisterRequest(BaseModel):
    """Request body for POST /auth/register."""

    display_name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)

    @field_validator("password")
    @classmethod
    def password_must_contain_number(cls, v: str) -> str:
        return _check_password_strength(v)


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""

    email: EmailStr
    password: str = Field(min_length=1)


class TokenResponse(BaseModel):
    """Response for login and token refresh."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Access token TTL in seconds")


# ---------------------------------------------------------------------------
# Refresh / logout
# ---------------------------------------------------------------------------

class RefreshRequest(BaseModel):
    refresh_token: str


class LogoutRequest(BaseModel):
    refresh_token: str


# ---------------------------------------------------------------------------
# Password Reset
# ---------------------------------------------------------------------------

class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """Request body for POST /auth/reset-password."""

    token: str
    new_password: str = Field(min_length=8, max_length=128)

    @field_validator("new_password")
    @classmethod
    def password_must_contain_number(cls, v: str) -> str:
        return _check_password_strength(v)


# ---------------------------------------------------------------------------
# Me
# ---------------------------------------------------------------------------

class MembershipSummary(BaseModel):
    """One organization the user belongs to."""

    org_id: UUID
    org_slug: str
    org_name: str
    role: str


class MeResponse(BaseModel):
    """Response for GET /auth/me: current user with org memberships."""

    id: UUID
    email: str
    display_name: str
    avatar_url: str | None
    email_verified: bool
    preferred_view: str
    created_at: datetime
    organizations: list[MembershipSummary] = Field(default_factory=list)

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Invitation Accept
# ---------------------------------------------------------------------------

class InvitationAcceptRequest(BaseModel):
    """Request body for POST /auth/invitations/{token}/accept."""

    # Needed only when the invited email has no account yet
    display_name: str | None = Field(default=None, min_length=2, max_length=100)
    password: str | None = Field(default=None, min_length=8, max_length=128)

    @field_validator("password")
    @classmethod
    def password_must_contain_number(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _check_password_strength(v)


class InvitationInfoResponse(BaseModel):
    """Public info about an invitation (shown before accepting)."""

    email: str
    org_name: str
    org_slug: str
    role: str
    expires_at: datetime
    is_expired: bool
