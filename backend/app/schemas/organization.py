"""
Organization schemas.

Request/response models for gym settings and staff management endpoints.
"""

from __future__ import annotations

import re
from datetime import datetime
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.core.rbac import ASSIGNABLE_ROLES, AppRole
from app.models.organization import SubscriptionPlan

_SLUG_RE = re.compile(r"^[a-z0-9][a-z0-9-]*[a-z0-9]$")


def _validate_slug(v: str) -> str:
    if not _SLUG_RE.match(v):
        raise ValueError(
            "Slug must be lowercase alphanumeric and hyphens only, "
            "and cannot start or end with a hyphen"
        )
    return v


def _validate_timezone(v: str) -> str:
    try:
        ZoneInfo(v)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {v}")
    return v


# ---------------------------------------------------------------------------
# Organization
# ---------------------------------------------------------------------------

class OrganizationCreateRequest(BaseModel):
    """Request body for POST /organizations."""

    name: str = Field(min_length=2, max_length=100)
    slug: str = Field(min_length=3, max_length=30)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=20)
    timezone: str = "America/Mexico_City"
    currency: str = Field(default="MXN", min_length=3, max_length=3)
    language: str = Field(default="es", max_length=5)

    @field_validator("slug")
    @classmethod
    def slug_must_be_valid(cls, v: str) -> str:
        return _validate_slug(v)

    @field_validator("timezone")
    @classmethod
    def timezone_must_exist(cls, v: str) -> str:
        return _validate_timezone(v)


class OrganizationUpdateRequest(BaseModel):
    """Request body for PATCH /organizations/{slug}."""

    name: str | None = Field(default=None, min_length=2, max_length=100)
    slug: str | None = Field(default=None, min_length=3, max_length=30)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=20)
    address: str | None = Field(default=None, max_length=500)
    timezone: str | None = None
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    language: str | None = Field(default=None, max_length=5)

    @field_validator("slug")
    @classmethod
    def slug_must_be_valid(cls, v: str | None) -> str | None:
        return v if v is None else _validate_slug(v)

    @field_validator("timezone")
    @classmethod
    def timezone_must_exist(cls, v: str | None) -> str | None:
        return v if v is None else _validate_timezone(v)


class BookingLimitsUpdateRequest(BaseModel):
    """Request body for PUT /organizations/{slug}/booking-limits. ``null`` removes the limit."""

    max_classes_per_day: int | None = Field(default=None, ge=1, le=10)


class StartSubscriptionRequest(BaseModel):
    plan: SubscriptionPlan = SubscriptionPlan.starter


class OrganizationResponse(BaseModel):
    """Organization detail response."""

    id: UUID
    name: str
    slug: str
    email: str | None
    phone: str | None
    address: str | None
    timezone: str
    currency: str
    language: str
    subscription_plan: SubscriptionPlan
    subscription_started_at: datetime | None
    max_members: int | None
    max_classes_per_day: int | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Staff
# ---------------------------------------------------------------------------

class StaffResponse(BaseModel):
    """Single staff member with user info and role."""

    id: UUID
    user_id: UUID
    email: str
    display_name: str
    avatar_url: str | None
    role: AppRole
    joined_at: datetime


class StaffListResponse(BaseModel):
    staff: list[StaffResponse]
    total: int


class StaffRoleUpdateRequest(BaseModel):
    """Request body for PATCH /organizations/{slug}/staff/{user_id}."""

    role: AppRole

    @field_validator("role")
    @classmethod
    def role_must_be_assignable(cls, v: AppRole) -> AppRole:
        if v not in ASSIGNABLE_ROLES:
            raise ValueError(f"Role {v.value} cannot be assigned")
        return v


# ---------------------------------------------------------------------------
# Invitations
# ---------------------------------------------------------------------------

class InviteRequest(BaseModel):
    """Request body for POST /organizations/{slug}/invite."""

    email: EmailStr
    role: AppRole

    @field_validator("role")
    @classmethod
    def role_must_be_assignable(cls, v: AppRole) -> AppRole:
        if v not in ASSIGNABLE_ROLES:
            raise ValueError(f"Role {v.value} cannot be assigned")
        return v


class InvitationResponse(BaseModel):
    """Invitation detail response."""

    id: UUID
    org_id: UUID
    email: str
    role: AppRole
    token: str
    expires_at: datetime
    created_at: datetime
    is_expired: bool

    model_config = {"from_attributes": True}


class InvitationsListResponse(BaseModel):
    invitations: list[InvitationResponse]
    total: int
