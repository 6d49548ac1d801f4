"""
Member schemas.

Request/response models for gym customer records.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.models.member import ExperienceLevel, Gender, MembershipStatus, MemberStatus


class _MemberFields(BaseModel):
    phone: str | None = Field(default=None, max_length=20)
    date_of_birth: date | None = None
    gender: Gender | None = None
    emergency_contact_name: str | None = Field(default=None, max_length=100)
    emergency_contact_phone: str | None = Field(default=None, max_length=20)
    medical_conditions: str | None = Field(default=None, max_length=1000)
    injuries: str | None = Field(default=None, max_length=1000)
    fitness_goals: list[str] | None = None
    internal_notes: str | None = Field(default=None, max_length=2000)


class MemberCreateRequest(_MemberFields):
    """Request body for POST /organizations/{slug}/members."""

    email: EmailStr
    full_name: str = Field(min_length=2, max_length=100)
    experience_level: ExperienceLevel = ExperienceLevel.beginner
    status: MemberStatus = MemberStatus.active
    current_plan_id: UUID | None = None
    membership_start_date: date | None = None
    membership_end_date: date | None = None

    @field_validator("full_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must have at least 2 characters")
        return v


class MemberUpdateRequest(_MemberFields):
    """Request body for PATCH /organizations/{slug}/members/{member_id}. All fields optional."""

    email: EmailStr | None = None
    full_name: str | None = Field(default=None, min_length=2, max_length=100)
    experience_level: ExperienceLevel | None = None
    status: MemberStatus | None = None
    current_plan_id: UUID | None = None
    membership_start_date: date | None = None
    membership_end_date: date | None = None
    membership_status: MembershipStatus | None = None


class MemberResponse(BaseModel):
    id: UUID
    org_id: UUID
    profile_id: UUID | None
    email: str
    full_name: str
    phone: str | None
    date_of_birth: date | None
    gender: Gender | None
    emergency_contact_name: str | None
    emergency_contact_phone: str | None
    medical_conditions: str | None
    injuries: str | None
    fitness_goals: list[str] | None
    experience_level: ExperienceLevel
    status: MemberStatus
    current_plan_id: UUID | None
    membership_start_date: date | None
    membership_end_date: date | None
    membership_status: MembershipStatus
    access_code: str | None
    check_in_count: int
    last_check_in: datetime | None
    internal_notes: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MembersListResponse(BaseModel):
    """Paginated member list."""

    members: list[MemberResponse]
    total: int
    page: int
    per_page: int


class AccessCodeResponse(BaseModel):
    member_id: UUID
    access_code: str


class MembershipStatusResponse(BaseModel):
    """Derived membership state for a member."""

    status: Literal["no_membership", "expired", "expiring_soon", "active"]
    days_remaining: int | None
    end_date: date | None
    plan_name: str | None
    is_expiring_soon: bool
    last_payment_date: datetime | None = None
    last_payment_amount: float | None = None
