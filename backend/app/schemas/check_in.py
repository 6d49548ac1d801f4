"""
Check-in schemas.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.check_in import CheckInMethod


class AccessCodeCheckInRequest(BaseModel):
    """Front-desk check-in with a scanned or typed access code."""

    access_code: str = Field(min_length=4, max_length=20)
    method: Literal["qr", "pin"] = "qr"
    location: str | None = Field(default=None, max_length=100)


class ManualCheckInRequest(BaseModel):
    member_id: UUID
    notes: str | None = Field(default=None, max_length=500)
    location: str | None = Field(default=None, max_length=100)


class CheckInResponse(BaseModel):
    id: UUID
    org_id: UUID
    member_id: UUID
    checked_in_at: datetime
    check_in_method: CheckInMethod
    location: str | None
    notes: str | None
    booking_id: UUID | None
    performed_by: UUID | None

    model_config = {"from_attributes": True}


class CheckInWithMemberResponse(CheckInResponse):
    member_name: str
    member_email: str
    member_access_code: str | None = None


class CheckInsListResponse(BaseModel):
    check_ins: list[CheckInWithMemberResponse]
    total: int
