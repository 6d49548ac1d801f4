"""
Class and booking schemas.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from app.models.gym_class import BookingStatus


# ---------------------------------------------------------------------------
# Classes
# ---------------------------------------------------------------------------

class ClassCreateRequest(BaseModel):
    """Request body for POST /organizations/{slug}/classes."""

    name: str = Field(min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    class_type: str | None = Field(default=None, max_length=50)
    start_time: datetime
    end_time: datetime
    max_capacity: int = Field(default=20, ge=1, le=500)
    waitlist_enabled: bool = True
    max_waitlist: int = Field(default=5, ge=0, le=100)
    instructor_id: UUID | None = None
    instructor_name: str | None = Field(default=None, max_length=100)
    location: str | None = Field(default=None, max_length=100)
    booking_opens_hours: int = Field(default=168, ge=0)
    booking_closes_minutes: int = Field(default=60, ge=0)
    cancellation_deadline_hours: int = Field(default=2, ge=0)

    @model_validator(mode="after")
    def end_after_start(self) -> ClassCreateRequest:
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ClassUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    class_type: str | None = Field(default=None, max_length=50)
    start_time: datetime | None = None
    end_time: datetime | None = None
    max_capacity: int | None = Field(default=None, ge=1, le=500)
    waitlist_enabled: bool | None = None
    max_waitlist: int | None = Field(default=None, ge=0, le=100)
    instructor_id: UUID | None = None
    instructor_name: str | None = Field(default=None, max_length=100)
    location: str | None = Field(default=None, max_length=100)
    booking_opens_hours: int | None = Field(default=None, ge=0)
    booking_closes_minutes: int | None = Field(default=None, ge=0)
    cancellation_deadline_hours: int | None = Field(default=None, ge=0)


class ClassCancelRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class ClassResponse(BaseModel):
    id: UUID
    org_id: UUID
    name: str
    description: str | None
    class_type: str | None
    start_time: datetime
    end_time: datetime
    max_capacity: int
    current_bookings: int
    waitlist_enabled: bool
    max_waitlist: int
    instructor_id: UUID | None
    instructor_name: str | None
    location: str | None
    booking_opens_hours: int
    booking_closes_minutes: int
    cancellation_deadline_hours: int
    is_cancelled: bool
    cancellation_reason: str | None
    template_id: UUID | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ClassesListResponse(BaseModel):
    classes: list[ClassResponse]
    total: int


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------

class BookingCreateRequest(BaseModel):
    """Staff booking a member into a class."""

    member_id: UUID


class BookingAttendanceRequest(BaseModel):
    """``attended`` or ``no_show``."""

    status: BookingStatus


class BookingResponse(BaseModel):
    id: UUID
    org_id: UUID
    class_id: UUID
    member_id: UUID
    status: BookingStatus
    waitlist_position: int | None
    checked_in_at: datetime | None
    cancelled_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class BookingWithMemberResponse(BookingResponse):
    member_name: str | None = None
    member_email: str | None = None


class BookingsListResponse(BaseModel):
    bookings: list[BookingWithMemberResponse]
    total: int


class MemberBookingResponse(BookingResponse):
    """A booking of the calling member, with the class attached."""

    gym_class: ClassResponse


class MemberBookingsListResponse(BaseModel):
    bookings: list[MemberBookingResponse]
    total: int


# ---------------------------------------------------------------------------
# Member self-service
# ---------------------------------------------------------------------------

class DailyLimitInfo(BaseModel):
    limit: int
    current_count: int
    target_date: date
    timezone: str
    existing_bookings: list[dict[str, Any]] = Field(default_factory=list)


class AvailableClassResponse(ClassResponse):
    has_my_booking: bool = False
    my_booking_status: BookingStatus | None = None
    my_booking_id: UUID | None = None
    daily_limit_reached: bool = False
    daily_limit_info: DailyLimitInfo | None = None


class AvailableClassesResponse(BaseModel):
    classes: list[AvailableClassResponse]
    total: int
