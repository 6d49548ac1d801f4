"""
Class template schemas and the generation preview/result shapes.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

TIME_RE = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")

GenerationPeriod = Literal["week", "two_weeks", "month"]

PERIOD_DAYS: dict[str, int] = {"week": 7, "two_weeks": 14, "month": 30}


def _check_time(v: str) -> str:
    if not TIME_RE.match(v):
        raise ValueError("Time must be in HH:MM format")
    return v


def time_to_minutes(v: str) -> int:
    hours, minutes = v.split(":")
    return int(hours) * 60 + int(minutes)


class _TemplateRules(BaseModel):
    max_capacity: int = Field(default=20, ge=1, le=500)
    waitlist_enabled: bool = True
    max_waitlist: int = Field(default=5, ge=0, le=100)
    booking_opens_hours: int = Field(default=168, ge=0)
    booking_closes_minutes: int = Field(default=60, ge=0)
    cancellation_deadline_hours: int = Field(default=2, ge=0)


class TemplateCreateRequest(_TemplateRules):
    """Request body for POST /organizations/{slug}/class-templates."""

    name: str = Field(min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    class_type: str | None = Field(default=None, max_length=50)
    instructor_id: UUID | None = None
    instructor_name: str | None = Field(default=None, max_length=100)
    location: str | None = Field(default=None, max_length=100)
    day_of_week: int = Field(ge=0, le=6, description="0 = Sunday")
    start_time: str
    end_time: str
    is_active: bool = True

    @field_validator("start_time", "end_time")
    @classmethod
    def time_format(cls, v: str) -> str:
        return _check_time(v)

    @model_validator(mode="after")
    def end_after_start(self) -> TemplateCreateRequest:
        if time_to_minutes(self.end_time) <= time_to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self


class TemplateUpdateRequest(BaseModel):
    """Partial update. Time ordering is checked against the stored values in the service."""

    name: str | None = Field(default=None, min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    class_type: str | None = Field(default=None, max_length=50)
    instructor_id: UUID | None = None
    instructor_name: str | None = Field(default=None, max_length=100)
    location: str | None = Field(default=None, max_length=100)
    day_of_week: int | None = Field(default=None, ge=0, le=6)
    start_time: str | None = None
    end_time: str | None = None
    max_capacity: int | None = Field(default=None, ge=1, le=500)
    waitlist_enabled: bool | None = None
    max_waitlist: int | None = Field(default=None, ge=0, le=100)
    booking_opens_hours: int | None = Field(default=None, ge=0)
    booking_closes_minutes: int | None = Field(default=None, ge=0)
    cancellation_deadline_hours: int | None = Field(default=None, ge=0)
    is_active: bool | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def time_format(cls, v: str | None) -> str | None:
        return v if v is None else _check_time(v)


class TemplateResponse(BaseModel):
    id: UUID
    org_id: UUID
    name: str
    description: str | None
    class_type: str | None
    instructor_id: UUID | None
    instructor_name: str | None
    location: str | None
    day_of_week: int
    start_time: str
    end_time: str
    max_capacity: int
    waitlist_enabled: bool
    max_waitlist: int
    booking_opens_hours: int
    booking_closes_minutes: int
    cancellation_deadline_hours: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TemplatesListResponse(BaseModel):
    templates: list[TemplateResponse]
    total: int
    page: int
    per_page: int


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

class GenerateClassesRequest(BaseModel):
    period: GenerationPeriod = "week"
    start_date: date | None = None
    template_ids: list[UUID] | None = None


class ClassOccurrence(BaseModel):
    """One class a template would produce on a given date."""

    template_id: UUID
    template_name: str
    class_date: date
    start_time: datetime
    end_time: datetime
    instructor_name: str | None
    location: str | None
    already_exists: bool


class GenerationPreviewResponse(BaseModel):
    start_date: date
    end_date: date
    occurrences: list[ClassOccurrence]
    total: int
    new_count: int


class GenerationResultResponse(BaseModel):
    classes_created: int
    errors: list[str]
