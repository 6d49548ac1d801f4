"""
Dashboard and report schemas.
"""

from __future__ import annotations

import enum
from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel

from app.models.member import MemberStatus


class ReportPeriod(str, enum.Enum):
    week = "week"
    month = "month"
    year = "year"


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

class DashboardMetrics(BaseModel):
    total_members: int
    active_members: int
    upcoming_classes: int
    today_classes: int
    today_check_ins: int
    monthly_revenue: float
    members_trend: int
    check_ins_trend: int


class RecentMember(BaseModel):
    id: UUID
    full_name: str
    email: str
    status: MemberStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class UpcomingClass(BaseModel):
    id: UUID
    name: str
    class_type: str | None
    start_time: datetime
    current_bookings: int
    max_capacity: int
    instructor_name: str | None

    model_config = {"from_attributes": True}


class DashboardResponse(BaseModel):
    metrics: DashboardMetrics
    recent_members: list[RecentMember]
    upcoming_classes: list[UpcomingClass]


# ---------------------------------------------------------------------------
# Report summary
# ---------------------------------------------------------------------------

class ClassTypeCount(BaseModel):
    class_type: str
    count: int


class StatusCount(BaseModel):
    status: MemberStatus
    count: int


class MonthRevenue(BaseModel):
    month: str
    revenue: float


class ReportSummaryResponse(BaseModel):
    """Gym activity from ``start_date`` up to today, in gym-local days."""

    period: ReportPeriod
    start_date: date
    end_date: date
    total_members: int
    active_members: int
    new_members: int
    total_check_ins: int
    total_classes: int
    total_revenue: float
    avg_check_ins_per_day: int
    popular_class_types: list[ClassTypeCount]
    members_by_status: list[StatusCount]
    revenue_by_month: list[MonthRevenue]
