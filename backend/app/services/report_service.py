"""
Dashboard metrics and the periodic activity report.

Revenue is membership payments plus other income. Day and month
boundaries follow the gym's timezone.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any

import redis.asyncio as aioredis
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import add_months, local_day_bounds, today_in, utcnow
from app.models.check_in import CheckIn
from app.models.finance import Income, MembershipPayment
from app.models.gym_class import GymClass
from app.models.member import Member, MemberStatus
from app.models.organization import Organization
from app.schemas.report import (
    ClassTypeCount,
    DashboardMetrics,
    DashboardResponse,
    MonthRevenue,
    RecentMember,
    ReportPeriod,
    ReportSummaryResponse,
    StatusCount,
    UpcomingClass,
)

RECENT_LIMIT = 5
POPULAR_CLASS_TYPES = 5
REVENUE_MONTHS = 6


def trend(current: int, previous: int) -> int:
    """Percent change against the previous window; 0 when there is no baseline."""
    if previous <= 0:
        return 0
    return round((current - previous) / previous * 100)


def period_start(period: ReportPeriod, today: date) -> date:
    if period is ReportPeriod.week:
        return today - timedelta(days=7)
    if period is ReportPeriod.year:
        return today.replace(month=1, day=1)
    return today.replace(day=1)


class ReportService:
    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self.db = db
        self.redis = redis

    # -----------------------------------------------------------------------
    # Dashboard
    # -----------------------------------------------------------------------

    async def dashboard(self, org: Organization) -> DashboardResponse:
        today = today_in(org.timezone)
        today_start, today_end = local_day_bounds(today, org.timezone)
        yesterday_start, _ = local_day_bounds(today - timedelta(days=1), org.timezone)
        month_start = self._start_of(today.replace(day=1), org)
        last_month_start = self._start_of(add_months(today.replace(day=1), -1), org)

        today_check_ins = await self._count_check_ins(org, today_start, today_end)
        yesterday_check_ins = await self._count_check_ins(org, yesterday_start, today_start)
        new_this_month = await self._count_members(org, Member.created_at >= month_start)
        new_last_month = await self._count_members(
            org, Member.created_at >= last_month_start, Member.created_at < month_start
        )

        metrics = DashboardMetrics(
            total_members=await self._count_members(org),
            active_members=await self._count_members(org, Member.status == MemberStatus.active),
            upcoming_classes=await self._count_classes(org, GymClass.start_time >= today_start),
            today_classes=await self._count_classes(
                org, GymClass.start_time >= today_start, GymClass.start_time < today_end
            ),
            today_check_ins=today_check_ins,
            monthly_revenue=float(
                await self._sum(MembershipPayment.amount, MembershipPayment.org_id,
                                MembershipPayment.created_at, org, month_start)
            ),
            members_trend=trend(new_this_month, new_last_month),
            check_ins_trend=trend(today_check_ins, yesterday_check_ins),
        )

        recent = await self.db.execute(
            select(Member)
            .where(Member.org_id == org.id)
            .order_by(Member.created_at.desc())
            .limit(RECENT_LIMIT)
        )
        upcoming = await self.db.execute(
            select(GymClass)
            .where(
                GymClass.org_id == org.id,
                GymClass.is_cancelled.is_(False),
                GymClass.start_time >= utcnow(),
            )
            .order_by(GymClass.start_time)
            .limit(RECENT_LIMIT)
        )
        return DashboardResponse(
            metrics=metrics,
            recent_members=[RecentMember.model_validate(m) for m in recent.scalars().all()],
            upcoming_classes=[UpcomingClass.model_validate(c) for c in upcoming.scalars().all()],
        )

    # -----------------------------------------------------------------------
    # Report summary
    # -----------------------------------------------------------------------

    async def summary(self, org: Organization, period: ReportPeriod) -> ReportSummaryResponse:
        today = today_in(org.timezone)
        start_date = period_start(period, today)
        start = self._start_of(start_date, org)

        total_check_ins = await self._count_check_ins(org, start)
        days = (today - start_date).days + 1

        revenue = await self._revenue(org, start)

        rows = await self.db.execute(
            select(Member.status, func.count())
            .where(Member.org_id == org.id)
            .group_by(Member.status)
        )
        by_status = {status: count for status, count in rows.all()}

        rows = await self.db.execute(
            select(GymClass.class_type, func.count())
            .where(
                GymClass.org_id == org.id,
                GymClass.is_cancelled.is_(False),
                GymClass.class_type.is_not(None),
                GymClass.start_time >= start,
            )
            .group_by(GymClass.class_type)
            .order_by(func.count().desc(), GymClass.class_type)
            .limit(POPULAR_CLASS_TYPES)
        )
        popular = [ClassTypeCount(class_type=t, count=c) for t, c in rows.all()]

        return ReportSummaryResponse(
            period=period,
            start_date=start_date,
            end_date=today,
            total_members=sum(by_status.values()),
            active_members=by_status.get(MemberStatus.active, 0),
            new_members=await self._count_members(org, Member.created_at >= start),
            total_check_ins=total_check_ins,
            total_classes=await self._count_classes(
                org, GymClass.start_time >= start, GymClass.is_cancelled.is_(False)
            ),
            total_revenue=float(revenue),
            avg_check_ins_per_day=round(total_check_ins / days) if days > 0 else 0,
            popular_class_types=popular,
            members_by_status=[
                StatusCount(status=status, count=by_status.get(status, 0)) for status in MemberStatus
            ],
            revenue_by_month=await self._revenue_by_month(org, today),
        )

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    @staticmethod
    def _start_of(day: date, org: Organization) -> datetime:
        return local_day_bounds(day, org.timezone)[0]

    async def _revenue_by_month(self, org: Organization, today: date) -> list[MonthRevenue]:
        """Oldest month first, ending with the current one."""
        first = today.replace(day=1)
        months = []
        for offset in range(REVENUE_MONTHS - 1, -1, -1):
            month = add_months(first, -offset)
            start = self._start_of(month, org)
            end = self._start_of(add_months(month, 1), org)
            revenue = await self._revenue(org, start, end)
            months.append(MonthRevenue(month=month.strftime("%Y-%m"), revenue=float(revenue)))
        return months

    async def _revenue(self, org: Organization, start: datetime, end: datetime | None = None) -> Decimal:
        payments = await self._sum(
            MembershipPayment.amount, MembershipPayment.org_id, MembershipPayment.created_at, org, start, end
        )
        income = await self._sum(Income.amount, Income.org_id, Income.income_date, org, start, end)
        return payments + income

    async def _sum(
        self, amount: Any, org_column: Any, date_column: Any,
        org: Organization, start: datetime, end: datetime | None = None,
    ) -> Decimal:
        stmt = select(func.coalesce(func.sum(amount), 0)).where(org_column == org.id, date_column >= start)
        if end is not None:
            stmt = stmt.where(date_column < end)
        return Decimal(str((await self.db.execute(stmt)).scalar_one()))

    async def _count_members(self, org: Organization, *criteria: Any) -> int:
        stmt = select(func.count()).select_from(Member).where(Member.org_id == org.id, *criteria)
        return (await self.db.execute(stmt)).scalar_one()

    async def _count_classes(self, org: Organization, *criteria: Any) -> int:
        stmt = select(func.count()).select_from(GymClass).where(GymClass.org_id == org.id, *criteria)
        return (await self.db.execute(stmt)).scalar_one()

    async def _count_check_ins(
        self, org: Organization, start: datetime, end: datetime | None = None
    ) -> int:
        stmt = select(func.count()).select_from(CheckIn).where(
            CheckIn.org_id == org.id, CheckIn.checked_in_at >= start
        )
        if end is not None:
            stmt = stmt.where(CheckIn.checked_in_at < end)
        return (await self.db.execute(stmt)).scalar_one()
