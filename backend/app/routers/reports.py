"""
Staff dashboard and activity report endpoints.
"""

from __future__ import annotations

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_redis, require_permission
from app.core.rbac import Permission
from app.models.org_member import OrgMember
from app.models.organization import Organization
from app.schemas.report import DashboardResponse, ReportPeriod, ReportSummaryResponse
from app.services.report_service import ReportService

router = APIRouter()


def get_report_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> ReportService:
    return ReportService(db=db, redis=redis)


@router.get("/{slug}/dashboard", response_model=DashboardResponse, summary="Staff dashboard")
async def dashboard(
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_admin_dashboard)
    ),
    service: ReportService = Depends(get_report_service),
) -> DashboardResponse:
    """Headline counts, the newest members and the next classes."""
    org, _ = org_and_member
    return await service.dashboard(org)


@router.get("/{slug}/reports/summary", response_model=ReportSummaryResponse, summary="Activity report")
async def report_summary(
    period: ReportPeriod = Query(default=ReportPeriod.month),
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_reports)
    ),
    service: ReportService = Depends(get_report_service),
) -> ReportSummaryResponse:
    org, _ = org_and_member
    return await service.summary(org, period)
