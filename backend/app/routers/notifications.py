"""
Membership notification endpoints.

GET /organizations/{slug}/notifications/membership        list notifications
GET /organizations/{slug}/notifications/membership/stats  last 30 days counts
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import require_permission
from app.core.rbac import Permission
from app.models.notification import NotificationStatus
from app.models.org_member import OrgMember
from app.models.organization import Organization
from app.schemas.notification import MembershipNotificationListResponse, MembershipNotificationStats
from app.services.membership_notification_service import MembershipNotificationService

router = APIRouter()


def get_notification_service(
    db: AsyncSession = Depends(get_db),
) -> MembershipNotificationService:
    return MembershipNotificationService(db=db)


@router.get(
    "/{slug}/notifications/membership",
    response_model=MembershipNotificationListResponse,
    summary="List membership notifications",
)
async def list_membership_notifications(
    notification_status: NotificationStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_members)
    ),
    service: MembershipNotificationService = Depends(get_notification_service),
) -> MembershipNotificationListResponse:
    """Newest first, optionally filtered by delivery status."""
    org, _ = org_and_member
    return await service.list_notifications(org.id, notification_status, limit, offset)


@router.get(
    "/{slug}/notifications/membership/stats",
    response_model=MembershipNotificationStats,
    summary="Membership notification counts for the last 30 days",
)
async def membership_notification_stats(
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_reports)
    ),
    service: MembershipNotificationService = Depends(get_notification_service),
) -> MembershipNotificationStats:
    org, _ = org_and_member
    return await service.stats(org.id)
