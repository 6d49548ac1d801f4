"""
Front-desk check-in endpoints.
"""

from __future__ import annotations

from uuid import UUID

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_current_user, get_redis, require_any_permission, require_permission
from app.core.rbac import Permission
from app.models.org_member import OrgMember
from app.models.organization import Organization
from app.models.user import User
from app.schemas.check_in import (
    AccessCodeCheckInRequest,
    CheckInsListResponse,
    CheckInWithMemberResponse,
    ManualCheckInRequest,
)
from app.services.check_in_service import CheckInService

router = APIRouter()


def get_check_in_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> CheckInService:
    return CheckInService(db=db, redis=redis)


@router.post(
    "/{slug}/check-ins",
    response_model=CheckInWithMemberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Check in with an access code",
)
async def check_in_by_code(
    data: AccessCodeCheckInRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_any_permission(Permission.perform_check_in, Permission.manage_check_ins)
    ),
    current_user: User = Depends(get_current_user),
    service: CheckInService = Depends(get_check_in_service),
) -> CheckInWithMemberResponse:
    """
    Check a member in by QR or PIN code.

    - 404 INVALID_ACCESS_CODE for an unknown code
    - 400 MEMBER_INACTIVE when the member is not active
    - 409 ALREADY_CHECKED_IN on a second check-in the same gym-local day
    """
    org, _ = org_and_member
    return await service.check_in_by_code(org, data, current_user)


@router.post(
    "/{slug}/check-ins/manual",
    response_model=CheckInWithMemberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Check a member in by id",
)
async def manual_check_in(
    data: ManualCheckInRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_check_ins)
    ),
    current_user: User = Depends(get_current_user),
    service: CheckInService = Depends(get_check_in_service),
) -> CheckInWithMemberResponse:
    org, _ = org_and_member
    return await service.manual_check_in(org, data, current_user)


@router.get(
    "/{slug}/check-ins/today",
    response_model=CheckInsListResponse,
    summary="Today's check-ins",
)
async def todays_check_ins(
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_check_ins)
    ),
    service: CheckInService = Depends(get_check_in_service),
) -> CheckInsListResponse:
    org, _ = org_and_member
    return await service.todays_check_ins(org)


@router.get(
    "/{slug}/members/{member_id}/check-ins",
    response_model=CheckInsListResponse,
    summary="A member's check-in history",
)
async def member_check_ins(
    member_id: UUID,
    limit: int = Query(default=50, ge=1, le=200),
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_check_ins)
    ),
    service: CheckInService = Depends(get_check_in_service),
) -> CheckInsListResponse:
    org, _ = org_and_member
    return await service.member_history(org.id, member_id, limit)
