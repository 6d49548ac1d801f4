"""
Member (gym customer) endpoints.
"""

from __future__ import annotations

from uuid import UUID

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_redis, require_permission
from app.core.rbac import Permission
from app.models.member import MemberStatus
from app.models.org_member import OrgMember
from app.models.organization import Organization
from app.schemas.member import (
    AccessCodeResponse,
    MemberCreateRequest,
    MemberResponse,
    MembersListResponse,
    MembershipStatusResponse,
    MemberUpdateRequest,
)
from app.services.member_service import MemberService

router = APIRouter()


def get_member_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> MemberService:
    return MemberService(db=db, redis=redis)


@router.get("/{slug}/members", response_model=MembersListResponse, summary="List members")
async def list_members(
    search: str | None = Query(default=None, description="Matches name or email"),
    member_status: MemberStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=20, ge=1, le=100),
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_members)
    ),
    service: MemberService = Depends(get_member_service),
) -> MembersListResponse:
    org, _ = org_and_member
    return await service.list_members(org.id, search, member_status, page, per_page)


@router.post(
    "/{slug}/members",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a member",
)
async def create_member(
    data: MemberCreateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_members)
    ),
    service: MemberService = Depends(get_member_service),
) -> MemberResponse:
    """
    Create a member.

    - 403 PLAN_LIMIT_EXCEEDED when the gym's member limit is reached
    - 409 when the email is already used in this gym
    """
    org, _ = org_and_member
    return await service.create_member(org, data)


@router.get("/{slug}/members/{member_id}", response_model=MemberResponse, summary="Get a member")
async def get_member(
    member_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_any_member_profile)
    ),
    service: MemberService = Depends(get_member_service),
) -> MemberResponse:
    org, _ = org_and_member
    return MemberResponse.model_validate(await service.get_member(org.id, member_id))


@router.patch("/{slug}/members/{member_id}", response_model=MemberResponse, summary="Update a member")
async def update_member(
    member_id: UUID,
    data: MemberUpdateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_members)
    ),
    service: MemberService = Depends(get_member_service),
) -> MemberResponse:
    org, _ = org_and_member
    return await service.update_member(org.id, member_id, data)


@router.delete(
    "/{slug}/members/{member_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete a member",
)
async def delete_member(
    member_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_members)
    ),
    service: MemberService = Depends(get_member_service),
) -> dict:
    org, _ = org_and_member
    await service.delete_member(org.id, member_id)
    return {}


@router.post(
    "/{slug}/members/{member_id}/access-code",
    response_model=AccessCodeResponse,
    summary="Generate a new 6-digit access code",
)
async def generate_access_code(
    member_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_members)
    ),
    service: MemberService = Depends(get_member_service),
) -> AccessCodeResponse:
    org, _ = org_and_member
    return await service.generate_access_code(org.id, member_id)


@router.get(
    "/{slug}/members/{member_id}/membership-status",
    response_model=MembershipStatusResponse,
    summary="Membership status and last payment",
)
async def membership_status(
    member_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_any_member_profile)
    ),
    service: MemberService = Depends(get_member_service),
) -> MembershipStatusResponse:
    org, _ = org_and_member
    return await service.membership_status(org, member_id)
