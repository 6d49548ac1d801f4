"""
Membership plan endpoints.
"""

from __future__ import annotations

from uuid import UUID

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_redis, require_permission
from app.core.rbac import Permission
from app.models.org_member import OrgMember
from app.models.organization import Organization
from app.schemas.plan import (
    PlanCreateRequest,
    PlanDeleteResponse,
    PlanResponse,
    PlansListResponse,
    PlanUpdateRequest,
)
from app.services.plan_service import PlanService

router = APIRouter()


def get_plan_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> PlanService:
    return PlanService(db=db, redis=redis)


@router.get("/{slug}/plans", response_model=PlansListResponse, summary="List plans")
async def list_plans(
    active_only: bool = Query(default=False),
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_plans)
    ),
    service: PlanService = Depends(get_plan_service),
) -> PlansListResponse:
    org, _ = org_and_member
    return await service.list_plans(org.id, active_only)


@router.post(
    "/{slug}/plans",
    response_model=PlanResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a plan",
)
async def create_plan(
    data: PlanCreateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_plans)
    ),
    service: PlanService = Depends(get_plan_service),
) -> PlanResponse:
    org, _ = org_and_member
    return await service.create_plan(org.id, data)


@router.get("/{slug}/plans/{plan_id}", response_model=PlanResponse, summary="Get a plan")
async def get_plan(
    plan_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_plans)
    ),
    service: PlanService = Depends(get_plan_service),
) -> PlanResponse:
    org, _ = org_and_member
    return PlanResponse.model_validate(await service.get_plan(org.id, plan_id))


@router.patch("/{slug}/plans/{plan_id}", response_model=PlanResponse, summary="Update a plan")
async def update_plan(
    plan_id: UUID,
    data: PlanUpdateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_plans)
    ),
    service: PlanService = Depends(get_plan_service),
) -> PlanResponse:
    org, _ = org_and_member
    return await service.update_plan(org.id, plan_id, data)


@router.delete(
    "/{slug}/plans/{plan_id}",
    response_model=PlanDeleteResponse,
    summary="Delete or deactivate a plan",
)
async def delete_plan(
    plan_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_plans)
    ),
    service: PlanService = Depends(get_plan_service),
) -> PlanDeleteResponse:
    """Plans still used by members are deactivated rather than deleted."""
    org, _ = org_and_member
    return await service.delete_plan(org.id, plan_id)
