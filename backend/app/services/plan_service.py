"""
Membership plan business logic.
"""

from __future__ import annotations

from uuid import UUID

import redis.asyncio as aioredis
from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.member import Member
from app.models.plan import MembershipPlan
from app.schemas.plan import (
    PlanCreateRequest,
    PlanDeleteResponse,
    PlanResponse,
    PlansListResponse,
    PlanUpdateRequest,
)


class PlanService:
    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self.db = db
        self.redis = redis

    async def list_plans(self, org_id: UUID, active_only: bool = False) -> PlansListResponse:
        """Plans ordered by sort_order, then name."""
        stmt = select(MembershipPlan).where(MembershipPlan.org_id == org_id)
        if active_only:
            stmt = stmt.where(MembershipPlan.is_active.is_(True))
        result = await self.db.execute(stmt.order_by(MembershipPlan.sort_order, MembershipPlan.name))
        plans = [PlanResponse.model_validate(p) for p in result.scalars().all()]
        return PlansListResponse(plans=plans, total=len(plans))

    async def get_plan(self, org_id: UUID, plan_id: UUID) -> MembershipPlan:
        result = await self.db.execute(
            select(MembershipPlan).where(MembershipPlan.id == plan_id, MembershipPlan.org_id == org_id)
        )
        plan = result.scalar_one_or_none()
        if plan is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "PLAN_NOT_FOUND", "message": "Plan not found"},
            )
        return plan

    async def create_plan(self, org_id: UUID, data: PlanCreateRequest) -> PlanResponse:
        values = data.model_dump()
        values["currency"] = values["currency"].upper()
        plan = MembershipPlan(org_id=org_id, **values)
        self.db.add(plan)
        await self.db.flush()
        return PlanResponse.model_validate(plan)

    async def update_plan(self, org_id: UUID, plan_id: UUID, data: PlanUpdateRequest) -> PlanResponse:
        plan = await self.get_plan(org_id, plan_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field not in ("description", "classes_per_period"):
                continue
            if field == "currency":
                value = value.upper()
            setattr(plan, field, value)
        await self.db.flush()
        await self.db.refresh(plan)
        return PlanResponse.model_validate(plan)

    async def delete_plan(self, org_id: UUID, plan_id: UUID) -> PlanDeleteResponse:
        """
        Delete a plan.

        Plans still referenced by members are deactivated instead so the
        members keep their plan link.
        """
        plan = await self.get_plan(org_id, plan_id)
        in_use = (
            await self.db.execute(
                select(func.count()).select_from(Member).where(
                    Member.org_id == org_id, Member.current_plan_id == plan.id
                )
            )
        ).scalar_one()

        if in_use:
            plan.is_active = False
            await self.db.flush()
            return PlanDeleteResponse(id=plan.id, deleted=False, deactivated=True)

        await self.db.delete(plan)
        await self.db.flush()
        return PlanDeleteResponse(id=plan_id, deleted=True, deactivated=False)
