"""
Routine (workout) business logic.

Routines are stored with their exercise lines as JSON. Assigning a
routine copies it into a new routine owned by the member.
"""

from __future__ import annotations

from uuid import UUID

import redis.asyncio as aioredis
from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.member import Member
from app.models.organization import Organization
from app.models.routine import Routine, WorkoutType
from app.models.user import User
from app.schemas.routine import (
    RoutineAssignRequest,
    RoutineCreateRequest,
    RoutineResponse,
    RoutinesListResponse,
    RoutineUpdateRequest,
)
from app.services.member_service import find_member_for_user


class RoutineService:
    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self.db = db
        self.redis = redis

    async def list_routines(
        self,
        org_id: UUID,
        search: str | None = None,
        workout_type: WorkoutType | None = None,
        member_id: UUID | None = None,
    ) -> RoutinesListResponse:
        stmt = select(Routine).where(Routine.org_id == org_id)
        if search:
            stmt = stmt.where(func.lower(Routine.name).like(f"%{search.lower()}%"))
        if workout_type is not None:
            stmt = stmt.where(Routine.workout_type == workout_type)
        if member_id is not None:
            stmt = stmt.where(Routine.assigned_to_member_id == member_id)

        result = await self.db.execute(stmt.order_by(Routine.created_at.desc()))
        routines = [RoutineResponse.model_validate(r) for r in result.scalars().all()]
        return RoutinesListResponse(routines=routines, total=len(routines))

    async def get_routine(self, org_id: UUID, routine_id: UUID) -> Routine:
        result = await self.db.execute(
            select(Routine).where(Routine.id == routine_id, Routine.org_id == org_id)
        )
        routine = result.scalar_one_or_none()
        if routine is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "ROUTINE_NOT_FOUND", "message": "Routine not found"},
            )
        return routine

    async def create_routine(
        self, org_id: UUID, data: RoutineCreateRequest, actor: User
    ) -> RoutineResponse:
        if data.assigned_to_member_id is not None:
            await self._get_member(org_id, data.assigned_to_member_id)

        values = data.model_dump(mode="json", exclude={"workout_type", "wod_type", "scheduled_date"})
        values["assigned_to_member_id"] = data.assigned_to_member_id
        routine = Routine(
            org_id=org_id,
            workout_type=data.workout_type,
            wod_type=data.wod_type,
            scheduled_date=data.scheduled_date,
            assigned_by_id=actor.id if data.assigned_to_member_id else None,
            created_by=actor.id,
            is_active=True,
            **values,
        )
        self.db.add(routine)
        await self.db.flush()
        return RoutineResponse.model_validate(routine)

    async def update_routine(
        self, org_id: UUID, routine_id: UUID, data: RoutineUpdateRequest
    ) -> RoutineResponse:
        routine = await self.get_routine(org_id, routine_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("exercises") is not None:
            changes["exercises"] = [e.model_dump(mode="json") for e in data.exercises or []]

        for field, value in changes.items():
            if value is None and field not in ("description", "wod_type", "wod_time_cap", "scheduled_date"):
                continue
            setattr(routine, field, value)

        await self.db.flush()
        await self.db.refresh(routine)
        return RoutineResponse.model_validate(routine)

    async def delete_routine(self, org_id: UUID, routine_id: UUID) -> None:
        routine = await self.get_routine(org_id, routine_id)
        await self.db.delete(routine)
        await self.db.flush()

    async def assign_routine(
        self, org_id: UUID, routine_id: UUID, data: RoutineAssignRequest, actor: User
    ) -> RoutineResponse:
        """Copy a routine into a new, non-template routine for the member."""
        source = await self.get_routine(org_id, routine_id)
        member = await self._get_member(org_id, data.member_id)

        copy = Routine(
            org_id=org_id,
            name=source.name,
            description=source.description,
            workout_type=source.workout_type,
            wod_type=source.wod_type,
            wod_time_cap=source.wod_time_cap,
            exercises=[dict(line) for line in source.exercises],
            assigned_to_member_id=member.id,
            assigned_by_id=actor.id,
            scheduled_date=data.scheduled_date,
            is_template=False,
            is_active=True,
            created_by=actor.id,
        )
        self.db.add(copy)
        await self.db.flush()
        return RoutineResponse.model_validate(copy)

    async def my_routines(self, org: Organization, user: User) -> RoutinesListResponse:
        """Active routines assigned to the caller's member row."""
        member = await find_member_for_user(self.db, org.id, user)
        if member is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={
                    "code": "MEMBER_PROFILE_NOT_FOUND",
                    "message": "You do not have a member profile in this organization",
                },
            )
        result = await self.db.execute(
            select(Routine)
            .where(
                Routine.org_id == org.id,
                Routine.assigned_to_member_id == member.id,
                Routine.is_active.is_(True),
            )
            .order_by(Routine.scheduled_date.desc(), Routine.created_at.desc())
        )
        routines = [RoutineResponse.model_validate(r) for r in result.scalars().all()]
        return RoutinesListResponse(routines=routines, total=len(routines))

    async def _get_member(self, org_id: UUID, member_id: UUID) -> Member:
        result = await self.db.execute(
            select(Member).where(Member.id == member_id, Member.org_id == org_id)
        )
        member = result.scalar_one_or_none()
        if member is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "MEMBER_NOT_FOUND", "message": "Member not found"},
            )
        return member
