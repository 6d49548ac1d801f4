"""
Exercise library business logic.

Global exercises (org_id NULL) are visible to every organization and
read-only; organizations manage their own.
"""

from __future__ import annotations

from uuid import UUID

import redis.asyncio as aioredis
from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.exercise import Exercise
from app.models.member import ExperienceLevel
from app.schemas.exercise import (
    ExerciseCreateRequest,
    ExerciseResponse,
    ExercisesListResponse,
    ExerciseUpdateRequest,
)


class ExerciseService:
    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self.db = db
        self.redis = redis

    async def list_exercises(
        self,
        org_id: UUID,
        search: str | None = None,
        category: str | None = None,
        difficulty: ExperienceLevel | None = None,
    ) -> ExercisesListResponse:
        stmt = select(Exercise).where(or_(Exercise.org_id == org_id, Exercise.org_id.is_(None)))
        if search:
            stmt = stmt.where(func.lower(Exercise.name).like(f"%{search.lower()}%"))
        if category:
            stmt = stmt.where(Exercise.category == category)
        if difficulty is not None:
            stmt = stmt.where(Exercise.difficulty == difficulty)

        result = await self.db.execute(stmt.order_by(Exercise.name))
        exercises = [ExerciseResponse.model_validate(e) for e in result.scalars().all()]
        return ExercisesListResponse(exercises=exercises, total=len(exercises))

    async def get_exercise(self, org_id: UUID, exercise_id: UUID) -> Exercise:
        result = await self.db.execute(
            select(Exercise).where(
                Exercise.id == exercise_id,
                or_(Exercise.org_id == org_id, Exercise.org_id.is_(None)),
            )
        )
        exercise = result.scalar_one_or_none()
        if exercise is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "EXERCISE_NOT_FOUND", "message": "Exercise not found"},
            )
        return exercise

    async def create_exercise(self, org_id: UUID, data: ExerciseCreateRequest) -> ExerciseResponse:
        exercise = Exercise(org_id=org_id, is_global=False, **data.model_dump())
        self.db.add(exercise)
        await self.db.flush()
        return ExerciseResponse.model_validate(exercise)

    async def update_exercise(
        self, org_id: UUID, exercise_id: UUID, data: ExerciseUpdateRequest
    ) -> ExerciseResponse:
        exercise = await self._get_own(org_id, exercise_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is None and field not in ("description", "category", "video_url"):
                continue
            setattr(exercise, field, value)
        await self.db.flush()
        await self.db.refresh(exercise)
        return ExerciseResponse.model_validate(exercise)

    async def delete_exercise(self, org_id: UUID, exercise_id: UUID) -> None:
        exercise = await self._get_own(org_id, exercise_id)
        await self.db.delete(exercise)
        await self.db.flush()

    async def _get_own(self, org_id: UUID, exercise_id: UUID) -> Exercise:
        exercise = await self.get_exercise(org_id, exercise_id)
        if exercise.org_id is None or exercise.is_global:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "code": "GLOBAL_EXERCISE_READ_ONLY",
                    "message": "Global exercises cannot be modified",
                },
            )
        return exercise
