"""
Routine (workout) schemas.
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.routine import WodType, WorkoutType


class RoutineExercise(BaseModel):
    """One exercise line inside a routine."""

    exercise_id: UUID | None = None
    exercise_name: str = Field(min_length=1, max_length=100)
    sets: int | None = Field(default=None, ge=1, le=100)
    reps: str | None = Field(default=None, max_length=50)
    weight: str | None = Field(default=None, max_length=50)
    rest_seconds: int | None = Field(default=None, ge=0, le=3600)
    tempo: str | None = Field(default=None, max_length=20)
    notes: str | None = Field(default=None, max_length=500)
    order: int = Field(default=0, ge=0)


class RoutineCreateRequest(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    workout_type: WorkoutType = WorkoutType.routine
    wod_type: WodType | None = None
    wod_time_cap: int | None = Field(default=None, ge=1, le=120)
    exercises: list[RoutineExercise] = Field(min_length=1)
    assigned_to_member_id: UUID | None = None
    scheduled_date: date | None = None
    is_template: bool = True


class RoutineUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    workout_type: WorkoutType | None = None
    wod_type: WodType | None = None
    wod_time_cap: int | None = Field(default=None, ge=1, le=120)
    exercises: list[RoutineExercise] | None = Field(default=None, min_length=1)
    scheduled_date: date | None = None
    is_template: bool | None = None
    is_active: bool | None = None


class RoutineAssignRequest(BaseModel):
    member_id: UUID
    scheduled_date: date | None = None


class RoutineResponse(BaseModel):
    id: UUID
    org_id: UUID
    name: str
    description: str | None
    workout_type: WorkoutType
    wod_type: WodType | None
    wod_time_cap: int | None
    exercises: list[RoutineExercise]
    assigned_to_member_id: UUID | None
    assigned_by_id: UUID | None
    scheduled_date: date | None
    is_template: bool
    is_active: bool
    created_by: UUID | None
    created_at: datetime

    model_config = {"from_attributes": True}


class RoutinesListResponse(BaseModel):
    routines: list[RoutineResponse]
    total: int
