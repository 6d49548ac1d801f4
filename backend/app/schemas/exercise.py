"""
Exercise library schemas.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.member import ExperienceLevel


class ExerciseCreateRequest(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    category: str | None = Field(default=None, max_length=50)
    muscle_groups: list[str] = Field(default_factory=list)
    equipment: list[str] = Field(default_factory=list)
    difficulty: ExperienceLevel = ExperienceLevel.beginner
    video_url: str | None = Field(default=None, max_length=500)
    instructions: list[str] = Field(default_factory=list)


class ExerciseUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    category: str | None = Field(default=None, max_length=50)
    muscle_groups: list[str] | None = None
    equipment: list[str] | None = None
    difficulty: ExperienceLevel | None = None
    video_url: str | None = Field(default=None, max_length=500)
    instructions: list[str] | None = None


class ExerciseResponse(BaseModel):
    id: UUID
    org_id: UUID | None
    name: str
    description: str | None
    category: str | None
    muscle_groups: list[str]
    equipment: list[str]
    difficulty: ExperienceLevel
    video_url: str | None
    instructions: list[str]
    is_global: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ExercisesListResponse(BaseModel):
    exercises: list[ExerciseResponse]
    total: int
