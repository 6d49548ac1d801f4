"""
Exercise library and routine (workout) endpoints.
"""

from __future__ import annotations

from uuid import UUID

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_current_user, get_redis, require_permission
from app.core.rbac import Permission
from app.models.member import ExperienceLevel
from app.models.org_member import OrgMember
from app.models.organization import Organization
from app.models.routine import WorkoutType
from app.models.user import User
from app.schemas.exercise import (
    ExerciseCreateRequest,
    ExerciseResponse,
    ExercisesListResponse,
    ExerciseUpdateRequest,
)
from app.schemas.routine import (
    RoutineAssignRequest,
    RoutineCreateRequest,
    RoutineResponse,
    RoutinesListResponse,
    RoutineUpdateRequest,
)
from app.services.exercise_service import ExerciseService
from app.services.routine_service import RoutineService

router = APIRouter()

_MANAGE_EXERCISES = require_permission(Permission.manage_exercises)
_MANAGE_ROUTINES = require_permission(Permission.manage_any_member_routines)


def get_exercise_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> ExerciseService:
    return ExerciseService(db=db, redis=redis)


def get_routine_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> RoutineService:
    return RoutineService(db=db, redis=redis)


# ---------------------------------------------------------------------------
# Exercises
# ---------------------------------------------------------------------------

@router.get("/{slug}/exercises", response_model=ExercisesListResponse, summary="List exercises")
async def list_exercises(
    search: str | None = Query(default=None),
    category: str | None = Query(default=None),
    difficulty: ExperienceLevel | None = Query(default=None),
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_exercises)
    ),
    service: ExerciseService = Depends(get_exercise_service),
) -> ExercisesListResponse:
    """The gym's own exercises plus the global library."""
    org, _ = org_and_member
    return await service.list_exercises(org.id, search, category, difficulty)


@router.post(
    "/{slug}/exercises",
    response_model=ExerciseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an exercise",
)
async def create_exercise(
    data: ExerciseCreateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_EXERCISES),
    service: ExerciseService = Depends(get_exercise_service),
) -> ExerciseResponse:
    org, _ = org_and_member
    return await service.create_exercise(org.id, data)


@router.get(
    "/{slug}/exercises/{exercise_id}",
    response_model=ExerciseResponse,
    summary="Get an exercise",
)
async def get_exercise(
    exercise_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_exercises)
    ),
    service: ExerciseService = Depends(get_exercise_service),
) -> ExerciseResponse:
    org, _ = org_and_member
    return ExerciseResponse.model_validate(await service.get_exercise(org.id, exercise_id))


@router.patch(
    "/{slug}/exercises/{exercise_id}",
    response_model=ExerciseResponse,
    summary="Update an exercise",
)
async def update_exercise(
    exercise_id: UUID,
    data: ExerciseUpdateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_EXERCISES),
    service: ExerciseService = Depends(get_exercise_service),
) -> ExerciseResponse:
    """Global exercises are read-only (403 GLOBAL_EXERCISE_READ_ONLY)."""
    org, _ = org_and_member
    return await service.update_exercise(org.id, exercise_id, data)


@router.delete(
    "/{slug}/exercises/{exercise_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete an exercise",
)
async def delete_exercise(
    exercise_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_EXERCISES),
    service: ExerciseService = Depends(get_exercise_service),
) -> dict:
    org, _ = org_and_member
    await service.delete_exercise(org.id, exercise_id)
    return {}


# ---------------------------------------------------------------------------
# Routines
# ---------------------------------------------------------------------------

@router.get("/{slug}/routines", response_model=RoutinesListResponse, summary="List routines")
async def list_routines(
    search: str | None = Query(default=None),
    workout_type: WorkoutType | None = Query(default=None),
    member_id: UUID | None = Query(default=None, description="Assigned member"),
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_any_member_routines)
    ),
    service: RoutineService = Depends(get_routine_service),
) -> RoutinesListResponse:
    org, _ = org_and_member
    return await service.list_routines(org.id, search, workout_type, member_id)


@router.post(
    "/{slug}/routines",
    response_model=RoutineResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a routine",
)
async def create_routine(
    data: RoutineCreateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_ROUTINES),
    current_user: User = Depends(get_current_user),
    service: RoutineService = Depends(get_routine_service),
) -> RoutineResponse:
    org, _ = org_and_member
    return await service.create_routine(org.id, data, current_user)


@router.get("/{slug}/my/routines", response_model=RoutinesListResponse, summary="My routines")
async def my_routines(
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_own_routines)
    ),
    current_user: User = Depends(get_current_user),
    service: RoutineService = Depends(get_routine_service),
) -> RoutinesListResponse:
    """Active routines assigned to the caller's member profile."""
    org, _ = org_and_member
    return await service.my_routines(org, current_user)


@router.get("/{slug}/routines/{routine_id}", response_model=RoutineResponse, summary="Get a routine")
async def get_routine(
    routine_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_any_member_routines)
    ),
    service: RoutineService = Depends(get_routine_service),
) -> RoutineResponse:
    org, _ = org_and_member
    return RoutineResponse.model_validate(await service.get_routine(org.id, routine_id))


@router.patch(
    "/{slug}/routines/{routine_id}",
    response_model=RoutineResponse,
    summary="Update a routine",
)
async def update_routine(
    routine_id: UUID,
    data: RoutineUpdateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_ROUTINES),
    service: RoutineService = Depends(get_routine_service),
) -> RoutineResponse:
    org, _ = org_and_member
    return await service.update_routine(org.id, routine_id, data)


@router.delete(
    "/{slug}/routines/{routine_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete a routine",
)
async def delete_routine(
    routine_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_ROUTINES),
    service: RoutineService = Depends(get_routine_service),
) -> dict:
    org, _ = org_and_member
    await service.delete_routine(org.id, routine_id)
    return {}


@router.post(
    "/{slug}/routines/{routine_id}/assign",
    response_model=RoutineResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Assign a copy of a routine to a member",
)
async def assign_routine(
    routine_id: UUID,
    data: RoutineAssignRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.assign_routines)
    ),
    current_user: User = Depends(get_current_user),
    service: RoutineService = Depends(get_routine_service),
) -> RoutineResponse:
    org, _ = org_and_member
    return await service.assign_routine(org.id, routine_id, data, current_user)
