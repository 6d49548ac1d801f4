"""
Member file endpoints: body measurements and staff notes.
"""

from __future__ import annotations

from uuid import UUID

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_current_user, get_redis, require_permission
from app.core.rbac import Permission
from app.models.member_note import NoteType
from app.models.org_member import OrgMember
from app.models.organization import Organization
from app.models.user import User
from app.schemas.measurement import (
    MeasurementCreateRequest,
    MeasurementResponse,
    MeasurementsListResponse,
    MeasurementUpdateRequest,
)
from app.schemas.member_note import (
    NoteCreateRequest,
    NoteResponse,
    NotesListResponse,
    NoteUpdateRequest,
)
from app.services.measurement_service import MeasurementService
from app.services.member_note_service import MemberNoteService

router = APIRouter()

_VIEW_METRICS = require_permission(Permission.view_any_member_metrics)
_MANAGE_METRICS = require_permission(Permission.manage_any_member_metrics)
_VIEW_NOTES = require_permission(Permission.view_any_member_notes)
_MANAGE_NOTES = require_permission(Permission.manage_any_member_notes)


def get_measurement_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> MeasurementService:
    return MeasurementService(db=db, redis=redis)


def get_note_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> MemberNoteService:
    return MemberNoteService(db=db, redis=redis)


# ---------------------------------------------------------------------------
# Measurements
# ---------------------------------------------------------------------------

@router.get(
    "/{slug}/members/{member_id}/measurements",
    response_model=MeasurementsListResponse,
    summary="A member's measurements",
)
async def list_measurements(
    member_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(_VIEW_METRICS),
    service: MeasurementService = Depends(get_measurement_service),
) -> MeasurementsListResponse:
    org, _ = org_and_member
    return await service.list_measurements(org.id, member_id)


@router.get(
    "/{slug}/members/{member_id}/measurements/latest",
    response_model=MeasurementResponse | None,
    summary="A member's most recent measurement",
)
async def latest_measurement(
    member_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(_VIEW_METRICS),
    service: MeasurementService = Depends(get_measurement_service),
) -> MeasurementResponse | None:
    org, _ = org_and_member
    return await service.latest_measurement(org.id, member_id)


@router.post(
    "/{slug}/members/{member_id}/measurements",
    response_model=MeasurementResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a measurement",
)
async def create_measurement(
    member_id: UUID,
    data: MeasurementCreateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_METRICS),
    current_user: User = Depends(get_current_user),
    service: MeasurementService = Depends(get_measurement_service),
) -> MeasurementResponse:
    """BMI is computed when both height and weight are given."""
    org, _ = org_and_member
    return await service.create_measurement(org.id, member_id, data, current_user)


@router.patch(
    "/{slug}/measurements/{measurement_id}",
    response_model=MeasurementResponse,
    summary="Update a measurement",
)
async def update_measurement(
    measurement_id: UUID,
    data: MeasurementUpdateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_METRICS),
    service: MeasurementService = Depends(get_measurement_service),
) -> MeasurementResponse:
    org, _ = org_and_member
    return await service.update_measurement(org.id, measurement_id, data)


@router.delete(
    "/{slug}/measurements/{measurement_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete a measurement",
)
async def delete_measurement(
    measurement_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_METRICS),
    service: MeasurementService = Depends(get_measurement_service),
) -> dict:
    org, _ = org_and_member
    await service.delete_measurement(org.id, measurement_id)
    return {}


@router.get(
    "/{slug}/my/measurements",
    response_model=MeasurementsListResponse,
    summary="My measurements",
)
async def my_measurements(
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_own_metrics)
    ),
    current_user: User = Depends(get_current_user),
    service: MeasurementService = Depends(get_measurement_service),
) -> MeasurementsListResponse:
    org, _ = org_and_member
    return await service.my_measurements(org, current_user)


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------

@router.get(
    "/{slug}/members/{member_id}/notes",
    response_model=NotesListResponse,
    summary="A member's notes",
)
async def list_notes(
    member_id: UUID,
    note_type: NoteType | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=100),
    org_and_member: tuple[Organization, OrgMember] = Depends(_VIEW_NOTES),
    service: MemberNoteService = Depends(get_note_service),
) -> NotesListResponse:
    org, _ = org_and_member
    return await service.list_notes(org.id, member_id, note_type, limit)


@router.post(
    "/{slug}/members/{member_id}/notes",
    response_model=NoteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a note",
)
async def create_note(
    member_id: UUID,
    data: NoteCreateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_NOTES),
    current_user: User = Depends(get_current_user),
    service: MemberNoteService = Depends(get_note_service),
) -> NoteResponse:
    org, _ = org_and_member
    return await service.create_note(org.id, member_id, data, current_user)


@router.patch(
    "/{slug}/notes/{note_id}",
    response_model=NoteResponse,
    summary="Update a note",
)
async def update_note(
    note_id: UUID,
    data: NoteUpdateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_NOTES),
    current_user: User = Depends(get_current_user),
    service: MemberNoteService = Depends(get_note_service),
) -> NoteResponse:
    """Author or admin only (403 NOT_NOTE_AUTHOR)."""
    org, org_member = org_and_member
    return await service.update_note(org.id, note_id, data, current_user, org_member)


@router.delete(
    "/{slug}/notes/{note_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete a note",
)
async def delete_note(
    note_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_NOTES),
    current_user: User = Depends(get_current_user),
    service: MemberNoteService = Depends(get_note_service),
) -> dict:
    org, org_member = org_and_member
    await service.delete_note(org.id, note_id, current_user, org_member)
    return {}
