"""
Weekly class template endpoints and bulk class generation.
"""

from __future__ import annotations

from uuid import UUID

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_redis, require_any_permission, require_permission
from app.core.rbac import Permission
from app.models.org_member import OrgMember
from app.models.organization import Organization
from app.schemas.class_template import (
    GenerateClassesRequest,
    GenerationPreviewResponse,
    GenerationResultResponse,
    TemplateCreateRequest,
    TemplateResponse,
    TemplatesListResponse,
    TemplateUpdateRequest,
)
from app.services.template_service import TemplateService

router = APIRouter()

_MANAGE_TEMPLATES = require_permission(Permission.manage_class_templates)


def get_template_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> TemplateService:
    return TemplateService(db=db, redis=redis)


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

@router.get(
    "/{slug}/class-templates",
    response_model=TemplatesListResponse,
    summary="List class templates",
)
async def list_templates(
    query: str | None = Query(default=None, description="Matches name or instructor"),
    is_active: bool | None = Query(default=None),
    day_of_week: int | None = Query(default=None, ge=0, le=6, description="0 = Sunday"),
    class_type: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=50, ge=1, le=100),
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_any_permission(Permission.manage_class_templates, Permission.view_classes)
    ),
    service: TemplateService = Depends(get_template_service),
) -> TemplatesListResponse:
    """Sorted by day of week, then start time."""
    org, _ = org_and_member
    return await service.list_templates(
        org.id, query, is_active, day_of_week, class_type, page, per_page
    )


@router.post(
    "/{slug}/class-templates",
    response_model=TemplateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a class template",
)
async def create_template(
    data: TemplateCreateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_TEMPLATES),
    service: TemplateService = Depends(get_template_service),
) -> TemplateResponse:
    org, _ = org_and_member
    return await service.create_template(org.id, data)


@router.post(
    "/{slug}/class-templates/preview",
    response_model=GenerationPreviewResponse,
    summary="Preview classes a generation would create",
)
async def preview_generation(
    data: GenerateClassesRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_TEMPLATES),
    service: TemplateService = Depends(get_template_service),
) -> GenerationPreviewResponse:
    """Occurrences already generated are flagged ``already_exists``."""
    org, _ = org_and_member
    return await service.preview(org, data)


@router.post(
    "/{slug}/class-templates/generate",
    response_model=GenerationResultResponse,
    summary="Generate classes from active templates",
)
async def generate_classes(
    data: GenerateClassesRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_TEMPLATES),
    service: TemplateService = Depends(get_template_service),
) -> GenerationResultResponse:
    """
    Create one class per template occurrence in the period.

    - week = 7 days, two_weeks = 14, month = 30
    - Occurrences generated before are skipped
    """
    org, _ = org_and_member
    return await service.generate(org, data)


@router.get(
    "/{slug}/class-templates/{template_id}",
    response_model=TemplateResponse,
    summary="Get a class template",
)
async def get_template(
    template_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_any_permission(Permission.manage_class_templates, Permission.view_classes)
    ),
    service: TemplateService = Depends(get_template_service),
) -> TemplateResponse:
    org, _ = org_and_member
    return TemplateResponse.model_validate(await service.get_template(org.id, template_id))


@router.patch(
    "/{slug}/class-templates/{template_id}",
    response_model=TemplateResponse,
    summary="Update a class template",
)
async def update_template(
    template_id: UUID,
    data: TemplateUpdateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_TEMPLATES),
    service: TemplateService = Depends(get_template_service),
) -> TemplateResponse:
    org, _ = org_and_member
    return await service.update_template(org.id, template_id, data)


@router.delete(
    "/{slug}/class-templates/{template_id}",
    status_code=status.HTTP_200_OK,
    summary="Delete a class template",
)
async def delete_template(
    template_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_TEMPLATES),
    service: TemplateService = Depends(get_template_service),
) -> dict:
    org, _ = org_and_member
    await service.delete_template(org.id, template_id)
    return {}


@router.post(
    "/{slug}/class-templates/{template_id}/toggle",
    response_model=TemplateResponse,
    summary="Activate or deactivate a template",
)
async def toggle_template(
    template_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(_MANAGE_TEMPLATES),
    service: TemplateService = Depends(get_template_service),
) -> TemplateResponse:
    org, _ = org_and_member
    return await service.toggle_template(org.id, template_id)
