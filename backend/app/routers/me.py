"""
Caller-level endpoints that are not scoped to one gym.

GET /me/redirect   where to land after login
GET /roles         assignable roles with their permission groups
"""

from __future__ import annotations

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_current_user, get_redis
from app.models.user import User
from app.schemas.me import RedirectResponse, RolesResponse
from app.services.view_service import ViewService

router = APIRouter()


def get_view_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> ViewService:
    return ViewService(db=db, redis=redis)


@router.get("/me/redirect", response_model=RedirectResponse, summary="Post-login destination")
async def post_login_redirect(
    current_user: User = Depends(get_current_user),
    service: ViewService = Depends(get_view_service),
) -> RedirectResponse:
    """
    Resolve the dashboard to open after login.

    Users whose gym membership link is missing are reattached by profile
    or email before the destination is computed.
    """
    return await service.post_login_redirect(current_user)


@router.get("/roles", response_model=RolesResponse, summary="Assignable roles")
async def list_roles(
    current_user: User = Depends(get_current_user),
) -> RolesResponse:
    return ViewService.roles()
