"""
Mobile authentication endpoints.

Every request needs an ``X-API-Key`` header. Responses use the mobile
envelope: ``{"success": true, "data": ...}`` or ``{"success": false, "error": ...}``.
"""

from __future__ import annotations

from typing import Any

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_mobile_user, get_redis, require_api_key
from app.core.errors import success_envelope
from app.models.user import User
from app.schemas.mobile import MobileLoginRequest, MobileRefreshRequest, MobileRegisterRequest
from app.services.mobile_auth_service import MobileAuthService

router = APIRouter(dependencies=[Depends(require_api_key)])


def get_mobile_auth_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> MobileAuthService:
    return MobileAuthService(db=db, redis=redis)


@router.post("/auth/login", summary="Mobile login")
async def login(
    data: MobileLoginRequest,
    service: MobileAuthService = Depends(get_mobile_auth_service),
) -> dict[str, Any]:
    """
    Sign in with email and password.

    ``tenant_slug`` restricts the login to members of that gym.
    """
    result = await service.login(data)
    return success_envelope(result.model_dump(mode="json"))


@router.post("/auth/register", status_code=status.HTTP_201_CREATED, summary="Mobile sign-up")
async def register(
    data: MobileRegisterRequest,
    service: MobileAuthService = Depends(get_mobile_auth_service),
) -> dict[str, Any]:
    result = await service.register(data)
    return success_envelope(result.model_dump(mode="json"))


@router.post("/auth/refresh", summary="Refresh mobile tokens")
async def refresh(
    data: MobileRefreshRequest,
    service: MobileAuthService = Depends(get_mobile_auth_service),
) -> dict[str, Any]:
    tokens = await service.refresh(data.refresh_token)
    return success_envelope(tokens.model_dump(mode="json"))


@router.get("/auth/me", summary="Current mobile user")
async def me(
    current_user: User = Depends(get_mobile_user),
    service: MobileAuthService = Depends(get_mobile_auth_service),
) -> dict[str, Any]:
    user = await service.me(current_user)
    return success_envelope(user.model_dump(mode="json"))
