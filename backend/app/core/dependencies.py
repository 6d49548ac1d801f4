"""
FastAPI dependency injection functions.

Provides database sessions, current user, Redis connections, permission
enforcement and the mobile API key / bearer checks.
"""

from __future__ import annotations

from uuid import UUID

import redis.asyncio as aioredis
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.errors import ApiError, ErrorCode
from app.core.rbac import Permission, has_all_permissions, has_any_permission
from app.core.security import blacklist_redis_key, decode_access_token, verify_api_key
from app.models.org_member import OrgMember
from app.models.organization import Organization
from app.models.user import User

# ---------------------------------------------------------------------------
# HTTP Bearer scheme (auto_error=False so we can return custom 401)
# ---------------------------------------------------------------------------

bearer_scheme = HTTPBearer(auto_error=False)

# ---------------------------------------------------------------------------
# Redis
# ---------------------------------------------------------------------------

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """
    Return a shared async Redis client.

    Uses a module-level pool so connections are reused across requests.
    """
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            str(settings.REDIS_URL),
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_pool


# ---------------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------------

async def _load_active_user(db: AsyncSession, user_id: str) -> User | None:
    try:
        uid = UUID(user_id)
    except ValueError:
        return None
    result = await db.execute(select(User).where(User.id == uid))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        return None
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> User:
    """
    Validate Bearer JWT and return the authenticated User.

    Raises 401 if:
    - No token provided
    - Token is invalid or expired
    - JTI is blacklisted
    - User does not exist or is inactive
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "MISSING_TOKEN", "message": "Authorization header required"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "INVALID_TOKEN", "message": "Token is invalid or expired"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    if await redis.exists(blacklist_redis_key(payload.get("jti", ""))):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "TOKEN_REVOKED", "message": "Token has been revoked"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await _load_active_user(db, payload.get("sub", ""))
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "USER_NOT_FOUND", "message": "User not found or inactive"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> User | None:
    """Like get_current_user, but anonymous requests resolve to None."""
    if credentials is None:
        return None
    return await get_current_user(credentials=credentials, db=db, redis=redis)


# ---------------------------------------------------------------------------
# Organization membership + permission enforcement
# ---------------------------------------------------------------------------

async def get_org_member(
    slug: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> tuple[Organization, OrgMember]:
    """
    Resolve org by slug and verify current user belongs to it.

    Returns (organization, org_member) tuple.
    Raises 404 if org not found, 403 if user has no role in it.
    """
    result = await db.execute(select(Organization).where(Organization.slug == slug))
    org = result.scalar_one_or_none()

    if org is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "ORG_NOT_FOUND", "message": "Organization not found"},
        )

    member_result = await db.execute(
        select(OrgMember).where(
            OrgMember.org_id == org.id,
            OrgMember.user_id == current_user.id,
        )
    )
    member = member_result.scalar_one_or_none()

    if member is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"code": "NOT_A_MEMBER", "message": "You are not a member of this organization"},
        )

    return org, member


def _insufficient(perms: tuple[Permission, ...]) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={
            "code": "INSUFFICIENT_PERMISSION",
            "message": f"Required permission: {[p.value for p in perms]}",
        },
    )


def require_permission(*perms: Permission):
    """
    Dependency factory that requires every listed permission.

    Usage:
        @router.post("/...")
        async def endpoint(
            org_and_member: tuple = Depends(require_permission(Permission.manage_members)),
        ):
            org, member = org_and_member
    """
    async def permission_checker(
        org_and_member: tuple[Organization, OrgMember] = Depends(get_org_member),
    ) -> tuple[Organization, OrgMember]:
        _, member = org_and_member
        if not has_all_permissions(member.role, perms):
            raise _insufficient(perms)
        return org_and_member

    return permission_checker


def require_any_permission(*perms: Permission):
    """Dependency factory that requires at least one of the listed permissions."""
    async def permission_checker(
        org_and_member: tuple[Organization, OrgMember] = Depends(get_org_member),
    ) -> tuple[Organization, OrgMember]:
        _, member = org_and_member
        if not has_any_permission(member.role, perms):
            raise _insufficient(perms)
        return org_and_member

    return permission_checker


# ---------------------------------------------------------------------------
# Mobile API
# ---------------------------------------------------------------------------

async def require_api_key(
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
) -> str:
    """Reject mobile requests without a recognised X-API-Key header."""
    if not x_api_key:
        raise ApiError(ErrorCode.MISSING_API_KEY, "API key is required")
    if not verify_api_key(x_api_key):
        raise ApiError(ErrorCode.INVALID_API_KEY, "Invalid API key")
    return x_api_key


async def get_mobile_user(
    _: str = Depends(require_api_key),
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> User:
    """Bearer-token user for mobile endpoints, reported with the mobile envelope."""
    if credentials is None or not credentials.credentials:
        raise ApiError(ErrorCode.MISSING_TOKEN, "Missing authorization token")

    try:
        payload = decode_access_token(credentials.credentials)
    except ExpiredSignatureError:
        raise ApiError(ErrorCode.EXPIRED_TOKEN, "Token has expired")
    except JWTError:
        raise ApiError(ErrorCode.INVALID_TOKEN, "Invalid token")

    if await redis.exists(blacklist_redis_key(payload.get("jti", ""))):
        raise ApiError(ErrorCode.INVALID_TOKEN, "Token has been revoked")

    user = await _load_active_user(db, payload.get("sub", ""))
    if user is None:
        raise ApiError(ErrorCode.UNAUTHORIZED, "User not found")
    return user
