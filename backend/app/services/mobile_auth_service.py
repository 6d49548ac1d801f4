"""
Mobile authentication.

Wraps AuthService for the mobile clients: failures are raised as ApiError
so they render with the mobile envelope, and the user object carries the
tenant and role of the user's gym membership.
"""

from __future__ import annotations

import redis.asyncio as aioredis
from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ApiError, ErrorCode
from app.core.rbac import AppRole
from app.core.security import verify_password
from app.models.org_member import OrgMember
from app.models.organization import Organization
from app.models.user import User
from app.schemas.mobile import (
    MobileAuthData,
    MobileLoginRequest,
    MobileRegisterRequest,
    MobileTokens,
    MobileUser,
)
from app.services.auth_service import AuthService, IssuedTokens


def _tokens(issued: IssuedTokens) -> MobileTokens:
    return MobileTokens(
        access_token=issued.access_token,
        refresh_token=issued.refresh_token,
        expires_in=issued.expires_in,
        expires_at=int(issued.expires_at.timestamp()),
    )


class MobileAuthService:
    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self.db = db
        self.redis = redis
        self.auth = AuthService(db=db, redis=redis)

    async def login(self, data: MobileLoginRequest) -> MobileAuthData:
        user = await self.auth.get_user_by_email(data.email)
        if (
            user is None
            or user.password_hash is None
            or not verify_password(data.password, user.password_hash)
        ):
            raise ApiError(ErrorCode.UNAUTHORIZED, "Invalid login credentials")
        if not user.is_active:
            raise ApiError(ErrorCode.FORBIDDEN, "Account is disabled")

        membership = await self._membership(user, data.tenant_slug)
        if data.tenant_slug and membership is None:
            raise ApiError(ErrorCode.FORBIDDEN, "User does not belong to this gym")

        issued = await self.auth.issue_tokens(user)
        return MobileAuthData(user=self._user(user, membership), tokens=_tokens(issued))

    async def register(self, data: MobileRegisterRequest) -> MobileAuthData:
        if await self.auth.get_user_by_email(data.email) is not None:
            raise ApiError(ErrorCode.CONFLICT, "An account with this email already exists")

        user = await self.auth.create_user(data.email, data.password, data.name)

        membership: OrgMember | None = None
        if data.tenant_slug:
            result = await self.db.execute(
                select(Organization).where(Organization.slug == data.tenant_slug)
            )
            org = result.scalar_one_or_none()
            if org is None:
                raise ApiError(ErrorCode.NOT_FOUND, "Gym not found")
            membership = OrgMember(org_id=org.id, user_id=user.id, role=AppRole.client)
            self.db.add(membership)
            await self.db.flush()

        issued = await self.auth.issue_tokens(user)
        return MobileAuthData(user=self._user(user, membership), tokens=_tokens(issued))

    async def refresh(self, refresh_token: str) -> MobileTokens:
        try:
            _, issued = await self.auth.rotate_refresh_token(refresh_token)
        except HTTPException:
            raise ApiError(ErrorCode.EXPIRED_TOKEN, "Refresh token is invalid or expired")
        return _tokens(issued)

    async def me(self, user: User) -> MobileUser:
        return self._user(user, await self._membership(user, None))

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    async def _membership(self, user: User, tenant_slug: str | None) -> OrgMember | None:
        """The user's role row in ``tenant_slug``, or their oldest one when no slug is given."""
        stmt = select(OrgMember).where(OrgMember.user_id == user.id)
        if tenant_slug:
            stmt = stmt.join(Organization, OrgMember.org_id == Organization.id).where(
                Organization.slug == tenant_slug
            )
        result = await self.db.execute(stmt.order_by(OrgMember.joined_at).limit(1))
        return result.scalar_one_or_none()

    @staticmethod
    def _user(user: User, membership: OrgMember | None) -> MobileUser:
        return MobileUser(
            id=user.id,
            email=user.email,
            name=user.display_name,
            tenant_id=membership.org_id if membership else None,
            role=membership.role.value if membership else None,
            created_at=user.created_at,
            avatar_url=user.avatar_url,
        )
