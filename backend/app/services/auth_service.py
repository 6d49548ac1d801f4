"""
Authentication business logic.

Handles user registration, login, token refresh, logout, password reset.
All business logic lives here; routers only handle HTTP concerns.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

import redis.asyncio as aioredis
from fastapi import HTTPException, status
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.security import (
    access_token_ttl_seconds,
    blacklist_redis_key,
    create_access_token_with_expiry,
    create_password_reset_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    password_reset_redis_key,
    refresh_token_redis_key,
    verify_password,
)
from app.models.org_member import OrgMember
from app.models.organization import Organization
from app.models.user import User
from app.schemas.auth import (
    LoginRequest,
    MembershipSummary,
    MeResponse,
    RegisterRequest,
    TokenResponse,
)


@dataclass(frozen=True)
class IssuedTokens:
    access_token: str
    refresh_token: str
    expires_in: int
    expires_at: datetime

    def to_response(self) -> TokenResponse:
        return TokenResponse(
            access_token=self.access_token,
            refresh_token=self.refresh_token,
            expires_in=self.expires_in,
        )


class AuthService:
    """Handles all authentication operations."""

    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self.db = db
        self.redis = redis

    # -----------------------------------------------------------------------
    # Register
    # -----------------------------------------------------------------------

    async def create_user(self, email: str, password: str, display_name: str) -> User:
        """
        Create a user account.

        Raises 409 EMAIL_TAKEN when the email is already registered.
        """
        if await self.get_user_by_email(email) is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "EMAIL_TAKEN", "message": "Email is already registered"},
            )

        user = User(
            email=email.lower(),
            password_hash=hash_password(password),
            display_name=display_name,
            email_verified=False,
        )
        self.db.add(user)
        await self.db.flush()  # Get user.id without committing
        return user

    async def register(self, data: RegisterRequest) -> TokenResponse:
        """Register a new user and issue a token pair."""
        user = await self.create_user(data.email, data.password, data.display_name)
        tokens = await self.issue_tokens(user)
        return tokens.to_response()

    # -----------------------------------------------------------------------
    # Login
    # -----------------------------------------------------------------------

    async def authenticate(self, email: str, password: str) -> User:
        """
        Check email + password.

        Raises 401 for invalid credentials (never reveals which field is wrong).
        """
        user = await self.get_user_by_email(email)

        if user is None or user.password_hash is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"code": "INVALID_CREDENTIALS", "message": "Invalid email or password"},
            )

        if not verify_password(password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"code": "INVALID_CREDENTIALS", "message": "Invalid email or password"},
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "ACCOUNT_DISABLED", "message": "Account is disabled"},
            )

        return user

    async def login(self, data: LoginRequest) -> TokenResponse:
        user = await self.authenticate(data.email, data.password)
        tokens = await self.issue_tokens(user)
        return tokens.to_response()

    # -----------------------------------------------------------------------
    # Refresh
    # -----------------------------------------------------------------------

    async def rotate_refresh_token(self, refresh_token: str) -> tuple[User, IssuedTokens]:
        """
        Exchange a valid refresh token for a new token pair.

        - Validates refresh token JWT
        - Checks token exists in Redis
        - Rotates: deletes old refresh token, issues new pair
        """
        try:
            payload = decode_refresh_token(refresh_token)
        except JWTError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"code": "INVALID_TOKEN", "message": "Refresh token is invalid or expired"},
            )

        user_id: str = payload.get("sub", "")
        jti: str = payload.get("jti", "")

        redis_key = refresh_token_redis_key(user_id, jti)
        if not await self.redis.exists(redis_key):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"code": "TOKEN_REVOKED", "message": "Refresh token has been revoked"},
            )

        result = await self.db.execute(select(User).where(User.id == UUID(user_id)))
        user = result.scalar_one_or_none()

        if user is None or not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"code": "USER_NOT_FOUND", "message": "User not found or inactive"},
            )

        await self.redis.delete(redis_key)
        return user, await self.issue_tokens(user)

    async def refresh(self, refresh_token: str) -> TokenResponse:
        _, tokens = await self.rotate_refresh_token(refresh_token)
        return tokens.to_response()

    # -----------------------------------------------------------------------
    # Logout
    # -----------------------------------------------------------------------

    async def logout(self, access_token_jti: str, refresh_token: str) -> None:
        """
        Logout user by:
        - Blacklisting the access token JTI
        - Deleting the refresh token from Redis
        """
        await self.redis.setex(
            blacklist_redis_key(access_token_jti),
            access_token_ttl_seconds(),
            "1",
        )

        try:
            payload = decode_refresh_token(refresh_token)
        except JWTError:
            # Already expired refresh tokens have nothing left to revoke
            return
        await self.redis.delete(refresh_token_redis_key(payload.get("sub", ""), payload.get("jti", "")))

    # -----------------------------------------------------------------------
    # Forgot Password
    # -----------------------------------------------------------------------

    async def forgot_password(self, email: str) -> None:
        """
        Initiate password reset flow.

        Always returns successfully to prevent user enumeration.
        Queues email via Celery if user exists.
        """
        user = await self.get_user_by_email(email)
        if user is None:
            return

        token = create_password_reset_token()
        await self.redis.setex(password_reset_redis_key(token), 3600, str(user.id))

        from app.workers.email_tasks import send_password_reset_email
        send_password_reset_email.delay(
            to_email=user.email,
            reset_token=token,
            frontend_url=settings.FRONTEND_URL,
        )

    # -----------------------------------------------------------------------
    # Reset Password
    # -----------------------------------------------------------------------

    async def reset_password(self, token: str, new_password: str) -> None:
        """Complete password reset with a single-use token from Redis."""
        redis_key = password_reset_redis_key(token)
        user_id_str = await self.redis.get(redis_key)

        if user_id_str is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "INVALID_TOKEN", "message": "Reset token is invalid or expired"},
            )

        result = await self.db.execute(select(User).where(User.id == UUID(user_id_str)))
        user = result.scalar_one_or_none()

        if user is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "USER_NOT_FOUND", "message": "User not found"},
            )

        user.password_hash = hash_password(new_password)
        await self.db.flush()
        await self.redis.delete(redis_key)

    # -----------------------------------------------------------------------
    # Me
    # -----------------------------------------------------------------------

    async def get_me(self, user: User) -> MeResponse:
        """Return current user profile with the organizations it belongs to."""
        result = await self.db.execute(
            select(OrgMember, Organization)
            .join(Organization, OrgMember.org_id == Organization.id)
            .where(OrgMember.user_id == user.id)
            .order_by(OrgMember.joined_at)
        )
        organizations = [
            MembershipSummary(
                org_id=org.id,
                org_slug=org.slug,
                org_name=org.name,
                role=member.role.value,
            )
            for member, org in result.all()
        ]
        return MeResponse(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            avatar_url=user.avatar_url,
            email_verified=user.email_verified,
            preferred_view=user.preferred_view,
            created_at=user.created_at,
            organizations=organizations,
        )

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    async def get_user_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def issue_tokens(self, user: User) -> IssuedTokens:
        """
        Create and store an access + refresh token pair for a user.

        Stores refresh token JTI in Redis with TTL.
        """
        user_id = str(user.id)

        refresh_token, refresh_jti = create_refresh_token(user_id)
        access_token, expires_at = create_access_token_with_expiry(user_id)

        ttl_seconds = settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60
        await self.redis.setex(refresh_token_redis_key(user_id, refresh_jti), ttl_seconds, "1")

        return IssuedTokens(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=access_token_ttl_seconds(),
            expires_at=expires_at,
        )
