"""
Authentication endpoints for the web dashboard.

Register, login, logout, token refresh, password reset, me, and the
invitation accept flow.
"""

from __future__ import annotations

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, HTTPException, Request, status
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_current_user, get_optional_user, get_redis
from app.core.security import decode_access_token
from app.models.user import User
from app.schemas.auth import (
    ForgotPasswordRequest,
    InvitationAcceptRequest,
    InvitationInfoResponse,
    LoginRequest,
    LogoutRequest,
    MeResponse,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
)
from app.schemas.organization import OrganizationResponse
from app.services.auth_service import AuthService
from app.services.organization_service import OrganizationService

router = APIRouter()


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> AuthService:
    return AuthService(db=db, redis=redis)


def get_org_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> OrganizationService:
    return OrganizationService(db=db, redis=redis)


# ---------------------------------------------------------------------------
# Register / login / refresh
# ---------------------------------------------------------------------------

@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def register(
    data: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """
    Create an account and sign it in.

    - Email must be globally unique
    - Password: min 8 chars with at least 1 number
    """
    return await service.register(data)


@router.post("/login", response_model=TokenResponse, summary="Login with email and password")
async def login(
    data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    return await service.login(data)


@router.post("/refresh", response_model=TokenResponse, summary="Refresh access token")
async def refresh(
    data: RefreshRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Refresh tokens are single-use; every call returns a new pair."""
    return await service.refresh(data.refresh_token)


# ---------------------------------------------------------------------------
# Logout
# ---------------------------------------------------------------------------

@router.post("/logout", status_code=status.HTTP_200_OK, summary="Logout and revoke tokens")
async def logout(
    data: LogoutRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> None:
    """
    Revoke the session.

    - Blacklists the current access token JTI in Redis
    - Deletes the refresh token from Redis
    """
    access_token = request.headers.get("Authorization", "").replace("Bearer ", "")
    try:
        jti: str = decode_access_token(access_token).get("jti", "")
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "INVALID_TOKEN", "message": "Could not decode access token"},
        )

    await service.logout(access_token_jti=jti, refresh_token=data.refresh_token)


# ---------------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------------

@router.post(
    "/forgot-password",
    status_code=status.HTTP_200_OK,
    summary="Request a password reset email",
)
async def forgot_password(
    data: ForgotPasswordRequest,
    service: AuthService = Depends(get_auth_service),
) -> None:
    """Responds the same whether or not the email exists."""
    await service.forgot_password(data.email)


@router.post(
    "/reset-password",
    status_code=status.HTTP_200_OK,
    summary="Reset password using token",
)
async def reset_password(
    data: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service),
) -> None:
    await service.reset_password(data.token, data.new_password)


# ---------------------------------------------------------------------------
# Me
# ---------------------------------------------------------------------------

@router.get("/me", response_model=MeResponse, summary="Get current user profile")
async def get_me(
    current_user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> MeResponse:
    """Profile plus every gym the user belongs to, with role."""
    return await service.get_me(current_user)


# ---------------------------------------------------------------------------
# Invitations
# ---------------------------------------------------------------------------

@router.get(
    "/invitations/{token}",
    response_model=InvitationInfoResponse,
    summary="Get invitation details",
)
async def get_invitation(
    token: str,
    service: OrganizationService = Depends(get_org_service),
) -> InvitationInfoResponse:
    """Public: shows which gym and role an invitation grants."""
    return await service.get_invitation_info(token)


@router.post(
    "/invitations/{token}/accept",
    response_model=OrganizationResponse,
    summary="Accept an invitation",
)
async def accept_invitation(
    token: str,
    data: InvitationAcceptRequest | None = None,
    current_user: User | None = Depends(get_optional_user),
    service: OrganizationService = Depends(get_org_service),
) -> OrganizationResponse:
    """
    Join the inviting gym with the invited role.

    Without a bearer token the body's display_name and password create
    the account for the invited email.
    """
    return await service.accept_invitation(token, current_user, data or InvitationAcceptRequest())
