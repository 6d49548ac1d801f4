"""
Gym (organization) endpoints.

Create and configure a gym, manage its staff and invitations, and the
caller's own permissions, navigation and view preferences inside it.
"""

from __future__ import annotations

from uuid import UUID

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_current_user, get_org_member, get_redis, require_permission
from app.core.navigation import NavigationResponse
from app.core.rbac import Permission
from app.models.org_member import OrgMember
from app.models.organization import Organization
from app.models.user import User
from app.schemas.me import MyPermissionsResponse, ViewPreferencesResponse, ViewPreferenceUpdateRequest
from app.schemas.organization import (
    BookingLimitsUpdateRequest,
    InvitationResponse,
    InvitationsListResponse,
    InviteRequest,
    OrganizationCreateRequest,
    OrganizationResponse,
    OrganizationUpdateRequest,
    StaffListResponse,
    StaffResponse,
    StaffRoleUpdateRequest,
    StartSubscriptionRequest,
)
from app.services.organization_service import OrganizationService
from app.services.view_service import ViewService

router = APIRouter()


def get_org_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> OrganizationService:
    return OrganizationService(db=db, redis=redis)


def get_view_service(
    db: AsyncSession = Depends(get_db),
    redis: aioredis.Redis = Depends(get_redis),
) -> ViewService:
    return ViewService(db=db, redis=redis)


# ---------------------------------------------------------------------------
# Gym
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=OrganizationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a gym",
)
async def create_organization(
    data: OrganizationCreateRequest,
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_org_service),
) -> OrganizationResponse:
    """
    Create a gym.

    - Slug must be globally unique
    - The creator becomes its admin
    """
    return await service.create_organization(data, current_user)


@router.get("/{slug}", response_model=OrganizationResponse, summary="Get gym by slug")
async def get_organization(
    org_and_member: tuple[Organization, OrgMember] = Depends(get_org_member),
) -> OrganizationResponse:
    org, _ = org_and_member
    return OrganizationResponse.model_validate(org)


@router.patch("/{slug}", response_model=OrganizationResponse, summary="Update gym settings")
async def update_organization(
    data: OrganizationUpdateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_gym_settings)
    ),
    service: OrganizationService = Depends(get_org_service),
) -> OrganizationResponse:
    org, _ = org_and_member
    return await service.update_organization(org, data)


@router.put(
    "/{slug}/booking-limits",
    response_model=OrganizationResponse,
    summary="Set the daily class limit per member",
)
async def update_booking_limits(
    data: BookingLimitsUpdateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_gym_settings)
    ),
    service: OrganizationService = Depends(get_org_service),
) -> OrganizationResponse:
    """``max_classes_per_day`` of null removes the limit."""
    org, _ = org_and_member
    return await service.update_booking_limits(org, data)


@router.post(
    "/{slug}/subscription",
    response_model=OrganizationResponse,
    summary="Start the gym's platform subscription",
)
async def start_subscription(
    data: StartSubscriptionRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_gym_settings)
    ),
    service: OrganizationService = Depends(get_org_service),
) -> OrganizationResponse:
    org, _ = org_and_member
    return await service.start_subscription(org, data.plan)


# ---------------------------------------------------------------------------
# Staff
# ---------------------------------------------------------------------------

@router.get("/{slug}/staff", response_model=StaffListResponse, summary="List staff")
async def list_staff(
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.view_staff)
    ),
    service: OrganizationService = Depends(get_org_service),
) -> StaffListResponse:
    org, _ = org_and_member
    return await service.list_staff(org.id)


@router.patch(
    "/{slug}/staff/{user_id}",
    response_model=StaffResponse,
    summary="Change a staff member's role",
)
async def update_staff_role(
    user_id: UUID,
    data: StaffRoleUpdateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_staff)
    ),
    service: OrganizationService = Depends(get_org_service),
) -> StaffResponse:
    """
    Change a role.

    - Your own role cannot be changed
    - super_admin cannot be granted
    """
    org, acting_member = org_and_member
    return await service.update_staff_role(org.id, user_id, data.role, acting_member)


@router.delete(
    "/{slug}/staff/{user_id}",
    status_code=status.HTTP_200_OK,
    summary="Remove a staff member",
)
async def remove_staff(
    user_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_staff)
    ),
    service: OrganizationService = Depends(get_org_service),
) -> dict:
    org, acting_member = org_and_member
    await service.remove_staff(org.id, user_id, acting_member)
    return {}


# ---------------------------------------------------------------------------
# Invitations
# ---------------------------------------------------------------------------

@router.post(
    "/{slug}/invitations",
    response_model=InvitationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invite a staff member",
)
async def invite_staff(
    data: InviteRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_staff)
    ),
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_org_service),
) -> InvitationResponse:
    """
    Invite someone by email with an assignable role.

    - Sends the invitation email via Celery
    - Token expires in 48 hours
    """
    org, _ = org_and_member
    return await service.invite_staff(org, data, current_user)


@router.get(
    "/{slug}/invitations",
    response_model=InvitationsListResponse,
    summary="List pending invitations",
)
async def list_invitations(
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_staff)
    ),
    service: OrganizationService = Depends(get_org_service),
) -> InvitationsListResponse:
    org, _ = org_and_member
    return await service.list_invitations(org.id)


@router.delete(
    "/{slug}/invitations/{invitation_id}",
    status_code=status.HTTP_200_OK,
    summary="Revoke a pending invitation",
)
async def revoke_invitation(
    invitation_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_permission(Permission.manage_staff)
    ),
    service: OrganizationService = Depends(get_org_service),
) -> dict:
    org, _ = org_and_member
    await service.revoke_invitation(org.id, invitation_id)
    return {}


# ---------------------------------------------------------------------------
# Me (inside this gym)
# ---------------------------------------------------------------------------

@router.get(
    "/{slug}/me/permissions",
    response_model=MyPermissionsResponse,
    summary="My role and permissions",
)
async def my_permissions(
    org_and_member: tuple[Organization, OrgMember] = Depends(get_org_member),
) -> MyPermissionsResponse:
    _, member = org_and_member
    return ViewService.my_permissions(member)


@router.get(
    "/{slug}/me/navigation",
    response_model=NavigationResponse,
    summary="Navigation visible to me",
)
async def my_navigation(
    org_and_member: tuple[Organization, OrgMember] = Depends(get_org_member),
) -> NavigationResponse:
    _, member = org_and_member
    return ViewService.navigation(member)


@router.get(
    "/{slug}/me/view-preferences",
    response_model=ViewPreferencesResponse,
    summary="Dashboards I can use",
)
async def get_view_preferences(
    org_and_member: tuple[Organization, OrgMember] = Depends(get_org_member),
    current_user: User = Depends(get_current_user),
    service: ViewService = Depends(get_view_service),
) -> ViewPreferencesResponse:
    org, member = org_and_member
    return await service.get_view_preferences(org, member, current_user)


@router.put(
    "/{slug}/me/view-preferences",
    response_model=ViewPreferencesResponse,
    summary="Choose dashboard or member view",
)
async def set_view_preferences(
    data: ViewPreferenceUpdateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(get_org_member),
    current_user: User = Depends(get_current_user),
    service: ViewService = Depends(get_view_service),
) -> ViewPreferencesResponse:
    """The member view requires a member profile in this gym (400 NO_MEMBER_PROFILE)."""
    org, member = org_and_member
    return await service.set_preferred_view(org, member, current_user, data.preferred_view)
