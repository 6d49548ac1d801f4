"""
Organization business logic.

Handles gym creation and settings, staff management and invitations.
All queries scoped by org_id.
"""

from __future__ import annotations

import secrets
from datetime import timedelta
from uuid import UUID

import redis.asyncio as aioredis
from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import as_utc, utcnow
from app.core.config import settings
from app.core.rbac import ASSIGNABLE_ROLES, AppRole
from app.core.security import hash_password
from app.models.invitation import Invitation
from app.models.org_member import OrgMember
from app.models.organization import PLAN_MEMBER_LIMITS, Organization, SubscriptionPlan
from app.models.user import User
from app.schemas.auth import InvitationAcceptRequest, InvitationInfoResponse
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
)

INVITATION_TTL = timedelta(hours=48)


def _staff_response(member: OrgMember, user: User) -> StaffResponse:
    return StaffResponse(
        id=member.id,
        user_id=member.user_id,
        email=user.email,
        display_name=user.display_name,
        avatar_url=user.avatar_url,
        role=member.role,
        joined_at=member.joined_at,
    )


def _invitation_response(invitation: Invitation) -> InvitationResponse:
    return InvitationResponse(
        id=invitation.id,
        org_id=invitation.org_id,
        email=invitation.email,
        role=invitation.role,
        token=invitation.token,
        expires_at=invitation.expires_at,
        created_at=invitation.created_at,
        is_expired=as_utc(invitation.expires_at) < utcnow(),
    )


class OrganizationService:
    """Handles all organization operations."""

    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self.db = db
        self.redis = redis

    # -----------------------------------------------------------------------
    # Create Organization
    # -----------------------------------------------------------------------

    async def create_organization(
        self, data: OrganizationCreateRequest, owner: User
    ) -> OrganizationResponse:
        """
        Create a new gym.

        - Validates slug uniqueness
        - Creates organization record
        - Assigns creator the admin role
        """
        await self._ensure_slug_free(data.slug)

        org = Organization(
            name=data.name,
            slug=data.slug,
            email=data.email,
            phone=data.phone,
            timezone=data.timezone,
            currency=data.currency.upper(),
            language=data.language,
        )
        self.db.add(org)
        await self.db.flush()

        self.db.add(OrgMember(org_id=org.id, user_id=owner.id, role=AppRole.admin))
        await self.db.flush()

        return OrganizationResponse.model_validate(org)

    # -----------------------------------------------------------------------
    # Update Organization
    # -----------------------------------------------------------------------

    async def update_organization(
        self, org: Organization, data: OrganizationUpdateRequest
    ) -> OrganizationResponse:
        changes = data.model_dump(exclude_unset=True)

        new_slug = changes.pop("slug", None)
        if new_slug is not None and new_slug != org.slug:
            await self._ensure_slug_free(new_slug)
            org.slug = new_slug

        if "currency" in changes and changes["currency"]:
            changes["currency"] = changes["currency"].upper()

        for field, value in changes.items():
            if value is None and field in ("name", "timezone", "currency", "language"):
                continue
            setattr(org, field, value)

        await self.db.flush()
        await self.db.refresh(org)
        return OrganizationResponse.model_validate(org)

    async def update_booking_limits(
        self, org: Organization, data: BookingLimitsUpdateRequest
    ) -> OrganizationResponse:
        """Set or clear the per-member daily class limit."""
        org.max_classes_per_day = data.max_classes_per_day
        await self.db.flush()
        await self.db.refresh(org)
        return OrganizationResponse.model_validate(org)

    async def start_subscription(
        self, org: Organization, plan: SubscriptionPlan
    ) -> OrganizationResponse:
        """
        Record the platform plan choice and apply its member limit.

        Re-selecting keeps the original start date.
        """
        org.subscription_plan = plan
        org.max_members = PLAN_MEMBER_LIMITS[plan]
        if org.subscription_started_at is None:
            org.subscription_started_at = utcnow()
        await self.db.flush()
        await self.db.refresh(org)
        return OrganizationResponse.model_validate(org)

    # -----------------------------------------------------------------------
    # Staff
    # -----------------------------------------------------------------------

    async def list_staff(self, org_id: UUID) -> StaffListResponse:
        """List everyone with a role in the organization, oldest first."""
        result = await self.db.execute(
            select(OrgMember, User)
            .join(User, OrgMember.user_id == User.id)
            .where(OrgMember.org_id == org_id)
            .order_by(OrgMember.joined_at)
        )
        staff = [_staff_response(member, user) for member, user in result.all()]
        return StaffListResponse(staff=staff, total=len(staff))

    async def update_staff_role(
        self,
        org_id: UUID,
        target_user_id: UUID,
        new_role: AppRole,
        acting_member: OrgMember,
    ) -> StaffResponse:
        """
        Change a staff member's role.

        - Nobody can change their own role
        - super_admin is never granted through this endpoint
        """
        if target_user_id == acting_member.user_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "CANNOT_CHANGE_OWN_ROLE", "message": "You cannot change your own role"},
            )

        if new_role not in ASSIGNABLE_ROLES:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "ROLE_NOT_ASSIGNABLE", "message": f"Role {new_role.value} cannot be assigned"},
            )

        target_member, target_user = await self._get_staff_row(org_id, target_user_id)

        if target_member.role is AppRole.super_admin and acting_member.role is not AppRole.super_admin:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "INSUFFICIENT_PERMISSION", "message": "Cannot change a super admin"},
            )

        target_member.role = new_role
        await self.db.flush()
        return _staff_response(target_member, target_user)

    async def remove_staff(
        self,
        org_id: UUID,
        target_user_id: UUID,
        acting_member: OrgMember,
    ) -> None:
        """Remove a user from the organization. Self-removal is rejected."""
        if target_user_id == acting_member.user_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "CANNOT_REMOVE_SELF", "message": "You cannot remove yourself"},
            )

        target_member, _ = await self._get_staff_row(org_id, target_user_id)

        if target_member.role is AppRole.super_admin and acting_member.role is not AppRole.super_admin:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "INSUFFICIENT_PERMISSION", "message": "Cannot remove a super admin"},
            )

        await self.db.delete(target_member)
        await self.db.flush()

    # -----------------------------------------------------------------------
    # Invitations
    # -----------------------------------------------------------------------

    async def invite_staff(
        self, org: Organization, data: InviteRequest, inviter: User
    ) -> InvitationResponse:
        """
        Create an invitation to join the gym with a role.

        - Rejects duplicates of a pending invitation
        - Rejects users that already have a role here
        - Queues invitation email via Celery
        """
        email = data.email.lower()

        existing_invite = await self.db.execute(
            select(Invitation).where(
                Invitation.org_id == org.id,
                Invitation.email == email,
                Invitation.accepted_at.is_(None),
                Invitation.expires_at > utcnow(),
            )
        )
        if existing_invite.scalar_one_or_none() is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "INVITE_EXISTS", "message": "A pending invitation already exists for this email"},
            )

        existing_member = await self.db.execute(
            select(OrgMember)
            .join(User, OrgMember.user_id == User.id)
            .where(OrgMember.org_id == org.id, User.email == email)
        )
        if existing_member.scalar_one_or_none() is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "ALREADY_MEMBER", "message": "User already belongs to this organization"},
            )

        invitation = Invitation(
            org_id=org.id,
            email=email,
            role=data.role,
            token=secrets.token_urlsafe(32),
            expires_at=utcnow() + INVITATION_TTL,
            created_by=inviter.id,
        )
        self.db.add(invitation)
        await self.db.flush()

        from app.workers.email_tasks import send_invitation_email
        send_invitation_email.delay(
            to_email=email,
            org_name=org.name,
            inviter_name=inviter.display_name,
            role=data.role.value,
            invitation_token=invitation.token,
            frontend_url=settings.FRONTEND_URL,
        )

        return _invitation_response(invitation)

    async def list_invitations(self, org_id: UUID) -> InvitationsListResponse:
        """Pending (not yet accepted) invitations."""
        result = await self.db.execute(
            select(Invitation)
            .where(Invitation.org_id == org_id, Invitation.accepted_at.is_(None))
            .order_by(Invitation.created_at.desc())
        )
        invitations = [_invitation_response(inv) for inv in result.scalars().all()]
        return InvitationsListResponse(invitations=invitations, total=len(invitations))

    async def revoke_invitation(self, org_id: UUID, invitation_id: UUID) -> None:
        result = await self.db.execute(
            select(Invitation).where(
                Invitation.id == invitation_id,
                Invitation.org_id == org_id,
            )
        )
        invitation = result.scalar_one_or_none()

        if invitation is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "INVITE_NOT_FOUND", "message": "Invitation not found"},
            )

        await self.db.delete(invitation)
        await self.db.flush()

    async def get_invitation_info(self, token: str) -> InvitationInfoResponse:
        invitation = await self._get_invitation(token)
        org = await self.db.get(Organization, invitation.org_id)
        return InvitationInfoResponse(
            email=invitation.email,
            org_name=org.name if org else "",
            org_slug=org.slug if org else "",
            role=invitation.role.value,
            expires_at=invitation.expires_at,
            is_expired=as_utc(invitation.expires_at) < utcnow(),
        )

    async def accept_invitation(
        self,
        token: str,
        current_user: User | None,
        data: InvitationAcceptRequest,
    ) -> OrganizationResponse:
        """
        Accept an invitation.

        - Logged-in users must hold the invited email
        - Anonymous callers create the account with the body's name and password
        - Adds the user to the organization with the invited role
        """
        invitation = await self._get_invitation(token)

        if invitation.accepted_at is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "INVITE_USED", "message": "Invitation has already been accepted"},
            )

        if as_utc(invitation.expires_at) < utcnow():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "INVITE_EXPIRED", "message": "Invitation has expired"},
            )

        user = current_user or await self._user_for_anonymous_accept(invitation, data)

        if user.email.lower() != invitation.email:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "EMAIL_MISMATCH", "message": "Invitation was sent to a different email address"},
            )

        existing_member = await self.db.execute(
            select(OrgMember).where(
                OrgMember.org_id == invitation.org_id,
                OrgMember.user_id == user.id,
            )
        )
        if existing_member.scalar_one_or_none() is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "ALREADY_MEMBER", "message": "You already belong to this organization"},
            )

        self.db.add(OrgMember(org_id=invitation.org_id, user_id=user.id, role=invitation.role))
        invitation.accepted_at = utcnow()
        await self.db.flush()

        org = await self.db.get(Organization, invitation.org_id)
        return OrganizationResponse.model_validate(org)

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    async def _ensure_slug_free(self, slug: str) -> None:
        existing = await self.db.execute(select(Organization).where(Organization.slug == slug))
        if existing.scalar_one_or_none() is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "SLUG_TAKEN", "message": "Organization slug is already taken"},
            )

    async def _get_staff_row(self, org_id: UUID, user_id: UUID) -> tuple[OrgMember, User]:
        result = await self.db.execute(
            select(OrgMember, User)
            .join(User, OrgMember.user_id == User.id)
            .where(OrgMember.org_id == org_id, OrgMember.user_id == user_id)
        )
        row = result.one_or_none()
        if row is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "STAFF_NOT_FOUND", "message": "Staff member not found"},
            )
        return row[0], row[1]

    async def _get_invitation(self, token: str) -> Invitation:
        result = await self.db.execute(select(Invitation).where(Invitation.token == token))
        invitation = result.scalar_one_or_none()
        if invitation is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "INVITE_NOT_FOUND", "message": "Invitation not found"},
            )
        return invitation

    async def _user_for_anonymous_accept(
        self, invitation: Invitation, data: InvitationAcceptRequest
    ) -> User:
        result = await self.db.execute(select(User).where(User.email == invitation.email))
        if result.scalar_one_or_none() is not None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"code": "LOGIN_REQUIRED", "message": "Log in to accept this invitation"},
            )
        if not data.password or not data.display_name:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "ACCOUNT_DETAILS_REQUIRED", "message": "display_name and password are required"},
            )
        user = User(
            email=invitation.email,
            password_hash=hash_password(data.password),
            display_name=data.display_name,
            email_verified=True,
        )
        self.db.add(user)
        await self.db.flush()
        return user
