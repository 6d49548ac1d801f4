"""
Caller-centric views: permissions, roles, navigation, view preferences
and the post-login redirect.
"""

from __future__ import annotations

import logging

import redis.asyncio as aioredis
from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.navigation import NavigationResponse, filter_navigation
from app.core.rbac import (
    ROLE_DESCRIPTIONS,
    ROLE_LABELS,
    AppRole,
    get_role_permissions,
    permission_groups,
    sorted_permissions,
)
from app.core.views import (
    PreferredView,
    ViewPreferences,
    resolve_post_login_redirect,
    resolve_view_preferences,
)
from app.models.member import Member
from app.models.org_member import OrgMember
from app.models.organization import Organization
from app.models.user import User
from app.schemas.me import (
    MyPermissionsResponse,
    PermissionGroup,
    RedirectResponse,
    RoleInfo,
    RolesResponse,
    ViewPreferencesResponse,
)
from app.services.member_service import find_member_for_user

logger = logging.getLogger(__name__)


def _preferences_response(prefs: ViewPreferences) -> ViewPreferencesResponse:
    return ViewPreferencesResponse(
        role=prefs.role,
        has_admin_dashboard=prefs.has_admin_dashboard,
        has_client_dashboard=prefs.has_client_dashboard,
        has_member_profile=prefs.has_member_profile,
        can_switch_view=prefs.can_switch_view,
        preferred_view=prefs.preferred_view,
    )


class ViewService:
    def __init__(self, db: AsyncSession, redis: aioredis.Redis) -> None:
        self.db = db
        self.redis = redis

    # -----------------------------------------------------------------------
    # Permissions / roles / navigation
    # -----------------------------------------------------------------------

    @staticmethod
    def my_permissions(org_member: OrgMember) -> MyPermissionsResponse:
        return MyPermissionsResponse(
            role=org_member.role,
            role_label=ROLE_LABELS[org_member.role],
            permissions=sorted_permissions(get_role_permissions(org_member.role)),
        )

    @staticmethod
    def roles() -> RolesResponse:
        return RolesResponse(
            roles=[
                RoleInfo(
                    role=role,
                    label=ROLE_LABELS[role],
                    description=ROLE_DESCRIPTIONS[role],
                    permissions=sorted_permissions(get_role_permissions(role)),
                )
                for role in AppRole
            ],
            permission_groups=[
                PermissionGroup(name=name, permissions=perms) for name, perms in permission_groups()
            ],
        )

    @staticmethod
    def navigation(org_member: OrgMember) -> NavigationResponse:
        return filter_navigation(org_member.role)

    # -----------------------------------------------------------------------
    # View preferences
    # -----------------------------------------------------------------------

    async def get_view_preferences(
        self, org: Organization, org_member: OrgMember, user: User
    ) -> ViewPreferencesResponse:
        has_profile = await find_member_for_user(self.db, org.id, user) is not None
        prefs = resolve_view_preferences(org_member.role, has_profile, user.preferred_view)
        return _preferences_response(prefs)

    async def set_preferred_view(
        self, org: Organization, org_member: OrgMember, user: User, view: PreferredView
    ) -> ViewPreferencesResponse:
        has_profile = await find_member_for_user(self.db, org.id, user) is not None
        if view is PreferredView.member and not has_profile:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "code": "NO_MEMBER_PROFILE",
                    "message": "You need a member profile in this organization to use the member view",
                },
            )
        user.preferred_view = view.value
        await self.db.flush()
        prefs = resolve_view_preferences(org_member.role, has_profile, view)
        return _preferences_response(prefs)

    # -----------------------------------------------------------------------
    # Post-login redirect
    # -----------------------------------------------------------------------

    async def post_login_redirect(self, user: User) -> RedirectResponse:
        """
        Where the user lands after login.

        A user without any organization is recovered through a member row
        linked by profile id, then by email; the email match is linked and
        granted a client role.
        """
        result = await self.db.execute(
            select(OrgMember, Organization)
            .join(Organization, Organization.id == OrgMember.org_id)
            .where(OrgMember.user_id == user.id)
            .order_by(OrgMember.joined_at)
            .limit(1)
        )
        row = result.first()
        recovered = False

        if row is None:
            recovery = await self._recover_membership(user)
            if recovery is None:
                decision = resolve_post_login_redirect(None, subscription_started=False)
                return RedirectResponse(path=decision.path, reason=decision.reason)
            row, recovered = recovery, True

        org_member, org = row
        has_profile = await find_member_for_user(self.db, org.id, user) is not None
        prefs = resolve_view_preferences(org_member.role, has_profile, user.preferred_view)
        decision = resolve_post_login_redirect(
            prefs,
            subscription_started=org.subscription_started_at is not None,
            recovered_organization=recovered,
        )
        return RedirectResponse(
            path=decision.path, reason=decision.reason, org_slug=org.slug, org_id=org.id
        )

    async def _recover_membership(self, user: User) -> tuple[OrgMember, Organization] | None:
        member = (
            await self.db.execute(
                select(Member).where(Member.profile_id == user.id).order_by(Member.created_at).limit(1)
            )
        ).scalar_one_or_none()

        if member is None:
            member = (
                await self.db.execute(
                    select(Member)
                    .where(func.lower(Member.email) == user.email.lower())
                    .order_by(Member.created_at)
                    .limit(1)
                )
            ).scalar_one_or_none()
            if member is None:
                return None
            member.profile_id = user.id

        org = await self.db.get(Organization, member.org_id)
        if org is None:
            return None

        org_member = OrgMember(org_id=org.id, user_id=user.id, role=AppRole.client)
        self.db.add(org_member)
        await self.db.flush()
        logger.info("Recovered membership of user %s in org %s through member %s", user.id, org.id, member.id)
        return org_member, org
