"""
View preference and post-login routing rules.

Pure functions: callers load the user's role, organization state and
member-profile link, these decide what the user sees.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from app.core.rbac import AppRole, can_access_admin_dashboard, can_access_client_dashboard


class PreferredView(str, enum.Enum):
    dashboard = "dashboard"
    member = "member"


@dataclass(frozen=True)
class ViewPreferences:
    role: AppRole
    has_admin_dashboard: bool
    has_client_dashboard: bool
    has_member_profile: bool
    can_switch_view: bool
    preferred_view: PreferredView


@dataclass(frozen=True)
class RedirectDecision:
    path: str
    reason: str


ADMIN_HOME = "/dashboard"
MEMBER_HOME = "/member"
SELECT_PLAN = "/select-plan"
ONBOARDING = "/onboarding"


def resolve_view_preferences(
    role: AppRole | None,
    has_member_profile: bool,
    preferred_view: PreferredView | str | None = None,
) -> ViewPreferences | None:
    """
    Compute which views a user can reach.

    Returns None when the user has no organization (role is None).
    Switching is only offered to users with an admin dashboard who also
    have a member profile in the same organization.
    """
    if role is None:
        return None

    has_admin = can_access_admin_dashboard(role)
    has_client = can_access_client_dashboard(role)
    try:
        preferred = PreferredView(preferred_view) if preferred_view else PreferredView.dashboard
    except ValueError:
        preferred = PreferredView.dashboard

    return ViewPreferences(
        role=role,
        has_admin_dashboard=has_admin,
        has_client_dashboard=has_client,
        has_member_profile=has_member_profile,
        can_switch_view=has_admin and has_member_profile,
        preferred_view=preferred,
    )


def resolve_home_for_role(preferences: ViewPreferences) -> RedirectDecision:
    """Pick the landing page for a user who belongs to an active organization."""
    if preferences.has_admin_dashboard and preferences.has_client_dashboard:
        if preferences.has_member_profile and preferences.preferred_view is PreferredView.member:
            return RedirectDecision(MEMBER_HOME, "preferred_member_view")
        return RedirectDecision(ADMIN_HOME, "admin_dashboard")
    if preferences.has_admin_dashboard:
        return RedirectDecision(ADMIN_HOME, "admin_dashboard")
    if preferences.has_client_dashboard:
        return RedirectDecision(MEMBER_HOME, "client_dashboard")
    return RedirectDecision(ADMIN_HOME, "default")


def resolve_post_login_redirect(
    preferences: ViewPreferences | None,
    subscription_started: bool,
    recovered_organization: bool = False,
) -> RedirectDecision:
    """
    Decide where to send a user right after login.

    ``preferences`` is None when no organization could be found, even after
    attempting to recover one through a member record.
    """
    if preferences is None:
        return RedirectDecision(ONBOARDING, "no_organization")
    # A membership recovered through a member row skips plan selection
    if recovered_organization:
        return RedirectDecision(resolve_home_for_role(preferences).path, "recovered_membership")
    if not subscription_started:
        return RedirectDecision(SELECT_PLAN, "plan_selection")
    return resolve_home_for_role(preferences)
