"""
View preferences and post-login routing.
"""

from app.core.rbac import AppRole
from app.core.views import (
    ADMIN_HOME,
    MEMBER_HOME,
    ONBOARDING,
    SELECT_PLAN,
    PreferredView,
    resolve_home_for_role,
    resolve_post_login_redirect,
    resolve_view_preferences,
)


def test_no_role_means_no_preferences():
    assert resolve_view_preferences(None, has_member_profile=True) is None


def test_admin_with_profile_can_switch():
    prefs = resolve_view_preferences(AppRole.admin, has_member_profile=True)
    assert prefs.has_admin_dashboard
    assert prefs.has_client_dashboard
    assert prefs.can_switch_view
    assert prefs.preferred_view is PreferredView.dashboard


def test_admin_without_profile_cannot_switch():
    prefs = resolve_view_preferences(AppRole.admin, has_member_profile=False)
    assert not prefs.can_switch_view


def test_client_cannot_switch():
    prefs = resolve_view_preferences(AppRole.client, has_member_profile=True)
    assert not prefs.has_admin_dashboard
    assert not prefs.can_switch_view


def test_unknown_preferred_view_falls_back_to_dashboard():
    prefs = resolve_view_preferences(AppRole.trainer, True, "kiosk")
    assert prefs.preferred_view is PreferredView.dashboard


# ---------------------------------------------------------------------------
# Home
# ---------------------------------------------------------------------------

def test_staff_preferring_member_view_lands_on_member_home():
    prefs = resolve_view_preferences(AppRole.trainer, True, PreferredView.member)
    decision = resolve_home_for_role(prefs)
    assert decision.path == MEMBER_HOME
    assert decision.reason == "preferred_member_view"


def test_member_preference_ignored_without_profile():
    prefs = resolve_view_preferences(AppRole.trainer, False, PreferredView.member)
    assert resolve_home_for_role(prefs).path == ADMIN_HOME


def test_client_lands_on_member_home():
    prefs = resolve_view_preferences(AppRole.client, False)
    decision = resolve_home_for_role(prefs)
    assert decision.path == MEMBER_HOME
    assert decision.reason == "client_dashboard"


# ---------------------------------------------------------------------------
# Post-login
# ---------------------------------------------------------------------------

def test_no_organization_goes_to_onboarding():
    decision = resolve_post_login_redirect(None, subscription_started=False)
    assert decision.path == ONBOARDING
    assert decision.reason == "no_organization"


def test_unstarted_subscription_goes_to_plan_selection():
    prefs = resolve_view_preferences(AppRole.admin, False)
    decision = resolve_post_login_redirect(prefs, subscription_started=False)
    assert decision.path == SELECT_PLAN


def test_recovered_membership_keeps_path_and_flags_reason():
    prefs = resolve_view_preferences(AppRole.client, True)
    decision = resolve_post_login_redirect(prefs, subscription_started=True, recovered_organization=True)
    assert decision.path == MEMBER_HOME
    assert decision.reason == "recovered_membership"


def test_recovered_membership_skips_plan_selection():
    prefs = resolve_view_preferences(AppRole.client, True)
    decision = resolve_post_login_redirect(prefs, subscription_started=False, recovered_organization=True)
    assert decision.path == MEMBER_HOME
    assert decision.reason == "recovered_membership"


def test_started_admin_goes_to_dashboard():
    prefs = resolve_view_preferences(AppRole.admin, False)
    decision = resolve_post_login_redirect(prefs, subscription_started=True)
    assert decision.path == ADMIN_HOME
    assert decision.reason == "admin_dashboard"
