"""
Dashboard navigation filtering.
"""

from app.core.navigation import MAIN_NAVIGATION, NavItem, filter_items, filter_navigation
from app.core.rbac import AppRole, Permission


def _ids(items: list[NavItem]) -> list[str]:
    return [item.id for item in items]


def _child_ids(items: list[NavItem], group_id: str) -> list[str]:
    group = next(item for item in items if item.id == group_id)
    return _ids(group.children or [])


def test_admin_sees_everything():
    nav = filter_navigation(AppRole.admin)
    assert _ids(nav.main_navigation) == [item.id for item in MAIN_NAVIGATION]
    assert _ids(nav.bottom_navigation) == ["settings"]


def test_client_sees_no_dashboard_navigation():
    nav = filter_navigation(AppRole.client)
    assert "dashboard" not in _ids(nav.main_navigation)
    assert "finances" not in _ids(nav.main_navigation)
    assert nav.bottom_navigation == []


def test_trainer_groups_are_trimmed_to_permitted_children():
    nav = filter_navigation(AppRole.trainer)
    ids = _ids(nav.main_navigation)
    assert "finances" not in ids
    assert "reports" not in ids
    assert _child_ids(nav.main_navigation, "members-group") == ["members"]
    assert _child_ids(nav.main_navigation, "classes-group") == ["classes"]


def test_group_without_visible_children_is_dropped():
    nav = filter_navigation(permissions=[Permission.view_admin_dashboard])
    assert _ids(nav.main_navigation) == ["dashboard"]


def test_any_permission_rule():
    nav = filter_navigation(permissions=[Permission.manage_check_ins])
    assert _ids(nav.main_navigation) == ["members-group"]
    assert _child_ids(nav.main_navigation, "members-group") == ["check-in"]


def test_explicit_permissions_override_role():
    nav = filter_navigation(role=AppRole.admin, permissions=[])
    assert nav.main_navigation == []
    assert nav.bottom_navigation == []


def test_filtering_does_not_mutate_config():
    before = [item.model_copy(deep=True) for item in MAIN_NAVIGATION]
    filter_items(MAIN_NAVIGATION, frozenset({Permission.view_members}))
    assert list(MAIN_NAVIGATION) == before
