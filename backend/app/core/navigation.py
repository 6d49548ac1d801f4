"""
Dashboard navigation config and permission filtering.

The config is static; ``filter_navigation`` returns a filtered copy for a
given role or permission set and never mutates the config.
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, Field

from app.core.rbac import AppRole, Permission, get_role_permissions


class NavItem(BaseModel):
    """A navigation entry; entries with children render as a group."""

    id: str
    title: str
    href: str | None = None
    icon: str | None = None
    permission: Permission | None = None
    any_permission: list[Permission] | None = None
    children: list[NavItem] | None = None

    model_config = {"frozen": True}


class NavigationResponse(BaseModel):
    main_navigation: list[NavItem] = Field(default_factory=list)
    bottom_navigation: list[NavItem] = Field(default_factory=list)


P = Permission

MAIN_NAVIGATION: tuple[NavItem, ...] = (
    NavItem(
        id="dashboard",
        title="Dashboard",
        href="/dashboard",
        icon="layout-dashboard",
        permission=P.view_admin_dashboard,
    ),
    NavItem(
        id="members-group",
        title="Miembros",
        icon="users",
        children=[
            NavItem(id="members", title="Miembros", href="/dashboard/members", icon="users", permission=P.view_members),
            NavItem(id="plans", title="Planes", href="/dashboard/plans", icon="credit-card", permission=P.view_plans),
            NavItem(
                id="check-in",
                title="Check-in",
                href="/dashboard/check-in",
                icon="scan-line",
                any_permission=[P.view_check_ins, P.manage_check_ins],
            ),
            NavItem(id="groups", title="Grupos", href="/dashboard/members/groups", icon="users-round", permission=P.manage_members),
        ],
    ),
    NavItem(
        id="classes-group",
        title="Clases",
        icon="calendar",
        permission=P.view_classes,
        children=[
            NavItem(id="classes", title="Clases", href="/dashboard/classes", icon="calendar", permission=P.view_classes),
            NavItem(
                id="templates",
                title="Plantillas",
                href="/dashboard/templates",
                icon="calendar-range",
                permission=P.manage_class_templates,
            ),
        ],
    ),
    NavItem(
        id="training-group",
        title="Entrenamiento",
        icon="dumbbell",
        any_permission=[P.view_exercises, P.view_any_member_routines],
        children=[
            NavItem(id="exercises", title="Ejercicios", href="/dashboard/exercises", icon="dumbbell", permission=P.view_exercises),
            NavItem(
                id="routines",
                title="Rutinas",
                href="/dashboard/routines",
                icon="clipboard-list",
                permission=P.view_any_member_routines,
            ),
        ],
    ),
    NavItem(
        id="finances",
        title="Finanzas",
        href="/dashboard/finances",
        icon="wallet",
        permission=P.view_gym_finances,
    ),
    NavItem(
        id="reports",
        title="Reportes",
        href="/dashboard/reports",
        icon="bar-chart",
        permission=P.view_reports,
    ),
)

BOTTOM_NAVIGATION: tuple[NavItem, ...] = (
    NavItem(
        id="settings",
        title="Configuracion",
        href="/dashboard/settings",
        icon="settings",
        any_permission=[P.manage_gym_settings, P.view_staff],
    ),
)


def is_item_visible(item: NavItem, permissions: frozenset[Permission] | set[Permission]) -> bool:
    """Check an entry's own rule, ignoring its children."""
    if item.permission is not None:
        return item.permission in permissions
    if item.any_permission:
        return any(p in permissions for p in item.any_permission)
    return True


def filter_items(items: Iterable[NavItem], permissions: frozenset[Permission] | set[Permission]) -> list[NavItem]:
    visible: list[NavItem] = []
    for item in items:
        if not is_item_visible(item, permissions):
            continue
        if item.children is not None:
            children = filter_items(item.children, permissions)
            if not children:
                continue
            item = item.model_copy(update={"children": children})
        visible.append(item)
    return visible


def filter_navigation(
    role: AppRole | str | None = None,
    permissions: Iterable[Permission] | None = None,
) -> NavigationResponse:
    """
    Return the navigation visible to a role or explicit permission set.

    When both are given the explicit permissions win.
    """
    granted = frozenset(permissions) if permissions is not None else get_role_permissions(role)
    return NavigationResponse(
        main_navigation=filter_items(MAIN_NAVIGATION, granted),
        bottom_navigation=filter_items(BOTTOM_NAVIGATION, granted),
    )
