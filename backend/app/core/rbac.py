"""
Role-based access control.

Static role -> permission table and the pure helper functions used by
route dependencies, navigation filtering and view resolution.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable


class AppRole(str, enum.Enum):
    """Role of a user inside an organization."""

    super_admin = "super_admin"
    admin = "admin"
    assistant = "assistant"
    trainer = "trainer"
    nutritionist = "nutritionist"
    client = "client"


class Permission(str, enum.Enum):
    """Every permission known to the application."""

    # Dashboards
    view_admin_dashboard = "view_admin_dashboard"
    view_client_dashboard = "view_client_dashboard"
    view_trainer_dashboard = "view_trainer_dashboard"

    # Gym settings
    manage_gym_settings = "manage_gym_settings"
    manage_gym_branding = "manage_gym_branding"

    # Finances
    view_gym_finances = "view_gym_finances"
    manage_gym_finances = "manage_gym_finances"
    view_reports = "view_reports"

    # Plans
    view_plans = "view_plans"
    manage_plans = "manage_plans"

    # Members
    view_members = "view_members"
    manage_members = "manage_members"
    invite_members = "invite_members"
    view_any_member_profile = "view_any_member_profile"

    # Classes
    view_classes = "view_classes"
    manage_classes = "manage_classes"
    manage_class_templates = "manage_class_templates"

    # Exercises / routines
    view_exercises = "view_exercises"
    manage_exercises = "manage_exercises"
    view_any_member_routines = "view_any_member_routines"
    manage_any_member_routines = "manage_any_member_routines"
    assign_routines = "assign_routines"

    # Member metrics, notes, reports
    view_any_member_metrics = "view_any_member_metrics"
    manage_any_member_metrics = "manage_any_member_metrics"
    view_any_member_notes = "view_any_member_notes"
    manage_any_member_notes = "manage_any_member_notes"
    view_any_member_reports = "view_any_member_reports"
    manage_any_member_reports = "manage_any_member_reports"

    # Check-ins
    view_check_ins = "view_check_ins"
    manage_check_ins = "manage_check_ins"
    perform_check_in = "perform_check_in"

    # Bookings
    view_any_bookings = "view_any_bookings"
    manage_any_bookings = "manage_any_bookings"

    # Own data (client self-service)
    view_own_member_profile = "view_own_member_profile"
    edit_own_member_profile = "edit_own_member_profile"
    view_own_routines = "view_own_routines"
    view_own_metrics = "view_own_metrics"
    view_own_reports = "view_own_reports"
    view_own_bookings = "view_own_bookings"
    manage_own_bookings = "manage_own_bookings"

    # Staff
    view_staff = "view_staff"
    manage_staff = "manage_staff"

    # Platform
    view_all_organizations = "view_all_organizations"
    manage_all_organizations = "manage_all_organizations"


P = Permission

STAFF_ROLES: frozenset[AppRole] = frozenset(r for r in AppRole if r is not AppRole.client)
ADMIN_ROLES: frozenset[AppRole] = frozenset({AppRole.super_admin, AppRole.admin})
ASSIGNABLE_ROLES: tuple[AppRole, ...] = tuple(r for r in AppRole if r is not AppRole.super_admin)

# ---------------------------------------------------------------------------
# Role -> permission table
# ---------------------------------------------------------------------------

_DASHBOARDS = (P.view_admin_dashboard, P.view_client_dashboard, P.view_trainer_dashboard)

_OWN_DATA = (
    P.view_own_member_profile,
    P.edit_own_member_profile,
    P.view_own_routines,
    P.view_own_metrics,
    P.view_own_reports,
    P.view_own_bookings,
    P.manage_own_bookings,
)

_PLATFORM = (P.view_all_organizations, P.manage_all_organizations)

ROLE_PERMISSIONS: dict[AppRole, frozenset[Permission]] = {
    AppRole.super_admin: frozenset(Permission),
    AppRole.admin: frozenset(p for p in Permission if p not in _PLATFORM),
    AppRole.assistant: frozenset(
        {
            *_DASHBOARDS,
            P.view_reports,
            P.view_plans,
            P.view_members,
            P.manage_members,
            P.invite_members,
            P.view_any_member_profile,
            P.view_classes,
            P.manage_classes,
            P.manage_class_templates,
            P.view_exercises,
            P.manage_exercises,
            P.view_any_member_routines,
            P.manage_any_member_routines,
            P.assign_routines,
            P.view_any_member_metrics,
            P.manage_any_member_metrics,
            P.view_any_member_notes,
            P.manage_any_member_notes,
            P.view_any_member_reports,
            P.manage_any_member_reports,
            P.view_check_ins,
            P.manage_check_ins,
            P.perform_check_in,
            P.view_any_bookings,
            P.manage_any_bookings,
            *_OWN_DATA,
            P.view_staff,
        }
    ),
    AppRole.trainer: frozenset(
        {
            *_DASHBOARDS,
            P.view_members,
            P.view_any_member_profile,
            P.view_classes,
            P.manage_classes,
            P.view_exercises,
            P.manage_exercises,
            P.view_any_member_routines,
            P.manage_any_member_routines,
            P.assign_routines,
            P.view_any_member_metrics,
            P.manage_any_member_metrics,
            P.view_any_member_notes,
            P.manage_any_member_notes,
            P.view_any_member_reports,
            P.perform_check_in,
            *_OWN_DATA,
        }
    ),
    AppRole.nutritionist: frozenset(
        {
            *_DASHBOARDS,
            P.view_members,
            P.view_any_member_profile,
            P.view_classes,
            P.view_exercises,
            P.view_any_member_routines,
            P.view_any_member_metrics,
            P.manage_any_member_metrics,
            P.view_any_member_notes,
            P.manage_any_member_notes,
            P.view_any_member_reports,
            P.manage_any_member_reports,
            *_OWN_DATA,
        }
    ),
    AppRole.client: frozenset(
        {
            P.view_client_dashboard,
            P.view_classes,
            P.perform_check_in,
            *_OWN_DATA,
        }
    ),
}

# ---------------------------------------------------------------------------
# Display metadata
# ---------------------------------------------------------------------------

ROLE_LABELS: dict[AppRole, str] = {
    AppRole.super_admin: "Super Administrador",
    AppRole.admin: "Administrador",
    AppRole.assistant: "Asistente",
    AppRole.trainer: "Entrenador",
    AppRole.nutritionist: "Nutricionista",
    AppRole.client: "Cliente",
}

ROLE_DESCRIPTIONS: dict[AppRole, str] = {
    AppRole.super_admin: "Acceso total a la plataforma y a todas las organizaciones",
    AppRole.admin: "Acceso completo al gimnasio: configuracion, finanzas y personal",
    AppRole.assistant: "Gestiona miembros, clases, reservas y check-ins",
    AppRole.trainer: "Gestiona clases, rutinas y progreso de los miembros",
    AppRole.nutritionist: "Gestiona metricas, notas y reportes de los miembros",
    AppRole.client: "Acceso a su perfil, reservas y rutinas asignadas",
}

PERMISSION_GROUPS: dict[str, tuple[Permission, ...]] = {
    "Dashboards": _DASHBOARDS,
    "Gimnasio": (P.manage_gym_settings, P.manage_gym_branding),
    "Finanzas": (P.view_gym_finances, P.manage_gym_finances, P.view_reports),
    "Planes": (P.view_plans, P.manage_plans),
    "Miembros": (P.view_members, P.manage_members, P.invite_members, P.view_any_member_profile),
    "Clases": (P.view_classes, P.manage_classes, P.manage_class_templates),
    "Entrenamiento": (
        P.view_exercises,
        P.manage_exercises,
        P.view_any_member_routines,
        P.manage_any_member_routines,
        P.assign_routines,
    ),
    "Seguimiento": (
        P.view_any_member_metrics,
        P.manage_any_member_metrics,
        P.view_any_member_notes,
        P.manage_any_member_notes,
        P.view_any_member_reports,
        P.manage_any_member_reports,
    ),
    "Check-in": (P.view_check_ins, P.manage_check_ins, P.perform_check_in),
    "Reservas": (P.view_any_bookings, P.manage_any_bookings),
    "Datos propios": _OWN_DATA,
    "Personal": (P.view_staff, P.manage_staff),
    "Plataforma": _PLATFORM,
}

# ---------------------------------------------------------------------------
# Role mapping
# ---------------------------------------------------------------------------

_LEGACY_ROLE_MAP: dict[str, AppRole] = {
    "owner": AppRole.admin,
    "admin": AppRole.admin,
    "instructor": AppRole.trainer,
    "member": AppRole.client,
}


def map_legacy_role(role: str | AppRole | None) -> AppRole:
    """
    Resolve any stored role string to an AppRole.

    Legacy values (owner, instructor, member) are translated, current
    values map to themselves and anything unknown falls back to client.
    """
    if isinstance(role, AppRole):
        return role
    if not role:
        return AppRole.client
    value = role.strip().lower()
    if value in _LEGACY_ROLE_MAP:
        return _LEGACY_ROLE_MAP[value]
    try:
        return AppRole(value)
    except ValueError:
        return AppRole.client


def map_to_db_role(role: AppRole | str) -> str:
    """Inverse of map_legacy_role for storage; current roles are stored as-is."""
    return map_legacy_role(role).value


# ---------------------------------------------------------------------------
# Role checks
# ---------------------------------------------------------------------------

def has_role(role: AppRole | str | None, expected: AppRole) -> bool:
    return map_legacy_role(role) is expected


def has_any_role(role: AppRole | str | None, expected: Iterable[AppRole]) -> bool:
    return map_legacy_role(role) in set(expected)


def is_super_admin(role: AppRole | str | None) -> bool:
    return has_role(role, AppRole.super_admin)


def is_admin(role: AppRole | str | None) -> bool:
    return map_legacy_role(role) in ADMIN_ROLES


def is_staff(role: AppRole | str | None) -> bool:
    return map_legacy_role(role) in STAFF_ROLES


def is_client(role: AppRole | str | None) -> bool:
    return has_role(role, AppRole.client)


# ---------------------------------------------------------------------------
# Permission checks
# ---------------------------------------------------------------------------

def get_role_permissions(role: AppRole | str | None) -> frozenset[Permission]:
    return ROLE_PERMISSIONS[map_legacy_role(role)]


def has_permission(role: AppRole | str | None, permission: Permission) -> bool:
    return permission in get_role_permissions(role)


def has_all_permissions(role: AppRole | str | None, permissions: Iterable[Permission]) -> bool:
    granted = get_role_permissions(role)
    return all(p in granted for p in permissions)


def has_any_permission(role: AppRole | str | None, permissions: Iterable[Permission]) -> bool:
    granted = get_role_permissions(role)
    return any(p in granted for p in permissions)


def can_access_admin_dashboard(role: AppRole | str | None) -> bool:
    return has_permission(role, P.view_admin_dashboard)


def can_access_client_dashboard(role: AppRole | str | None) -> bool:
    return has_permission(role, P.view_client_dashboard)


MANAGE_PERMISSION_BY_RESOURCE: dict[str, Permission] = {
    "members": P.manage_members,
    "plans": P.manage_plans,
    "classes": P.manage_classes,
    "exercises": P.manage_exercises,
    "settings": P.manage_gym_settings,
    "staff": P.manage_staff,
}


def can_manage(role: AppRole | str | None, resource: str) -> bool:
    """Whether the role may manage a resource; unknown resources are never manageable."""
    permission = MANAGE_PERMISSION_BY_RESOURCE.get(resource)
    return permission is not None and has_permission(role, permission)


def can_view_finances(role: AppRole | str | None) -> bool:
    return has_permission(role, P.view_gym_finances)


def can_manage_member_workouts(role: AppRole | str | None) -> bool:
    return has_permission(role, P.manage_any_member_routines)


def can_manage_member_metrics(role: AppRole | str | None) -> bool:
    return has_permission(role, P.manage_any_member_metrics)


def sorted_permissions(permissions: Iterable[Permission]) -> list[str]:
    """Permission values in declaration order, for stable API output."""
    granted = set(permissions)
    return [p.value for p in Permission if p in granted]


def permission_groups() -> list[tuple[str, list[str]]]:
    """Permissions grouped by area for role editors, in display order."""
    return [(name, [p.value for p in perms]) for name, perms in PERMISSION_GROUPS.items()]
