"""
Schemas for the caller-centric endpoints: permissions, roles, view
preferences and post-login redirect.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel

from app.core.rbac import AppRole
from app.core.views import PreferredView


class MyPermissionsResponse(BaseModel):
    role: AppRole
    role_label: str
    permissions: list[str]


class RoleInfo(BaseModel):
    role: AppRole
    label: str
    description: str
    permissions: list[str]


class PermissionGroup(BaseModel):
    name: str
    permissions: list[str]


class RolesResponse(BaseModel):
    roles: list[RoleInfo]
    permission_groups: list[PermissionGroup]


class ViewPreferencesResponse(BaseModel):
    role: AppRole
    has_admin_dashboard: bool
    has_client_dashboard: bool
    has_member_profile: bool
    can_switch_view: bool
    preferred_view: PreferredView


class ViewPreferenceUpdateRequest(BaseModel):
    preferred_view: PreferredView


class RedirectResponse(BaseModel):
    path: str
    reason: str
    org_slug: str | None = None
    org_id: UUID | None = None
