"""Admin permission catalogue and the DRF permission class enforcing it."""
from __future__ import annotations

from typing import Iterable, Optional, Tuple, Union

from rest_framework.permissions import BasePermission

from .auth_backends import has_permission
from .domain_admin import AdminPermission

MANAGE_REGISTRATIONS = "manage_registrations"
USERS_READ = "users_read"
MANAGE_CATEGORIES = "manage_categories"
CATEGORIES_READ = "categories_read"
PANCHAYATHS_READ = "panchayaths_read"
PANCHAYATHS_WRITE = "panchayaths_write"
ANNOUNCEMENTS_READ = "announcements_read"
ANNOUNCEMENTS_WRITE = "announcements_write"
ACCOUNTS_READ = "accounts_read"
ACCOUNTS_WRITE = "accounts_write"
MANAGE_REPORTS = "manage_reports"
REPORTS_READ = "reports_read"
MANAGE_USERS = "manage_users"
ADMIN_USERS_READ = "admin_users_read"

PERMISSION_CATALOGUE = {
    MANAGE_REGISTRATIONS: "Approve, reject, edit and delete registrations",
    USERS_READ: "View registrations",
    MANAGE_CATEGORIES: "Create and edit categories",
    CATEGORIES_READ: "View categories",
    PANCHAYATHS_READ: "View panchayaths",
    PANCHAYATHS_WRITE: "Create and edit panchayaths",
    ANNOUNCEMENTS_READ: "View announcements",
    ANNOUNCEMENTS_WRITE: "Create and edit announcements",
    ACCOUNTS_READ: "View cash accounts and transactions",
    ACCOUNTS_WRITE: "Manage cash accounts and transactions",
    MANAGE_REPORTS: "Verify payments and manage reports",
    REPORTS_READ: "View reports",
    MANAGE_USERS: "Manage admin users and permissions",
    ADMIN_USERS_READ: "View admin users",
}

Requirement = Union[str, Tuple[str, ...], None]


def crud_action_map(read: Union[str, Tuple[str, ...]], write: str, **extra: Requirement) -> dict:
    """Action map for a read/write viewset; holders of ``write`` may also read."""
    read_any = read if isinstance(read, tuple) else (read, write)
    return {
        "list": read_any,
        "retrieve": read_any,
        "create": write,
        "update": write,
        "partial_update": write,
        "destroy": write,
        **extra,
    }


def _as_tuple(required: Requirement) -> Tuple[str, ...]:
    if required is None:
        return ()
    if isinstance(required, str):
        return (required,)
    return tuple(required)


def allowed(session, required: Iterable[str]) -> bool:
    return any(has_permission(session, name) for name in required)


class HasAdminPermission(BasePermission):
    """Checks the permission names a view declares for the current action.

    Views set ``permission_action_map`` (action or lower-cased HTTP method ->
    permission name or tuple of names, any one of which suffices). Actions
    missing from the map are refused.
    """

    message = "You do not have permission to perform this action."

    def _required(self, request, view) -> Optional[Tuple[str, ...]]:
        mapping = getattr(view, "permission_action_map", None) or {}
        action = getattr(view, "action", None) or request.method.lower()
        if action not in mapping:
            return None
        return _as_tuple(mapping[action])

    def has_permission(self, request, view):
        user = request.user
        if not getattr(user, "is_authenticated", False):
            return False
        required = self._required(request, view)
        if required is None:
            return False
        if not required:
            return True
        return allowed(user, required)


def ensure_permission_catalogue() -> int:
    """Create missing catalogue permissions; returns how many were added."""
    created = 0
    for name, description in PERMISSION_CATALOGUE.items():
        _, was_created = AdminPermission.objects.get_or_create(
            name=name, defaults={"description": description, "is_active": True}
        )
        created += int(was_created)
    return created
