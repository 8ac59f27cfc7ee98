"""Admin identity and permission gate.

Admins are ``AdminUser`` rows, not Django auth users. ``login`` checks a
password and returns an ``AdminSession``; the session is carried in a JWT
whose claims hold only ``admin_id`` and ``admin_name``.
``AdminJWTAuthentication`` re-reads the admin and their permission set from
the database on every request, so a token never outlives a deactivation or
a permission change.
"""
from __future__ import annotations

import base64
import hmac
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from django.conf import settings
from django.contrib.auth.hashers import make_password
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken
from rest_framework_simplejwt.tokens import RefreshToken

from .domain_admin import AdminPermission, AdminUser, AdminUserPermission
from .exceptions import (
    AuthenticationError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    store_errors,
)

logger = logging.getLogger(__name__)

LEGACY_HASH_PREFIX = "$2b$10$"


@dataclass(frozen=True)
class AdminSession:
    """Authenticated admin as seen by views (``request.user``)."""

    admin_id: int
    admin_name: str
    permissions: frozenset = field(default_factory=frozenset)

    is_authenticated = True
    is_anonymous = False

    @property
    def pk(self) -> int:
        return self.admin_id

    @property
    def id(self) -> int:
        return self.admin_id

    def __str__(self) -> str:
        return self.admin_name


def has_permission(session: Optional[AdminSession], name: str) -> bool:
    if session is None:
        return False
    return name in getattr(session, "permissions", frozenset())


def is_bootstrap_admin(admin: AdminUser) -> bool:
    return admin.username == settings.REGISTRY_BOOTSTRAP_ADMIN


def _session_for(admin: AdminUser) -> AdminSession:
    return AdminSession(admin_id=admin.pk, admin_name=admin.username, permissions=admin.permission_names())


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------

def _legacy_encoding(password: str) -> Optional[str]:
    try:
        return LEGACY_HASH_PREFIX + base64.b64encode(password.encode("latin-1")).decode("ascii")
    except UnicodeEncodeError:
        return None


def _check_credential(admin: AdminUser, password: str) -> bool:
    stored = admin.password_hash or ""
    if stored.startswith(LEGACY_HASH_PREFIX):
        if not settings.REGISTRY_ACCEPT_LEGACY_PASSWORDS:
            return False
        expected = _legacy_encoding(password)
        if expected is None or not hmac.compare_digest(expected, stored):
            return False
        # upgrade the old reversible encoding on first successful use
        admin.set_password(password)
        admin.save(update_fields=["password_hash", "updated_at"])
        logger.info("Upgraded legacy password hash for admin %s", admin.username)
        return True
    return admin.check_password(password)


# ---------------------------------------------------------------------------
# Login / tokens
# ---------------------------------------------------------------------------

def login(username: str, password: str) -> AdminSession:
    """Authenticate an admin. Every failure raises the same ``AuthenticationError``."""
    username = (username or "").strip()
    if not username or not password:
        raise AuthenticationError()
    with store_errors("admin login"):
        admin = (
            AdminUser.objects.filter(username=username)
            .filter(Q(is_active=True) | Q(username=settings.REGISTRY_BOOTSTRAP_ADMIN))
            .first()
        )
        if admin is None:
            # same hashing cost as a real check so response time does not reveal the username
            make_password(password)
            raise AuthenticationError()
        if not _check_credential(admin, password):
            raise AuthenticationError()
        AdminUser.objects.filter(pk=admin.pk).update(last_login=timezone.now())
        session = _session_for(admin)
    logger.info("Admin %s logged in", admin.username)
    return session


def issue_tokens(session: AdminSession) -> Dict[str, str]:
    refresh = RefreshToken()
    refresh["admin_id"] = session.admin_id
    refresh["admin_name"] = session.admin_name
    return {"refresh": str(refresh), "access": str(refresh.access_token)}


def session_for_admin_id(admin_id) -> Optional[AdminSession]:
    admin = (
        AdminUser.objects.filter(pk=admin_id)
        .filter(Q(is_active=True) | Q(username=settings.REGISTRY_BOOTSTRAP_ADMIN))
        .first()
    )
    if admin is None:
        return None
    return _session_for(admin)


class AdminJWTAuthentication(JWTAuthentication):
    """Bearer-token authentication resolving to an ``AdminSession``."""

    def get_user(self, validated_token):
        admin_id = validated_token.get("admin_id")
        if admin_id is None:
            raise InvalidToken("Token contained no recognizable admin identification")
        session = session_for_admin_id(admin_id)
        if session is None:
            raise AuthenticationFailed("Admin account is inactive or missing.", code="user_inactive")
        return session


# ---------------------------------------------------------------------------
# Admin user management
# ---------------------------------------------------------------------------

def _resolve_admin(admin_user) -> AdminUser:
    if isinstance(admin_user, AdminUser):
        return admin_user
    admin = AdminUser.objects.filter(pk=admin_user).first()
    if admin is None:
        raise NotFoundError(f"Admin user {admin_user} not found.")
    return admin


def set_permissions(admin_user, names: Iterable[str], granted_by: Optional[str] = None) -> frozenset:
    """Replace every grant of ``admin_user`` with exactly ``names``."""
    wanted = {n.strip() for n in names if n and n.strip()}
    with store_errors("set admin permissions"):
        admin = _resolve_admin(admin_user)
        with transaction.atomic():
            perms = list(AdminPermission.objects.filter(name__in=wanted, is_active=True))
            unknown = wanted - {p.name for p in perms}
            if unknown:
                raise ValidationError(f"Unknown permissions: {', '.join(sorted(unknown))}")
            AdminUserPermission.objects.filter(admin_user=admin).delete()
            AdminUserPermission.objects.bulk_create(
                [AdminUserPermission(admin_user=admin, permission=p, granted_by=granted_by) for p in perms]
            )
    logger.info("Permissions of %s set to %s by %s", admin.username, sorted(wanted), granted_by or "-")
    return frozenset(wanted)


def create_admin_user(
    username: str,
    password: str,
    *,
    full_name: str = "",
    email: str = "",
    is_active: bool = True,
    permissions: Optional[Iterable[str]] = None,
    created_by: Optional[str] = None,
) -> AdminUser:
    username = (username or "").strip()
    if not username:
        raise ValidationError("Username is required.")
    if not password:
        raise ValidationError("Password is required.")
    with store_errors("create admin user"):
        try:
            with transaction.atomic():
                admin = AdminUser(
                    username=username,
                    full_name=full_name or "",
                    email=email or "",
                    is_active=is_active,
                    created_by=created_by,
                )
                admin.set_password(password)
                admin.save()
                if permissions is not None:
                    set_permissions(admin, permissions, granted_by=created_by)
        except IntegrityError:
            raise ValidationError(f"Admin user '{username}' already exists.")
    logger.info("Admin user %s created by %s", username, created_by or "-")
    return admin


def update_admin_user(
    admin_user,
    *,
    username: Optional[str] = None,
    full_name: Optional[str] = None,
    email: Optional[str] = None,
    is_active: Optional[bool] = None,
    password: Optional[str] = None,
) -> AdminUser:
    with store_errors("update admin user"):
        admin = _resolve_admin(admin_user)
        bootstrap = is_bootstrap_admin(admin)
        if bootstrap and is_active is False:
            raise PermissionDeniedError("The main admin account cannot be deactivated.")
        if username is not None and username.strip() != admin.username:
            if bootstrap:
                raise PermissionDeniedError("The main admin account cannot be renamed.")
            if not username.strip():
                raise ValidationError("Username is required.")
            admin.username = username.strip()
        if full_name is not None:
            admin.full_name = full_name
        if email is not None:
            admin.email = email
        if is_active is not None:
            admin.is_active = is_active
        if password:
            admin.set_password(password)
        try:
            with transaction.atomic():
                admin.save()
        except IntegrityError:
            raise ValidationError(f"Admin user '{admin.username}' already exists.")
    logger.info("Admin user %s updated", admin.username)
    return admin


def delete_admin_user(admin_user) -> None:
    with store_errors("delete admin user"):
        admin = _resolve_admin(admin_user)
        if is_bootstrap_admin(admin):
            raise PermissionDeniedError("The main admin account cannot be deleted.")
        username = admin.username
        admin.delete()
    logger.info("Admin user %s deleted", username)
