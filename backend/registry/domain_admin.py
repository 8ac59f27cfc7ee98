"""Admin identities for the back office and their granted permissions.

These are separate from ``django.contrib.auth`` users: admins sign in with
their own credentials and carry a flat set of named permissions.
"""
from __future__ import annotations

from django.contrib.auth.hashers import check_password, make_password
from django.db import models

__all__ = ["AdminUser", "AdminPermission", "AdminUserPermission"]


class AdminUser(models.Model):
    username = models.CharField(max_length=150, unique=True)
    password_hash = models.CharField(max_length=255)
    full_name = models.CharField(max_length=255, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    is_active = models.BooleanField(default=True)
    last_login = models.DateTimeField(null=True, blank=True)
    created_by = models.CharField(max_length=150, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "admin_users"
        ordering = ["username"]

    def __str__(self) -> str:  # pragma: no cover - repr helper
        return self.username

    def set_password(self, raw_password: str) -> None:
        self.password_hash = make_password(raw_password)

    def check_password(self, raw_password: str) -> bool:
        return check_password(raw_password, self.password_hash)

    def permission_names(self) -> frozenset:
        return frozenset(
            self.granted_permissions.filter(permission__is_active=True).values_list("permission__name", flat=True)
        )


class AdminPermission(models.Model):
    name = models.CharField(max_length=100, unique=True)
    description = models.CharField(max_length=255, blank=True, default="")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "admin_permissions"
        ordering = ["name"]

    def __str__(self) -> str:  # pragma: no cover - repr helper
        return self.name


class AdminUserPermission(models.Model):
    admin_user = models.ForeignKey(AdminUser, on_delete=models.CASCADE, related_name="granted_permissions")
    permission = models.ForeignKey(AdminPermission, on_delete=models.CASCADE, related_name="grants")
    granted_by = models.CharField(max_length=150, null=True, blank=True)
    granted_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "admin_user_permissions"
        constraints = [
            models.UniqueConstraint(fields=["admin_user", "permission"], name="uniq_admin_user_permission"),
        ]

    def __str__(self) -> str:  # pragma: no cover - repr helper
        return f"{self.admin_user_id}:{self.permission_id}"
