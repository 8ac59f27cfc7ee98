"""Admin user and permission management endpoints."""
from __future__ import annotations

import logging

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .auth_backends import create_admin_user, delete_admin_user, set_permissions, update_admin_user
from .models import AdminPermission, AdminUser
from .permissions import ADMIN_USERS_READ, MANAGE_USERS, HasAdminPermission, crud_action_map
from .serializers import (
    AdminPermissionSerializer,
    AdminUserSerializer,
    AdminUserWriteSerializer,
    PermissionNamesSerializer,
)

logger = logging.getLogger(__name__)


class AdminUserViewSet(viewsets.GenericViewSet):
    queryset = AdminUser.objects.order_by("username")
    serializer_class = AdminUserSerializer
    permission_classes = [IsAuthenticated, HasAdminPermission]
    permission_action_map = crud_action_map(ADMIN_USERS_READ, MANAGE_USERS, replace_permissions=MANAGE_USERS)

    def list(self, request):
        return Response(self.get_serializer(self.get_queryset(), many=True).data)

    def retrieve(self, request, pk=None):
        return Response(self.get_serializer(self.get_object()).data)

    def create(self, request):
        serializer = AdminUserWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        admin = create_admin_user(
            data["username"],
            data.get("password"),
            full_name=data.get("full_name", ""),
            email=data.get("email", ""),
            is_active=data.get("is_active", True),
            permissions=data.get("permissions"),
            created_by=request.user.admin_name,
        )
        return Response(self.get_serializer(admin).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        admin = self.get_object()
        serializer = AdminUserWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        admin = update_admin_user(
            admin,
            username=data.get("username"),
            full_name=data.get("full_name"),
            email=data.get("email"),
            is_active=data.get("is_active"),
            password=data.get("password") or None,
        )
        if "permissions" in data:
            set_permissions(admin, data["permissions"], granted_by=request.user.admin_name)
        return Response(self.get_serializer(admin).data)

    def update(self, request, pk=None):
        return self.partial_update(request, pk=pk)

    def destroy(self, request, pk=None):
        delete_admin_user(self.get_object())
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["put", "post"], url_path="permissions")
    def replace_permissions(self, request, pk=None):
        admin = self.get_object()
        serializer = PermissionNamesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        set_permissions(admin, serializer.validated_data["permissions"], granted_by=request.user.admin_name)
        return Response(self.get_serializer(admin).data)


class AdminPermissionViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = AdminPermission.objects.filter(is_active=True).order_by("name")
    serializer_class = AdminPermissionSerializer
    permission_classes = [IsAuthenticated, HasAdminPermission]
    permission_action_map = {"list": (ADMIN_USERS_READ, MANAGE_USERS), "retrieve": (ADMIN_USERS_READ, MANAGE_USERS)}
