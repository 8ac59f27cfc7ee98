"""Category, panchayath and announcement endpoints plus the external directory proxy."""
from __future__ import annotations

import logging

from django.db.models import ProtectedError, QuerySet
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .exceptions import ValidationError
from .external_directory import ExternalDirectoryClient
from .models import Announcement, Category, Panchayath
from .permissions import (
    ANNOUNCEMENTS_READ,
    ANNOUNCEMENTS_WRITE,
    CATEGORIES_READ,
    MANAGE_CATEGORIES,
    MANAGE_REGISTRATIONS,
    PANCHAYATHS_READ,
    PANCHAYATHS_WRITE,
    USERS_READ,
    HasAdminPermission,
    crud_action_map,
)
from .serializers import (
    AnnouncementSerializer,
    CategoryQRUploadSerializer,
    CategorySerializer,
    PanchayathSerializer,
    PublicCategorySerializer,
)

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "True"}


class ToggleActiveMixin:
    """Adds ``POST <pk>/toggle/`` flipping ``is_active``."""

    @action(detail=True, methods=["post"])
    def toggle(self, request, pk=None):
        obj = self.get_object()
        obj.is_active = not obj.is_active
        obj.save(update_fields=["is_active", "updated_at"])
        logger.info("%s %s is_active=%s by %s", type(obj).__name__, obj.pk, obj.is_active, request.user)
        return Response(self.get_serializer(obj).data)


class ActiveFilterMixin:
    def get_queryset(self) -> QuerySet:  # type: ignore[override]
        qs = super().get_queryset()
        if self.request.query_params.get("active") in _TRUE_VALUES:
            qs = qs.filter(is_active=True)
        return qs


class CategoryViewSet(ToggleActiveMixin, ActiveFilterMixin, viewsets.ModelViewSet):
    queryset = Category.objects.all().order_by("name_english")
    serializer_class = CategorySerializer
    permission_classes = [IsAuthenticated, HasAdminPermission]
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    permission_action_map = crud_action_map(
        (CATEGORIES_READ, MANAGE_CATEGORIES, USERS_READ, MANAGE_REGISTRATIONS),
        MANAGE_CATEGORIES,
        toggle=MANAGE_CATEGORIES,
        upload_qr=MANAGE_CATEGORIES,
    )

    def perform_destroy(self, instance):
        try:
            instance.delete()
        except ProtectedError:
            raise ValidationError("Category is used by registrations; deactivate it instead of deleting.")
        logger.info("Category %s deleted by %s", instance.pk, self.request.user)

    @action(detail=False, methods=["get"], url_path="public", permission_classes=[AllowAny], authentication_classes=[])
    def public(self, request):
        qs = Category.objects.filter(is_active=True).order_by("name_english")
        return Response(PublicCategorySerializer(qs, many=True).data)

    @action(detail=True, methods=["post"], url_path="upload-qr", parser_classes=[MultiPartParser, FormParser])
    def upload_qr(self, request, pk=None):
        category = self.get_object()
        serializer = CategoryQRUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        category.qr_code.save("payment-qr.png", serializer.validated_data["qr_code"], save=False)
        category.save(update_fields=["qr_code", "updated_at"])
        logger.info("QR code uploaded for category %s by %s", category.pk, request.user)
        return Response({"id": category.pk, "qr_code_url": category.qr_code_url})


class PanchayathViewSet(ToggleActiveMixin, ActiveFilterMixin, viewsets.ModelViewSet):
    queryset = Panchayath.objects.all().order_by("district", "name")
    serializer_class = PanchayathSerializer
    permission_classes = [IsAuthenticated, HasAdminPermission]
    permission_action_map = crud_action_map(
        (PANCHAYATHS_READ, PANCHAYATHS_WRITE, USERS_READ, MANAGE_REGISTRATIONS),
        PANCHAYATHS_WRITE,
        toggle=PANCHAYATHS_WRITE,
    )

    def get_queryset(self) -> QuerySet[Panchayath]:  # type: ignore[override]
        qs = super().get_queryset()
        district = self.request.query_params.get("district")
        if district:
            qs = qs.filter(district__iexact=district.strip())
        return qs

    @action(detail=False, methods=["get"], url_path="public", permission_classes=[AllowAny], authentication_classes=[])
    def public(self, request):
        qs = Panchayath.objects.filter(is_active=True).order_by("district", "name")
        return Response(PanchayathSerializer(qs, many=True).data)


class AnnouncementViewSet(ToggleActiveMixin, ActiveFilterMixin, viewsets.ModelViewSet):
    queryset = Announcement.objects.all().order_by("-created_at")
    serializer_class = AnnouncementSerializer
    permission_classes = [IsAuthenticated, HasAdminPermission]
    permission_action_map = crud_action_map(ANNOUNCEMENTS_READ, ANNOUNCEMENTS_WRITE, toggle=ANNOUNCEMENTS_WRITE)

    @action(detail=False, methods=["get"], url_path="public", permission_classes=[AllowAny], authentication_classes=[])
    def public(self, request):
        qs = Announcement.objects.filter(is_active=True).order_by("-created_at")
        return Response(AnnouncementSerializer(qs, many=True).data)


class ExternalDirectoryView(APIView):
    """``GET directory/<kind>/`` proxied to the partner directory."""

    permission_classes = [IsAuthenticated, HasAdminPermission]
    permission_action_map = {"get": (PANCHAYATHS_READ, PANCHAYATHS_WRITE, USERS_READ, MANAGE_REGISTRATIONS)}
    client_class = ExternalDirectoryClient

    def get(self, request, kind):
        client = self.client_class()
        if kind == "panchayaths":
            items = client.fetch_panchayaths()
        elif kind == "wards":
            items = client.fetch_wards(request.query_params.get("panchayath_id"))
        elif kind == "agents":
            items = client.fetch_agents()
        else:
            raise ValidationError(f"Unknown directory '{kind}'.")
        return Response({kind: items})
