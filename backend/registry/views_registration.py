"""Registration, transfer-request and verification endpoints (admin and public)."""
from __future__ import annotations

import logging

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from . import lifecycle, transfers, verification_ledger
from .exceptions import NotFoundError, ValidationError
from .models import CategoryTransferRequest, Registration, RegistrationVerification
from .permissions import MANAGE_REGISTRATIONS, MANAGE_REPORTS, REPORTS_READ, USERS_READ, HasAdminPermission
from .registrations import (
    EDITABLE_FIELDS,
    edit_registration,
    find_by_mobile_or_customer_id,
    search_registrations,
    submit_registration,
)
from .serializers_registration import (
    BulkApproveSerializer,
    ExpiryAlertSerializer,
    PublicStatusSerializer,
    RegistrationEditSerializer,
    RegistrationSerializer,
    RegistrationSubmitSerializer,
    TransferRequestCreateSerializer,
    TransferRequestSerializer,
    VerificationSerializer,
)

logger = logging.getLogger(__name__)

_READ = (USERS_READ, MANAGE_REGISTRATIONS)


def _int_param(value, name):
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"'{name}' must be a whole number.")


class RegistrationViewSet(viewsets.GenericViewSet):
    """Back-office registration management.

    List filters: ``q`` (name, mobile, customer id), ``status``, ``category``,
    ``panchayath`` and ``expiry_within`` (days; 0 = already expired; implies
    pending only).
    """

    queryset = Registration.objects.select_related("category", "preference_category", "panchayath")
    serializer_class = RegistrationSerializer
    permission_classes = [IsAuthenticated, HasAdminPermission]
    permission_action_map = {
        "list": _READ,
        "retrieve": _READ,
        "create": MANAGE_REGISTRATIONS,
        "partial_update": MANAGE_REGISTRATIONS,
        "update": MANAGE_REGISTRATIONS,
        "destroy": MANAGE_REGISTRATIONS,
        "approve": MANAGE_REGISTRATIONS,
        "reject": MANAGE_REGISTRATIONS,
        "restore": MANAGE_REGISTRATIONS,
        "bulk_approve": MANAGE_REGISTRATIONS,
        "expiry_alerts": _READ,
    }

    def _render(self, registration, status_code=status.HTTP_200_OK):
        return Response(self.get_serializer(registration).data, status=status_code)

    def list(self, request):
        params = request.query_params
        rows = search_registrations(
            q=params.get("q"),
            status=params.get("status"),
            category_id=params.get("category"),
            panchayath_id=params.get("panchayath"),
            expiry_within=_int_param(params.get("expiry_within"), "expiry_within"),
        )
        ledger = verification_ledger.ledger_for(r.pk for r in rows)
        data = RegistrationSerializer(rows, many=True, context={"request": request, "ledger": ledger}).data
        return Response({"items": data, "total": len(data)})

    def retrieve(self, request, pk=None):
        return self._render(self.get_object())

    def create(self, request):
        serializer = RegistrationSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reg = submit_registration(serializer.validated_data)
        return self._render(reg, status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        reg = self.get_object()
        serializer = RegistrationEditSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        changes = {k: v for k, v in serializer.validated_data.items() if k in EDITABLE_FIELDS}
        reg = edit_registration(reg, changes)
        logger.info("Registration %s edited by %s", reg.customer_id, request.user)
        return self._render(reg)

    def update(self, request, pk=None):
        return self.partial_update(request, pk=pk)

    def destroy(self, request, pk=None):
        reg = self.get_object()
        customer_id = reg.customer_id
        reg.delete()
        logger.info("Registration %s deleted by %s", customer_id, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        return self._render(lifecycle.approve(pk, request.user.admin_name))

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        return self._render(lifecycle.reject(pk, request.user.admin_name))

    @action(detail=True, methods=["post"])
    def restore(self, request, pk=None):
        return self._render(lifecycle.restore_to_pending(pk, request.user.admin_name))

    @action(detail=False, methods=["post"], url_path="bulk-approve")
    def bulk_approve(self, request):
        serializer = BulkApproveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        count = lifecycle.bulk_approve(serializer.validated_data["ids"], request.user.admin_name)
        return Response({"approved": count})

    @action(detail=False, methods=["get"], url_path="expiry-alerts")
    def expiry_alerts(self, request):
        buckets = lifecycle.expiry_alerts()
        ctx = {"request": request}
        return Response({
            "expired": ExpiryAlertSerializer(buckets.expired, many=True, context=ctx).data,
            "expiring_soon": ExpiryAlertSerializer(buckets.expiring_soon, many=True, context=ctx).data,
            "total": buckets.total,
        })


class TransferRequestViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    queryset = CategoryTransferRequest.objects.select_related("from_category", "to_category")
    serializer_class = TransferRequestSerializer
    permission_classes = [IsAuthenticated, HasAdminPermission]
    permission_action_map = {
        "list": _READ,
        "retrieve": _READ,
        "approve": MANAGE_REGISTRATIONS,
        "reject": MANAGE_REGISTRATIONS,
    }

    def get_queryset(self):
        qs = super().get_queryset()
        state = self.request.query_params.get("status")
        if state and state != "all":
            qs = qs.filter(status=state)
        return qs.order_by("-requested_at")

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        req = transfers.approve_transfer(pk, request.user.admin_name)
        return Response(self.get_serializer(req).data)

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        req = transfers.reject_transfer(pk, request.user.admin_name)
        return Response(self.get_serializer(req).data)


class VerificationViewSet(viewsets.GenericViewSet):
    """Ledger rows addressed by registration id: ``verifications/<registration_id>/verify/``."""

    queryset = RegistrationVerification.objects.all()
    serializer_class = VerificationSerializer
    permission_classes = [IsAuthenticated, HasAdminPermission]
    permission_action_map = {
        "list": (REPORTS_READ, MANAGE_REPORTS),
        "verify": MANAGE_REPORTS,
        "restore": MANAGE_REPORTS,
    }

    def list(self, request):
        ids = request.query_params.get("registrations")
        if ids:
            wanted = [_int_param(i, "registrations") for i in ids.split(",") if i.strip()]
            rows = list(verification_ledger.ledger_for(wanted).values())
        else:
            rows = list(self.get_queryset().order_by("-updated_at"))
        return Response({
            "items": self.get_serializer(rows, many=True).data,
            "verified_amount": verification_ledger.verified_amount(),
        })

    @action(detail=True, methods=["post"])
    def verify(self, request, pk=None):
        row = verification_ledger.verify(pk, request.user.admin_name)
        return Response(self.get_serializer(row).data)

    @action(detail=True, methods=["post"])
    def restore(self, request, pk=None):
        row = verification_ledger.restore(pk, request.user.admin_name)
        return Response(self.get_serializer(row).data)


class PublicRegistrationView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = RegistrationSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        # customer ids are issued by the portal for public submissions
        data.pop("customer_id", None)
        reg = submit_registration(data)
        return Response(PublicStatusSerializer(reg).data, status=status.HTTP_201_CREATED)


class PublicStatusView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        reg = find_by_mobile_or_customer_id(request.query_params.get("q"))
        if reg is None:
            raise NotFoundError("No registration found with this mobile number or customer ID.")
        pending = transfers.pending_request_for(reg)
        return Response(PublicStatusSerializer(reg, context={"pending_transfer": pending}).data)


class PublicTransferRequestView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = TransferRequestCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        reg = find_by_mobile_or_customer_id(data["q"])
        if reg is None:
            raise NotFoundError("No registration found with this mobile number or customer ID.")
        req = transfers.request_transfer(reg.pk, data["to_category_id"], data.get("reason"))
        return Response(TransferRequestSerializer(req).data, status=status.HTTP_201_CREATED)
