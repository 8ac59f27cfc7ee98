"""Serializers for registrations, transfer requests and the verification ledger."""
from decimal import Decimal

from django.utils import timezone
from rest_framework import serializers

from .lifecycle import days_remaining, effective_expiry
from .models import CategoryTransferRequest, Registration, RegistrationVerification

__all__ = [
    "RegistrationSerializer", "PublicStatusSerializer", "RegistrationSubmitSerializer",
    "RegistrationEditSerializer", "BulkApproveSerializer", "ExpiryAlertSerializer",
    "TransferRequestSerializer", "TransferRequestCreateSerializer", "VerificationSerializer",
]


def _category_ref(category):
    if category is None:
        return None
    return {"id": category.pk, "name_english": category.name_english, "name_malayalam": category.name_malayalam}


def _panchayath_ref(panchayath):
    if panchayath is None:
        return None
    return {"id": panchayath.pk, "name": panchayath.name, "district": panchayath.district}


class VerificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = RegistrationVerification
        fields = ["registration", "verified", "verified_by", "verified_at", "restored_by", "restored_at", "updated_at"]


class RegistrationSerializer(serializers.ModelSerializer):
    """Admin view of a registration.

    ``context["ledger"]`` may carry ``{registration_id: RegistrationVerification}``
    to avoid one query per row when listing.
    """

    class Meta:
        model = Registration
        fields = [
            "id", "customer_id", "full_name", "mobile_number", "address", "ward", "agent",
            "category", "preference_category", "panchayath", "fee", "status",
            "approved_date", "approved_by", "expiry_date", "created_at", "updated_at",
        ]

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data["category"] = _category_ref(instance.category)
        data["preference_category"] = _category_ref(instance.preference_category)
        data["panchayath"] = _panchayath_ref(instance.panchayath)
        expiry = effective_expiry(instance, instance.category)
        data["effective_expiry"] = serializers.DateTimeField().to_representation(expiry)
        data["days_remaining"] = days_remaining(expiry, timezone.now())
        ledger = self.context.get("ledger")
        if ledger is not None:
            row = ledger.get(instance.pk)
            data["verification"] = VerificationSerializer(row).data if row else None
        return data


class PublicStatusSerializer(serializers.ModelSerializer):
    class Meta:
        model = Registration
        fields = [
            "id", "customer_id", "full_name", "mobile_number", "ward", "category", "fee", "status",
            "approved_date", "expiry_date", "created_at",
        ]

    def to_representation(self, instance):
        data = super().to_representation(instance)
        category = instance.category
        data["category"] = _category_ref(category)
        if category is not None:
            data["category"]["qr_code_url"] = category.qr_code_url
        data["panchayath"] = _panchayath_ref(instance.panchayath)
        pending = self.context.get("pending_transfer")
        data["pending_transfer"] = TransferRequestSerializer(pending).data if pending else None
        return data


class RegistrationSubmitSerializer(serializers.Serializer):
    customer_id = serializers.CharField(max_length=32, required=False, allow_blank=True)
    full_name = serializers.CharField(max_length=255)
    mobile_number = serializers.CharField(max_length=20)
    address = serializers.CharField()
    ward = serializers.CharField(max_length=100)
    agent = serializers.CharField(max_length=255, required=False, allow_blank=True)
    category_id = serializers.IntegerField()
    preference_category_id = serializers.IntegerField(required=False, allow_null=True)
    panchayath_id = serializers.IntegerField(required=False, allow_null=True)


class RegistrationEditSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=255, required=False)
    mobile_number = serializers.CharField(max_length=20, required=False)
    address = serializers.CharField(required=False)
    ward = serializers.CharField(max_length=100, required=False)
    agent = serializers.CharField(max_length=255, required=False, allow_blank=True)
    category_id = serializers.IntegerField(required=False)
    preference_category_id = serializers.IntegerField(required=False, allow_null=True)
    panchayath_id = serializers.IntegerField(required=False, allow_null=True)
    fee = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal("0"), required=False)
    expiry_date = serializers.DateTimeField(required=False, allow_null=True)


class BulkApproveSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)


class ExpiryAlertSerializer(serializers.Serializer):
    registration = RegistrationSerializer()
    effective_expiry = serializers.DateTimeField()
    days_remaining = serializers.IntegerField()


class TransferRequestSerializer(serializers.ModelSerializer):
    class Meta:
        model = CategoryTransferRequest
        fields = [
            "id", "registration", "from_category", "to_category", "customer_id", "full_name",
            "mobile_number", "reason", "status", "requested_at", "processed_at", "processed_by",
        ]

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data["from_category"] = _category_ref(instance.from_category)
        data["to_category"] = _category_ref(instance.to_category)
        return data


class TransferRequestCreateSerializer(serializers.Serializer):
    q = serializers.CharField(help_text="Mobile number or customer id of the registration")
    to_category_id = serializers.IntegerField()
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)
