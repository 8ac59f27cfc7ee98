"""Serializers for the catalogue, announcements, auth and admin users."""
from rest_framework import serializers

from .models import AdminPermission, AdminUser, Announcement, Category, Panchayath

__all__ = [
    "CategorySerializer", "PublicCategorySerializer", "CategoryQRUploadSerializer",
    "PanchayathSerializer", "AnnouncementSerializer",
    "LoginSerializer", "TokenRefreshInputSerializer",
    "AdminPermissionSerializer", "AdminUserSerializer", "AdminUserWriteSerializer",
    "PermissionNamesSerializer",
]


class CategorySerializer(serializers.ModelSerializer):
    charged_fee = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    has_offer = serializers.BooleanField(read_only=True)
    qr_code_url = serializers.CharField(read_only=True)

    class Meta:
        model = Category
        fields = [
            "id", "name_english", "name_malayalam", "description",
            "actual_fee", "offer_fee", "charged_fee", "has_offer", "expiry_days",
            "offer_start_date", "offer_end_date", "is_active", "qr_code_url",
            "created_at", "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def validate_expiry_days(self, value):
        if value is None or value < 1:
            raise serializers.ValidationError("Expiry days must be at least 1")
        return value

    def validate(self, attrs):
        start = attrs.get("offer_start_date", getattr(self.instance, "offer_start_date", None))
        end = attrs.get("offer_end_date", getattr(self.instance, "offer_end_date", None))
        if start and end and start > end:
            raise serializers.ValidationError({"offer_end_date": "Offer end date must not be before the start date"})
        return attrs


class PublicCategorySerializer(serializers.ModelSerializer):
    charged_fee = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    has_offer = serializers.BooleanField(read_only=True)
    qr_code_url = serializers.CharField(read_only=True)

    class Meta:
        model = Category
        fields = [
            "id", "name_english", "name_malayalam", "description", "actual_fee", "offer_fee",
            "charged_fee", "has_offer", "expiry_days", "offer_start_date", "offer_end_date", "qr_code_url",
        ]


class CategoryQRUploadSerializer(serializers.Serializer):
    qr_code = serializers.ImageField()


class PanchayathSerializer(serializers.ModelSerializer):
    class Meta:
        model = Panchayath
        fields = ["id", "name", "district", "is_active", "created_at", "updated_at"]
        read_only_fields = ["created_at", "updated_at"]

    def validate_name(self, value):
        if not value or not value.strip():
            raise serializers.ValidationError("Name is required")
        return value.strip()

    def validate_district(self, value):
        if not value or not value.strip():
            raise serializers.ValidationError("District is required")
        return value.strip()


class AnnouncementSerializer(serializers.ModelSerializer):
    class Meta:
        model = Announcement
        fields = ["id", "title", "content", "is_active", "created_at", "updated_at"]
        read_only_fields = ["created_at", "updated_at"]


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(trim_whitespace=False)


class TokenRefreshInputSerializer(serializers.Serializer):
    refresh = serializers.CharField()


class AdminPermissionSerializer(serializers.ModelSerializer):
    class Meta:
        model = AdminPermission
        fields = ["id", "name", "description", "is_active"]


class AdminUserSerializer(serializers.ModelSerializer):
    permissions = serializers.SerializerMethodField()

    class Meta:
        model = AdminUser
        fields = [
            "id", "username", "full_name", "email", "is_active", "last_login",
            "created_by", "permissions", "created_at", "updated_at",
        ]

    def get_permissions(self, obj):
        return sorted(obj.permission_names())


class AdminUserWriteSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    password = serializers.CharField(trim_whitespace=False, required=False, allow_blank=True)
    full_name = serializers.CharField(required=False, allow_blank=True, default="")
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    is_active = serializers.BooleanField(required=False, default=True)
    permissions = serializers.ListField(child=serializers.CharField(), required=False)


class PermissionNamesSerializer(serializers.Serializer):
    permissions = serializers.ListField(child=serializers.CharField(), allow_empty=True)
