from django.contrib import admin

from .forms import AdminUserForm
from .models import (
    AdminPermission,
    AdminUser,
    AdminUserPermission,
    Announcement,
    CashAccount,
    CashTransaction,
    Category,
    CategoryTransferRequest,
    Panchayath,
    Registration,
    RegistrationVerification,
)


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name_english", "name_malayalam", "actual_fee", "offer_fee", "expiry_days", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name_english", "name_malayalam")


@admin.register(Panchayath)
class PanchayathAdmin(admin.ModelAdmin):
    list_display = ("name", "district", "is_active")
    list_filter = ("district", "is_active")
    search_fields = ("name", "district")


@admin.register(Announcement)
class AnnouncementAdmin(admin.ModelAdmin):
    list_display = ("title", "is_active", "created_at")
    list_filter = ("is_active",)


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):
    list_display = ("customer_id", "full_name", "mobile_number", "category", "fee", "status", "expiry_date")
    list_filter = ("status", "category", "panchayath")
    search_fields = ("customer_id", "full_name", "mobile_number")
    # status moves only through the lifecycle actions
    readonly_fields = ("status", "approved_date", "approved_by", "created_at", "updated_at")


@admin.register(CategoryTransferRequest)
class CategoryTransferRequestAdmin(admin.ModelAdmin):
    list_display = ("customer_id", "from_category", "to_category", "status", "requested_at", "processed_by")
    list_filter = ("status",)
    search_fields = ("customer_id", "mobile_number", "full_name")


@admin.register(RegistrationVerification)
class RegistrationVerificationAdmin(admin.ModelAdmin):
    list_display = ("registration", "verified", "verified_by", "verified_at", "restored_by", "restored_at")
    list_filter = ("verified",)


class AdminUserPermissionInline(admin.TabularInline):
    model = AdminUserPermission
    extra = 0


@admin.register(AdminUser)
class AdminUserAdmin(admin.ModelAdmin):
    list_display = ("username", "full_name", "email", "is_active", "last_login")
    form = AdminUserForm
    inlines = [AdminUserPermissionInline]


@admin.register(AdminPermission)
class AdminPermissionAdmin(admin.ModelAdmin):
    list_display = ("name", "description", "is_active")


@admin.register(CashAccount)
class CashAccountAdmin(admin.ModelAdmin):
    list_display = ("name", "balance", "is_active")


@admin.register(CashTransaction)
class CashTransactionAdmin(admin.ModelAdmin):
    list_display = ("account", "transaction_type", "amount", "reference_number", "created_at")
    list_filter = ("transaction_type",)
