"""
File: backend/registry/urls.py
API routing configuration (mounted at /api/).
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .cash_register import CashAccountViewSet, CashTransactionViewSet
from .views_admin import AdminPermissionViewSet, AdminUserViewSet
from .views_auth import LoginView, MeView, TokenRefreshView
from .views_catalog import AnnouncementViewSet, CategoryViewSet, ExternalDirectoryView, PanchayathViewSet
from .views_registration import (
    PublicRegistrationView,
    PublicStatusView,
    PublicTransferRequestView,
    RegistrationViewSet,
    TransferRequestViewSet,
    VerificationViewSet,
)
from .views_reports import ReportSummaryView

router = DefaultRouter()
router.register(r'categories', CategoryViewSet, basename='categories')
router.register(r'panchayaths', PanchayathViewSet, basename='panchayaths')
router.register(r'announcements', AnnouncementViewSet, basename='announcements')
router.register(r'registrations', RegistrationViewSet, basename='registrations')
router.register(r'transfer-requests', TransferRequestViewSet, basename='transfer-requests')
router.register(r'verifications', VerificationViewSet, basename='verifications')
router.register(r'cash-accounts', CashAccountViewSet, basename='cash-accounts')
router.register(r'cash-transactions', CashTransactionViewSet, basename='cash-transactions')
router.register(r'admin-users', AdminUserViewSet, basename='admin-users')
router.register(r'admin-permissions', AdminPermissionViewSet, basename='admin-permissions')

urlpatterns = [
    # --- AUTH ---
    path("auth/login/", LoginView.as_view(), name="admin-login"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    path("auth/me/", MeView.as_view(), name="admin-me"),

    # --- PUBLIC (citizen) ---
    path("public/registrations/", PublicRegistrationView.as_view(), name="public-registration"),
    path("public/status/", PublicStatusView.as_view(), name="public-status"),
    path("public/transfer-requests/", PublicTransferRequestView.as_view(), name="public-transfer-request"),

    # --- BACK OFFICE ---
    path("reports/summary/", ReportSummaryView.as_view(), name="report-summary"),
    path(
        "directory/<str:kind>/",
        ExternalDirectoryView.as_view(),
        name="external-directory",
    ),

    path("", include(router.urls)),
]
