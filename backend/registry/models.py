"""Model registry for the app.

Models live in the ``domain_*`` modules; this module re-exports them so
Django and the rest of the code can import from ``registry.models``.
"""
from .domain_catalog import Announcement, Category, Panchayath  # noqa: F401
from .domain_registration import (  # noqa: F401
    CategoryTransferRequest,
    Registration,
    RegistrationStatus,
    RegistrationVerification,
    TransferStatus,
)
from .domain_admin import AdminPermission, AdminUser, AdminUserPermission  # noqa: F401
from .domain_cash import CashAccount, CashTransaction  # noqa: F401
