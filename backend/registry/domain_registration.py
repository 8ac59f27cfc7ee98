"""Registration lifecycle models.

A ``Registration`` is one citizen's application to a ``Category``. Its
``fee`` is a snapshot taken at submission, at transfer approval or on a
manual edit; later category price changes never reach existing rows.
Transfer requests copy the applicant's identity at request time and are
not resynchronised afterwards.
"""
from __future__ import annotations

from django.db import models
from django.db.models import Q

from .domain_catalog import Category, Panchayath

__all__ = [
    "RegistrationStatus",
    "TransferStatus",
    "Registration",
    "CategoryTransferRequest",
    "RegistrationVerification",
]


class RegistrationStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class TransferStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


class Registration(models.Model):
    customer_id = models.CharField(max_length=32, unique=True)
    full_name = models.CharField(max_length=255)
    mobile_number = models.CharField(max_length=20, db_index=True)
    address = models.TextField()
    ward = models.CharField(max_length=100)
    agent = models.CharField(max_length=255, blank=True, default="")
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name="registrations")
    preference_category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="preferred_by",
    )
    panchayath = models.ForeignKey(
        Panchayath,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="registrations",
    )
    fee = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    status = models.CharField(
        max_length=16,
        choices=RegistrationStatus.choices,
        default=RegistrationStatus.PENDING,
        db_index=True,
    )
    approved_date = models.DateTimeField(null=True, blank=True)
    approved_by = models.CharField(max_length=150, null=True, blank=True)
    expiry_date = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "registrations"
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover - repr helper
        return f"{self.customer_id} - {self.full_name}"


class CategoryTransferRequest(models.Model):
    registration = models.ForeignKey(Registration, on_delete=models.CASCADE, related_name="transfer_requests")
    from_category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name="transfers_out")
    to_category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name="transfers_in")
    # snapshot of the applicant at request time
    customer_id = models.CharField(max_length=32)
    full_name = models.CharField(max_length=255)
    mobile_number = models.CharField(max_length=20)
    reason = models.TextField(blank=True, null=True)
    status = models.CharField(
        max_length=16,
        choices=TransferStatus.choices,
        default=TransferStatus.PENDING,
        db_index=True,
    )
    requested_at = models.DateTimeField(auto_now_add=True)
    processed_at = models.DateTimeField(null=True, blank=True)
    processed_by = models.CharField(max_length=150, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "category_transfer_requests"
        ordering = ["-requested_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["registration"],
                condition=Q(status="pending"),
                name="uniq_pending_transfer_per_registration",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover - repr helper
        return f"{self.customer_id}: {self.from_category_id} -> {self.to_category_id} ({self.status})"


class RegistrationVerification(models.Model):
    """Single-row ledger entry per registration; each write replaces the row state."""

    registration = models.OneToOneField(Registration, on_delete=models.CASCADE, related_name="verification")
    verified = models.BooleanField(default=False)
    verified_by = models.CharField(max_length=150, null=True, blank=True)
    verified_at = models.DateTimeField(null=True, blank=True)
    restored_by = models.CharField(max_length=150, null=True, blank=True)
    restored_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "registration_verifications"

    def __str__(self) -> str:  # pragma: no cover - repr helper
        state = "verified" if self.verified else ("restored" if self.restored_at else "unverified")
        return f"{self.registration_id}: {state}"
