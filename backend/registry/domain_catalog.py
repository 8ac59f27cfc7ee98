"""Category catalogue, panchayath directory and public announcements."""
from __future__ import annotations

from decimal import Decimal

from django.core.files.storage import FileSystemStorage
from django.core.validators import MinValueValidator
from django.db import models

__all__ = ["OverwriteStorage", "category_qr_path", "Category", "Panchayath", "Announcement"]

ZERO = Decimal("0")


class OverwriteStorage(FileSystemStorage):
    """File storage that replaces an existing file instead of suffixing the name."""

    def get_available_name(self, name, max_length=None):
        if self.exists(name):
            self.delete(name)
        return name


def category_qr_path(instance, filename):
    return f"categories/{instance.pk}/payment-qr.png"


class Category(models.Model):
    name_english = models.CharField(max_length=255)
    name_malayalam = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    actual_fee = models.DecimalField(
        max_digits=10, decimal_places=2, default=ZERO, validators=[MinValueValidator(ZERO)]
    )
    offer_fee = models.DecimalField(
        max_digits=10, decimal_places=2, default=ZERO, validators=[MinValueValidator(ZERO)]
    )
    expiry_days = models.PositiveIntegerField(default=30, validators=[MinValueValidator(1)])
    offer_start_date = models.DateField(null=True, blank=True)
    offer_end_date = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    qr_code = models.ImageField(upload_to=category_qr_path, storage=OverwriteStorage(), null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "categories"
        ordering = ["name_english"]
        verbose_name_plural = "categories"

    def __str__(self) -> str:  # pragma: no cover - repr helper
        return self.name_english

    @property
    def charged_fee(self) -> Decimal:
        """Fee snapshotted onto a registration: the offer fee when set, else the actual fee."""
        if self.offer_fee and self.offer_fee > ZERO:
            return self.offer_fee
        return self.actual_fee or ZERO

    @property
    def has_offer(self) -> bool:
        return bool(self.offer_fee and self.actual_fee and ZERO < self.offer_fee < self.actual_fee)

    @property
    def qr_code_url(self):
        if not self.qr_code:
            return None
        return self.qr_code.url


class Panchayath(models.Model):
    name = models.CharField(max_length=255)
    district = models.CharField(max_length=255)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "panchayaths"
        ordering = ["district", "name"]

    def __str__(self) -> str:  # pragma: no cover - repr helper
        return f"{self.name} ({self.district})"


class Announcement(models.Model):
    title = models.CharField(max_length=255)
    content = models.TextField()
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "announcements"
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover - repr helper
        return self.title
