"""Cash accounts and their transactions."""
from __future__ import annotations

from django.db import models

__all__ = ["CashAccount", "CashTransaction"]


class CashAccount(models.Model):
    name = models.CharField(max_length=255)
    balance = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "cash_accounts"
        ordering = ["name"]

    def __str__(self) -> str:  # pragma: no cover - repr helper
        return self.name


class CashTransaction(models.Model):
    """Ledger line against a cash account; ``amount`` is signed by ``transaction_type``."""

    DEBIT_MARKERS = ("debit", "withdrawal")

    account = models.ForeignKey(CashAccount, on_delete=models.CASCADE, related_name="transactions")
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    transaction_type = models.CharField(max_length=50)
    description = models.TextField(blank=True, default="")
    reference_number = models.CharField(max_length=100, blank=True, default="")
    created_by = models.CharField(max_length=150, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "cash_transactions"
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover - repr helper
        return f"{self.transaction_type} {self.amount}"

    @classmethod
    def is_debit_type(cls, transaction_type: str) -> bool:
        lowered = (transaction_type or "").lower()
        return any(marker in lowered for marker in cls.DEBIT_MARKERS)

    @classmethod
    def signed_amount(cls, transaction_type: str, amount):
        magnitude = abs(amount)
        return -magnitude if cls.is_debit_type(transaction_type) else magnitude
