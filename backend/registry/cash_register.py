"""Serializers, viewsets and balance sync for cash accounts."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from django.db import transaction
from django.db.models import Q, QuerySet
from rest_framework import serializers, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .domain_cash import CashAccount, CashTransaction
from .exceptions import store_errors
from .permissions import ACCOUNTS_READ, ACCOUNTS_WRITE, HasAdminPermission, crud_action_map
from .verification_ledger import verified_amount

logger = logging.getLogger(__name__)

MAIN_ACCOUNT_MARKERS = ("main", "cash")


def main_cash_account() -> Optional[CashAccount]:
    """First account whose name mentions "main" or "cash"."""
    query = Q()
    for marker in MAIN_ACCOUNT_MARKERS:
        query |= Q(name__icontains=marker)
    return CashAccount.objects.filter(query).order_by("id").first()


def sync_main_cash_balance() -> Optional[CashAccount]:
    """Set the main cash account balance to the current verified amount."""
    total = verified_amount()
    with store_errors("sync main cash balance"):
        with transaction.atomic():
            account = main_cash_account()
            if account is None:
                return None
            if account.balance != total:
                CashAccount.objects.filter(pk=account.pk).update(balance=total)
                logger.info("Main cash account %s balance %s -> %s", account.name, account.balance, total)
            account.refresh_from_db()
    return account


class CashAccountSerializer(serializers.ModelSerializer):
    class Meta:
        model = CashAccount
        fields = ["id", "name", "balance", "is_active", "created_at", "updated_at"]
        read_only_fields = ["created_at", "updated_at"]

    def validate_name(self, value: str) -> str:
        if not value or not value.strip():
            raise serializers.ValidationError("Name is required")
        return value.strip()


class CashTransactionSerializer(serializers.ModelSerializer):
    type = serializers.CharField(source="transaction_type")
    account_name = serializers.CharField(source="account.name", read_only=True)

    class Meta:
        model = CashTransaction
        fields = [
            "id",
            "account",
            "account_name",
            "amount",
            "type",
            "description",
            "reference_number",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_by", "created_at", "updated_at"]

    def validate_amount(self, value):
        if value is None or value == 0:
            raise serializers.ValidationError("Amount must be non-zero")
        return value

    def validate(self, attrs):
        tx_type = attrs.get("transaction_type", getattr(self.instance, "transaction_type", ""))
        amount = attrs.get("amount", getattr(self.instance, "amount", None))
        if amount is not None:
            attrs["amount"] = CashTransaction.signed_amount(tx_type, Decimal(amount))
        return attrs


class CashAccountViewSet(viewsets.ModelViewSet):
    queryset = CashAccount.objects.all().order_by("name")
    serializer_class = CashAccountSerializer
    permission_classes = [IsAuthenticated, HasAdminPermission]
    permission_action_map = crud_action_map(ACCOUNTS_READ, ACCOUNTS_WRITE, sync_main=ACCOUNTS_WRITE)

    def get_queryset(self) -> QuerySet[CashAccount]:  # type: ignore[override]
        qs = super().get_queryset()
        active_only = self.request.query_params.get("active")
        if active_only in {"1", "true", "True"}:
            qs = qs.filter(is_active=True)
        return qs

    def list(self, request, *args, **kwargs):
        # the main cash balance follows the verified amount whenever accounts are viewed
        sync_main_cash_balance()
        return super().list(request, *args, **kwargs)

    @action(detail=False, methods=["post"], url_path="sync-main")
    def sync_main(self, request):
        account = sync_main_cash_balance()
        if account is None:
            return Response({"detail": "No main cash account configured", "account": None})
        return Response({"detail": "Balance synced", "account": self.get_serializer(account).data})


class CashTransactionViewSet(viewsets.ModelViewSet):
    queryset = CashTransaction.objects.select_related("account").all()
    serializer_class = CashTransactionSerializer
    permission_classes = [IsAuthenticated, HasAdminPermission]
    permission_action_map = crud_action_map(ACCOUNTS_READ, ACCOUNTS_WRITE)

    def get_queryset(self) -> QuerySet[CashTransaction]:  # type: ignore[override]
        qs = super().get_queryset()
        account_id = self.request.query_params.get("account")
        if account_id:
            qs = qs.filter(account_id=account_id)
        tx_type = self.request.query_params.get("type")
        if tx_type:
            qs = qs.filter(transaction_type__iexact=tx_type)
        return qs.order_by("-created_at")

    def perform_create(self, serializer):
        tx = serializer.save(created_by=self.request.user.admin_name)
        logger.info("Cash transaction %s on account %s by %s", tx.pk, tx.account_id, tx.created_by)
