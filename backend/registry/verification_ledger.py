"""Fee reconciliation ledger for approved registrations.

One row per registration. ``verify`` and ``restore`` each rewrite the whole
row, so only the latest state is kept:

    unverified -> verified -> restored -> verified -> ...

The verified amount is recomputed from the current rows on every call.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Iterable, Optional

from django.db.models import Sum
from django.utils import timezone

from .domain_registration import Registration, RegistrationStatus, RegistrationVerification
from .exceptions import NotFoundError, ValidationError, store_errors

logger = logging.getLogger(__name__)


def _approved_registration(registration_id) -> Registration:
    reg = Registration.objects.filter(pk=registration_id).first()
    if reg is None:
        raise NotFoundError(f"Registration {registration_id} not found.")
    if reg.status != RegistrationStatus.APPROVED:
        raise ValidationError("Only approved registrations can be verified.")
    return reg


def _name(value: Optional[str]) -> str:
    name = (value or "").strip()
    if not name:
        raise ValidationError("An admin name is required.")
    return name


def verify(registration_id, verifier_name: str) -> RegistrationVerification:
    verifier = _name(verifier_name)
    with store_errors("verify registration"):
        reg = _approved_registration(registration_id)
        row, _ = RegistrationVerification.objects.update_or_create(
            registration=reg,
            defaults={
                "verified": True,
                "verified_by": verifier,
                "verified_at": timezone.now(),
                "restored_by": None,
                "restored_at": None,
            },
        )
    logger.info("Registration %s verified by %s", reg.customer_id, verifier)
    return row


def restore(registration_id, restorer_name: str) -> RegistrationVerification:
    restorer = _name(restorer_name)
    with store_errors("restore verification"):
        reg = _approved_registration(registration_id)
        row, _ = RegistrationVerification.objects.update_or_create(
            registration=reg,
            defaults={
                "verified": False,
                "verified_by": None,
                "verified_at": None,
                "restored_by": restorer,
                "restored_at": timezone.now(),
            },
        )
    logger.info("Verification of %s restored by %s", reg.customer_id, restorer)
    return row


def verified_amount(registrations: Optional[Iterable] = None) -> Decimal:
    """Sum of fees over verified registrations, optionally limited to ``registrations``."""
    with store_errors("verified amount"):
        qs = Registration.objects.filter(verification__verified=True, verification__verified_at__isnull=False)
        if registrations is not None:
            ids = [getattr(r, "pk", r) for r in registrations]
            qs = qs.filter(pk__in=ids)
        total = qs.aggregate(total=Sum("fee"))["total"]
    return total or Decimal("0")


def ledger_for(registration_ids: Iterable) -> Dict[int, RegistrationVerification]:
    with store_errors("load verification ledger"):
        rows = RegistrationVerification.objects.filter(registration_id__in=list(registration_ids))
        return {row.registration_id: row for row in rows}
