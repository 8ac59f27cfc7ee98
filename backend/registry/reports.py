"""Collection reports over approved, paid registrations."""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from django.db.models import Sum

from .domain_registration import Registration, RegistrationStatus
from .exceptions import ValidationError, store_errors
from .verification_ledger import ledger_for, verified_amount


def paid_registrations(date_from: Optional[date] = None, date_to: Optional[date] = None) -> List[Registration]:
    """Approved registrations with a fee, approved inside the inclusive day range."""
    if date_from and date_to and date_from > date_to:
        raise ValidationError("'From' date must not be after 'To' date.")
    qs = (
        Registration.objects.select_related("category", "panchayath")
        .filter(status=RegistrationStatus.APPROVED, fee__gt=0)
        .order_by("-approved_date")
    )
    if date_from:
        qs = qs.filter(approved_date__date__gte=date_from)
    if date_to:
        qs = qs.filter(approved_date__date__lte=date_to)
    with store_errors("paid registrations report"):
        return list(qs)


def summary(date_from: Optional[date] = None, date_to: Optional[date] = None) -> Dict[str, Any]:
    rows = paid_registrations(date_from, date_to)
    with store_errors("pending amount"):
        pending = Registration.objects.filter(status=RegistrationStatus.PENDING).aggregate(total=Sum("fee"))["total"]
    ledger = ledger_for(r.pk for r in rows)
    return {
        "date_from": date_from,
        "date_to": date_to,
        "total_registrations": len(rows),
        "total_fees_collected": sum((r.fee for r in rows), Decimal("0")),
        "total_categories": len({r.category_id for r in rows}),
        "total_panchayaths": len({r.panchayath_id for r in rows if r.panchayath_id}),
        "pending_amount": pending or Decimal("0"),
        "verified_amount": verified_amount(rows) if rows else Decimal("0"),
        "registrations": rows,
        "ledger": ledger,
    }
