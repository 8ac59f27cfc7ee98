"""Registration store: citizen submission, status lookup, admin edits and list filters."""
from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from .domain_catalog import Category, Panchayath
from .domain_registration import Registration, RegistrationStatus
from .exceptions import ConflictError, NotFoundError, ValidationError, store_errors
from .lifecycle import matches_expiry_window

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("full_name", "mobile_number", "address", "ward")
EDITABLE_FIELDS = (
    "full_name",
    "mobile_number",
    "address",
    "ward",
    "agent",
    "category_id",
    "preference_category_id",
    "panchayath_id",
    "fee",
    "expiry_date",
)
_MOBILE_RE = re.compile(r"^[0-9]{10}$")
_ID_ATTEMPTS = 3


def _clean(value) -> str:
    return str(value).strip() if value is not None else ""


def _validate_mobile(value: str) -> str:
    mobile = re.sub(r"[\s-]", "", value)
    if not _MOBILE_RE.match(mobile):
        raise ValidationError("Mobile number must be 10 digits.")
    return mobile


def _category(category_id, *, active_only: bool) -> Category:
    if category_id in (None, ""):
        raise ValidationError("Category is required.")
    category = Category.objects.filter(pk=category_id).first()
    if category is None:
        raise ValidationError(f"Category {category_id} does not exist.")
    if active_only and not category.is_active:
        raise ValidationError("The selected category is not open for registration.")
    return category


def _optional_fk(model, value, label: str):
    if value in (None, "", "none"):
        return None
    obj = model.objects.filter(pk=value).first()
    if obj is None:
        raise ValidationError(f"{label} {value} does not exist.")
    return obj


class CustomerIdService:
    """Issues ``{prefix}{yy}{sequence:05d}`` customer ids, sequence restarting each year."""

    @staticmethod
    def _prefix(when: datetime) -> str:
        return f"{settings.REGISTRY_CUSTOMER_ID_PREFIX}{when.year % 100:02d}"

    @classmethod
    def next_id(cls, when: Optional[datetime] = None, *, lock: bool = False) -> str:
        prefix = cls._prefix(when or timezone.now())
        qs = Registration.objects.filter(customer_id__startswith=prefix)
        if lock:
            qs = qs.select_for_update()
        last = 0
        for customer_id in qs.values_list("customer_id", flat=True):
            tail = customer_id[len(prefix):]
            if tail.isdigit() and int(tail) > last:
                last = int(tail)
        return f"{prefix}{last + 1:05d}"


def submit_registration(data: Mapping[str, Any]) -> Registration:
    """Create a pending registration from citizen input.

    The fee is copied from the category at this moment. A ``customer_id`` is
    generated unless the caller supplies one.
    """
    values = {name: _clean(data.get(name)) for name in REQUIRED_FIELDS}
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ValidationError(f"Required fields missing: {', '.join(missing)}")
    values["mobile_number"] = _validate_mobile(values["mobile_number"])
    supplied_id = _clean(data.get("customer_id"))

    with store_errors("submit registration"):
        category = _category(data.get("category_id"), active_only=True)
        preference = _optional_fk(Category, data.get("preference_category_id"), "Category")
        panchayath = _optional_fk(Panchayath, data.get("panchayath_id"), "Panchayath")
        for _ in range(_ID_ATTEMPTS):
            try:
                with transaction.atomic():
                    customer_id = supplied_id or CustomerIdService.next_id(lock=True)
                    reg = Registration.objects.create(
                        customer_id=customer_id,
                        agent=_clean(data.get("agent")),
                        category=category,
                        preference_category=preference,
                        panchayath=panchayath,
                        fee=category.charged_fee,
                        status=RegistrationStatus.PENDING,
                        **values,
                    )
                break
            except IntegrityError:
                if supplied_id:
                    raise ValidationError(f"Customer id {supplied_id} is already registered.")
        else:
            raise ConflictError("Could not allocate a customer id. Try again.")
    logger.info("Registration %s submitted for category %s (fee %s)", reg.customer_id, category.pk, reg.fee)
    return reg


def find_by_mobile_or_customer_id(query: str) -> Optional[Registration]:
    """Latest registration whose mobile number or customer id equals ``query``."""
    term = _clean(query)
    if not term:
        raise ValidationError("Enter a mobile number or customer id.")
    with store_errors("status lookup"):
        return (
            Registration.objects.select_related("category", "preference_category", "panchayath")
            .filter(Q(mobile_number=term) | Q(customer_id__iexact=term))
            .order_by("-created_at")
            .first()
        )


def edit_registration(registration, data: Mapping[str, Any]) -> Registration:
    """Manual admin edit. Status is not editable here.

    Moving to another category re-snapshots the fee from it unless ``fee``
    is part of the edit.
    """
    with store_errors("edit registration"):
        if not isinstance(registration, Registration):
            reg = Registration.objects.filter(pk=registration).first()
            if reg is None:
                raise NotFoundError(f"Registration {registration} not found.")
        else:
            reg = registration
        changed: List[str] = []
        for name in ("full_name", "address", "ward"):
            if name in data:
                value = _clean(data[name])
                if not value:
                    raise ValidationError(f"{name} cannot be blank.")
                setattr(reg, name, value)
                changed.append(name)
        if "mobile_number" in data:
            reg.mobile_number = _validate_mobile(_clean(data["mobile_number"]))
            changed.append("mobile_number")
        if "agent" in data:
            reg.agent = _clean(data["agent"])
            changed.append("agent")
        if "preference_category_id" in data:
            reg.preference_category = _optional_fk(Category, data["preference_category_id"], "Category")
            changed.append("preference_category")
        if "panchayath_id" in data:
            reg.panchayath = _optional_fk(Panchayath, data["panchayath_id"], "Panchayath")
            changed.append("panchayath")
        if "category_id" in data:
            category = _category(data["category_id"], active_only=False)
            if category.pk != reg.category_id:
                reg.category = category
                changed.append("category")
                if "fee" not in data:
                    reg.fee = category.charged_fee
                    changed.append("fee")
        if "fee" in data:
            if data["fee"] is None or data["fee"] < 0:
                raise ValidationError("Fee must be zero or more.")
            reg.fee = data["fee"]
            changed.append("fee")
        if "expiry_date" in data:
            if data["expiry_date"] is None and reg.status == RegistrationStatus.APPROVED:
                raise ValidationError("An approved registration must keep an expiry date.")
            reg.expiry_date = data["expiry_date"]
            changed.append("expiry_date")
        if not changed:
            return reg
        changed = list(dict.fromkeys(changed)) + ["updated_at"]
        reg.save(update_fields=changed)
    logger.info("Registration %s edited: %s", reg.customer_id, ", ".join(changed[:-1]))
    return reg


def search_registrations(
    *,
    q: Optional[str] = None,
    status: Optional[str] = None,
    category_id=None,
    panchayath_id=None,
    expiry_within: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[Registration]:
    """Admin list filtering.

    ``expiry_within`` limits the result to pending rows inside that expiry
    window and overrides ``status``.
    """
    qs = Registration.objects.select_related("category", "preference_category", "panchayath").order_by("-created_at")
    term = _clean(q)
    if term:
        qs = qs.filter(
            Q(full_name__icontains=term) | Q(mobile_number__icontains=term) | Q(customer_id__icontains=term)
        )
    if expiry_within is not None:
        qs = qs.filter(status=RegistrationStatus.PENDING)
    elif status and status != "all":
        if status not in RegistrationStatus.values:
            raise ValidationError(f"Unknown status '{status}'.")
        qs = qs.filter(status=status)
    if category_id not in (None, "", "all"):
        qs = qs.filter(category_id=category_id)
    if panchayath_id not in (None, "", "all"):
        qs = qs.filter(panchayath_id=panchayath_id)
    with store_errors("list registrations"):
        rows = list(qs)
    if expiry_within is None:
        return rows
    moment = now or timezone.now()
    return [r for r in rows if matches_expiry_window(r, r.category, expiry_within, moment)]


def registration_summary(registration: Registration) -> Dict[str, Any]:
    """Compact dict used in log lines and management command output."""
    return {
        "id": registration.pk,
        "customer_id": registration.customer_id,
        "full_name": registration.full_name,
        "mobile_number": registration.mobile_number,
        "status": registration.status,
        "category_id": registration.category_id,
        "expiry_date": registration.expiry_date,
    }
