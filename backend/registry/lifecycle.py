"""Registration lifecycle engine.

Owns every change of ``Registration.status`` and keeps the ``approved_*``
and ``expiry_date`` fields consistent with it.

States are ``pending``, ``approved`` and ``rejected``. Allowed moves:

    pending  -> approved | rejected
    approved -> pending
    rejected -> pending

Each transition is a single conditional ``UPDATE`` that only matches while the
row is still in the status that was read; if another action got there first
no row matches and ``ConflictError`` is raised, leaving the row untouched.

Expiry classification is pure and works on any iterables of objects
exposing the model attributes, so it can be exercised without a database.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from django.conf import settings
from django.core.cache import cache
from django.db import transaction
from django.db.models import Case, DateTimeField, F, Value, When
from django.db.models.functions import Coalesce
from django.utils import timezone

from .domain_catalog import Category
from .domain_registration import Registration, RegistrationStatus
from .exceptions import ConflictError, NotFoundError, ValidationError, store_errors

logger = logging.getLogger(__name__)

EXPIRY_ALERTS_CACHE_KEY = "registry:expiry-alerts"
_SECONDS_PER_DAY = 86400


def _default_days() -> int:
    return settings.REGISTRY_DEFAULT_EXPIRY_DAYS


def _expiry_days(category) -> int:
    days = getattr(category, "expiry_days", None) if category is not None else None
    return days or _default_days()


# ---------------------------------------------------------------------------
# Pure expiry arithmetic
# ---------------------------------------------------------------------------

def compute_expiry(category, reference: datetime) -> datetime:
    """``reference`` plus the category's validity window."""
    return reference + timedelta(days=_expiry_days(category))


def effective_expiry(registration, category) -> datetime:
    """Stored expiry, or the creation time plus the category window when none is stored."""
    if registration.expiry_date is not None:
        return registration.expiry_date
    return compute_expiry(category, registration.created_at)


def days_remaining(expiry: datetime, now: datetime) -> int:
    return math.ceil((expiry - now).total_seconds() / _SECONDS_PER_DAY)


@dataclass(frozen=True)
class ExpiryAlert:
    registration: object
    effective_expiry: datetime
    days_remaining: int


@dataclass
class ExpiryBuckets:
    expired: List[ExpiryAlert] = field(default_factory=list)
    expiring_soon: List[ExpiryAlert] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.expired) + len(self.expiring_soon)


def _category_index(categories) -> Dict[int, object]:
    if isinstance(categories, dict):
        return categories
    return {c.id: c for c in categories}


def classify_by_expiry(registrations: Iterable, categories, now: datetime) -> ExpiryBuckets:
    """Split pending registrations into expired and expiring-soon alerts.

    ``expired`` holds rows with zero or fewer days left, ``expiring_soon`` rows
    with 1..REGISTRY_EXPIRING_SOON_DAYS days left. Approved and rejected rows
    never appear. Both lists are sorted by effective expiry, earliest first.
    """
    by_id = _category_index(categories)
    soon_days = settings.REGISTRY_EXPIRING_SOON_DAYS
    buckets = ExpiryBuckets()
    for reg in registrations:
        if reg.status != RegistrationStatus.PENDING:
            continue
        expiry = effective_expiry(reg, by_id.get(reg.category_id))
        remaining = days_remaining(expiry, now)
        alert = ExpiryAlert(registration=reg, effective_expiry=expiry, days_remaining=remaining)
        if remaining <= 0:
            buckets.expired.append(alert)
        elif remaining <= soon_days:
            buckets.expiring_soon.append(alert)
    buckets.expired.sort(key=lambda a: a.effective_expiry)
    buckets.expiring_soon.sort(key=lambda a: a.effective_expiry)
    return buckets


def matches_expiry_window(registration, category, window_days: int, now: datetime) -> bool:
    """Admin list filter. Window 0 means already expired, N means 0..N days left."""
    if registration.status == RegistrationStatus.APPROVED:
        return False
    remaining = days_remaining(effective_expiry(registration, category), now)
    if window_days == 0:
        return remaining <= 0
    return 0 <= remaining <= window_days


def expiry_alerts(now: Optional[datetime] = None) -> ExpiryBuckets:
    """Classification over the current database rows, cached between changes."""
    if now is None:
        cached = cache.get(EXPIRY_ALERTS_CACHE_KEY)
        if cached is not None:
            return cached
    moment = now or timezone.now()
    with store_errors("expiry classification"):
        pending = list(
            Registration.objects.select_related("category", "panchayath").filter(status=RegistrationStatus.PENDING)
        )
        categories = {c.id: c for c in Category.objects.all()}
    buckets = classify_by_expiry(pending, categories, moment)
    if now is None:
        cache.set(EXPIRY_ALERTS_CACHE_KEY, buckets, settings.REGISTRY_EXPIRY_ALERT_CACHE_SECONDS)
    return buckets


def invalidate_expiry_alerts() -> None:
    cache.delete(EXPIRY_ALERTS_CACHE_KEY)


# ---------------------------------------------------------------------------
# Status transitions
# ---------------------------------------------------------------------------

def _require_actor(acting_admin: Optional[str]) -> str:
    name = (acting_admin or "").strip()
    if not name:
        raise ValidationError("An acting admin name is required.")
    return name


def _load(registration_id) -> Registration:
    reg = Registration.objects.select_related("category").filter(pk=registration_id).first()
    if reg is None:
        raise NotFoundError(f"Registration {registration_id} not found.")
    return reg


def _swap(reg: Registration, **changes) -> Registration:
    updated = Registration.objects.filter(pk=reg.pk, status=reg.status).update(**changes)
    if not updated:
        raise ConflictError()
    invalidate_expiry_alerts()
    reg.refresh_from_db()
    return reg


def approve(registration_id, acting_admin: str, now: Optional[datetime] = None) -> Registration:
    actor = _require_actor(acting_admin)
    now = now or timezone.now()
    with store_errors("approve registration"):
        reg = _load(registration_id)
        if reg.status != RegistrationStatus.PENDING:
            raise ValidationError(f"Only pending registrations can be approved (this one is {reg.status}).")
        fallback_expiry = compute_expiry(reg.category, now)
        reg = _swap(
            reg,
            status=RegistrationStatus.APPROVED,
            approved_date=now,
            approved_by=actor,
            expiry_date=Coalesce(F("expiry_date"), Value(fallback_expiry, output_field=DateTimeField())),
            updated_at=now,
        )
    logger.info("Registration %s approved by %s (expires %s)", reg.customer_id, actor, reg.expiry_date)
    return reg


def _normalize_ids(ids: Sequence) -> List[int]:
    try:
        cleaned = [int(i) for i in ids]
    except (TypeError, ValueError):
        raise ValidationError("Registration ids must be integers.")
    return list(dict.fromkeys(cleaned))


def bulk_approve(ids: Sequence, acting_admin: str, now: Optional[datetime] = None) -> int:
    """Approve a batch of pending registrations in one statement.

    Every row gets the same ``approved_date``. A missing ``expiry_date`` is
    filled per category; a stored one is kept. Any unknown or non-pending id
    rejects the whole batch.
    """
    actor = _require_actor(acting_admin)
    wanted = _normalize_ids(ids)
    if not wanted:
        raise ValidationError("No registrations selected.")
    now = now or timezone.now()
    with store_errors("bulk approve"):
        with transaction.atomic():
            rows = dict(
                Registration.objects.select_for_update()
                .filter(pk__in=wanted)
                .values_list("pk", "status")
            )
            missing = [pk for pk in wanted if pk not in rows]
            if missing:
                raise ValidationError(f"Unknown registration ids: {missing}")
            not_pending = [pk for pk in wanted if rows[pk] != RegistrationStatus.PENDING]
            if not_pending:
                raise ValidationError(f"Only pending registrations can be approved: {not_pending}")

            category_ids = set(
                Registration.objects.filter(pk__in=wanted).values_list("category_id", flat=True)
            )
            windows = Category.objects.filter(pk__in=category_ids).values_list("pk", "expiry_days")
            per_category = [
                When(category_id=cid, then=Value(now + timedelta(days=days or _default_days())))
                for cid, days in windows
            ]
            expiry_expr = Case(
                When(expiry_date__isnull=False, then=F("expiry_date")),
                *per_category,
                default=Value(now + timedelta(days=_default_days())),
                output_field=DateTimeField(),
            )
            updated = Registration.objects.filter(pk__in=wanted, status=RegistrationStatus.PENDING).update(
                status=RegistrationStatus.APPROVED,
                approved_date=now,
                approved_by=actor,
                expiry_date=expiry_expr,
                updated_at=now,
            )
            if updated != len(wanted):
                raise ConflictError()
    invalidate_expiry_alerts()
    logger.info("Bulk approved %d registrations by %s", updated, actor)
    return updated


def reject(registration_id, acting_admin: Optional[str] = None) -> Registration:
    with store_errors("reject registration"):
        reg = _load(registration_id)
        if reg.status != RegistrationStatus.PENDING:
            raise ValidationError(f"Only pending registrations can be rejected (this one is {reg.status}).")
        reg = _swap(reg, status=RegistrationStatus.REJECTED, updated_at=timezone.now())
    logger.info("Registration %s rejected by %s", reg.customer_id, acting_admin or "-")
    return reg


def restore_to_pending(registration_id, acting_admin: Optional[str] = None) -> Registration:
    """Move an approved or rejected registration back to pending.

    The stored ``expiry_date`` is kept; only the approval stamp is cleared.
    """
    with store_errors("restore registration"):
        reg = _load(registration_id)
        if reg.status == RegistrationStatus.PENDING:
            raise ValidationError("Registration is already pending.")
        reg = _swap(
            reg,
            status=RegistrationStatus.PENDING,
            approved_date=None,
            approved_by=None,
            updated_at=timezone.now(),
        )
    logger.info("Registration %s restored to pending by %s", reg.customer_id, acting_admin or "-")
    return reg
