"""Category transfer requests.

A citizen asks to move a registration to another category; nothing on the
registration changes until an admin approves. Approval re-parents the
registration and re-snapshots its fee in the same transaction that closes
the request.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.db import IntegrityError, transaction
from django.utils import timezone

from .domain_catalog import Category
from .domain_registration import CategoryTransferRequest, Registration, TransferStatus
from .exceptions import ConflictError, NotFoundError, ValidationError, store_errors
from .lifecycle import invalidate_expiry_alerts

logger = logging.getLogger(__name__)

_PENDING_EXISTS = "A category transfer request is already pending for this registration."


def pending_request_for(registration) -> Optional[CategoryTransferRequest]:
    registration_id = getattr(registration, "pk", registration)
    with store_errors("load transfer request"):
        return (
            CategoryTransferRequest.objects.select_related("from_category", "to_category")
            .filter(registration_id=registration_id, status=TransferStatus.PENDING)
            .first()
        )


def request_transfer(registration_id, to_category_id, reason: Optional[str] = None) -> CategoryTransferRequest:
    with store_errors("request category transfer"):
        registration = Registration.objects.filter(pk=registration_id).first()
        if registration is None:
            raise NotFoundError(f"Registration {registration_id} not found.")
        target = Category.objects.filter(pk=to_category_id).first()
        if target is None:
            raise NotFoundError(f"Category {to_category_id} not found.")
        if target.pk == registration.category_id:
            raise ValidationError("The registration is already in this category.")
        if not target.is_active:
            raise ValidationError("The selected category is not open for registration.")
        if pending_request_for(registration) is not None:
            raise ValidationError(_PENDING_EXISTS)
        try:
            with transaction.atomic():
                req = CategoryTransferRequest.objects.create(
                    registration=registration,
                    from_category_id=registration.category_id,
                    to_category=target,
                    customer_id=registration.customer_id,
                    full_name=registration.full_name,
                    mobile_number=registration.mobile_number,
                    reason=(reason or "").strip() or None,
                )
        except IntegrityError:
            # lost the race against a concurrent request for the same registration
            raise ValidationError(_PENDING_EXISTS)
    logger.info(
        "Transfer requested for %s: category %s -> %s",
        registration.customer_id,
        registration.category_id,
        target.pk,
    )
    return req


def _pending_for_update(request_id) -> CategoryTransferRequest:
    req = CategoryTransferRequest.objects.select_for_update().filter(pk=request_id).first()
    if req is None:
        raise NotFoundError(f"Transfer request {request_id} not found.")
    if req.status != TransferStatus.PENDING:
        raise ValidationError(f"Transfer request is already {req.status}.")
    return req


def approve_transfer(request_id, acting_admin: str) -> CategoryTransferRequest:
    """Move the registration to the requested category and close the request.

    The target category is not re-checked for ``is_active`` here; a category
    disabled after the request was filed can still be approved into.
    """
    now = timezone.now()
    with store_errors("approve category transfer"):
        with transaction.atomic():
            req = _pending_for_update(request_id)
            target = Category.objects.filter(pk=req.to_category_id).first()
            if target is None:
                raise NotFoundError(f"Category {req.to_category_id} not found.")
            fee = target.charged_fee
            moved = Registration.objects.filter(pk=req.registration_id).update(
                category_id=target.pk,
                fee=fee,
                updated_at=now,
            )
            if not moved:
                raise NotFoundError(f"Registration {req.registration_id} not found.")
            closed = CategoryTransferRequest.objects.filter(pk=req.pk, status=TransferStatus.PENDING).update(
                status=TransferStatus.APPROVED,
                processed_at=now,
                processed_by=acting_admin,
                updated_at=now,
            )
            if not closed:
                raise ConflictError()
    invalidate_expiry_alerts()
    req.refresh_from_db()
    logger.info(
        "Transfer %s approved by %s: %s moved to category %s (fee %s)",
        req.pk,
        acting_admin,
        req.customer_id,
        target.pk,
        fee,
    )
    return req


def reject_transfer(request_id, acting_admin: str) -> CategoryTransferRequest:
    now = timezone.now()
    with store_errors("reject category transfer"):
        with transaction.atomic():
            req = _pending_for_update(request_id)
            CategoryTransferRequest.objects.filter(pk=req.pk).update(
                status=TransferStatus.REJECTED,
                processed_at=now,
                processed_by=acting_admin,
                updated_at=now,
            )
    req.refresh_from_db()
    logger.info("Transfer %s rejected by %s", req.pk, acting_admin)
    return req
