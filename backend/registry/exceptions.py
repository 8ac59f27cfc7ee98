"""Typed errors raised by the registry services and their HTTP rendering.

Services raise these instead of returning error payloads; the DRF exception
handler in ``registry.exception_handler`` turns them into ``{"detail", "code"}``
responses so every view reports failures the same way.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from django.db import DatabaseError
from rest_framework import status

logger = logging.getLogger(__name__)

__all__ = [
    "RegistryError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "SchemaMissingError",
    "StoreError",
    "AuthenticationError",
    "PermissionDeniedError",
    "ExternalDirectoryError",
    "store_errors",
]


class RegistryError(Exception):
    """Base class for every failure a registry operation reports to its caller."""

    code = "registry_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "The operation could not be completed."

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(RegistryError):
    code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input."


class NotFoundError(RegistryError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."


class ConflictError(RegistryError):
    """The row changed state between read and write."""

    code = "conflict"
    status_code = status.HTTP_409_CONFLICT
    default_detail = "The record was changed by another action. Reload and try again."


class SchemaMissingError(RegistryError):
    code = "schema_missing"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "A required table does not exist. Run setup (migrate) first."


class StoreError(RegistryError):
    code = "store_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Database error."


class AuthenticationError(RegistryError):
    code = "authentication_failed"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Invalid username or password."


class PermissionDeniedError(RegistryError):
    code = "permission_denied"
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have permission to perform this action."


class ExternalDirectoryError(RegistryError):
    code = "external_directory_error"
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "The external directory is unavailable."


_UNDEFINED_TABLE_PGCODE = "42P01"


def _is_undefined_table(exc: DatabaseError) -> bool:
    cause = getattr(exc, "__cause__", None)
    pgcode = getattr(cause, "pgcode", None) or getattr(cause, "sqlstate", None)
    if pgcode == _UNDEFINED_TABLE_PGCODE:
        return True
    message = str(exc).lower()
    return "no such table" in message or ("relation" in message and "does not exist" in message)


@contextmanager
def store_errors(what: str = "database operation") -> Iterator[None]:
    """Re-raise database failures inside the block as typed registry errors."""
    try:
        yield
    except DatabaseError as exc:
        if _is_undefined_table(exc):
            logger.error("Schema missing during %s: %s", what, exc)
            raise SchemaMissingError() from exc
        logger.exception("Store failure during %s", what)
        raise StoreError(f"{what} failed: {exc}") from exc
