"""DRF exception handler rendering ``RegistryError`` as ``{"detail", "code"}``."""
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .exceptions import RegistryError


def api_exception_handler(exc, context):
    if isinstance(exc, RegistryError):
        return Response({"detail": exc.detail, "code": exc.code}, status=exc.status_code)
    return exception_handler(exc, context)
