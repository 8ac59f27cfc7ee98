"""Reports endpoint: paid registrations and collection totals over a date range."""
from __future__ import annotations

from datetime import datetime

from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from . import reports
from .exceptions import ValidationError
from .permissions import MANAGE_REPORTS, REPORTS_READ, HasAdminPermission
from .serializers_registration import RegistrationSerializer


def _parse_date(value, name):
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid {name} date format (expected YYYY-MM-DD).")


class ReportSummaryView(APIView):
    permission_classes = [IsAuthenticated, HasAdminPermission]
    permission_action_map = {"get": (REPORTS_READ, MANAGE_REPORTS)}

    def get(self, request):
        date_from = _parse_date(request.query_params.get("from"), "from")
        date_to = _parse_date(request.query_params.get("to"), "to")
        result = reports.summary(date_from, date_to)
        rows = RegistrationSerializer(
            result.pop("registrations"),
            many=True,
            context={"request": request, "ledger": result.pop("ledger")},
        ).data
        return Response({**result, "registrations": rows})
