"""Admin login, token refresh and current-session views."""
from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from .auth_backends import issue_tokens, login, session_for_admin_id
from .exceptions import AuthenticationError
from .serializers import LoginSerializer, TokenRefreshInputSerializer

logger = logging.getLogger(__name__)


def _session_payload(session):
    return {
        "id": session.admin_id,
        "username": session.admin_name,
        "permissions": sorted(session.permissions),
    }


class LoginView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"detail": "Both username and password are required."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        session = login(serializer.validated_data["username"], serializer.validated_data["password"])
        tokens = issue_tokens(session)
        return Response({**tokens, "admin": _session_payload(session)}, status=status.HTTP_200_OK)


class TokenRefreshView(APIView):
    """Exchange a refresh token for a new access token while the admin is still active."""

    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = TokenRefreshInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            refresh = RefreshToken(serializer.validated_data["refresh"])
        except TokenError as exc:
            raise AuthenticationError(str(exc))
        session = session_for_admin_id(refresh.get("admin_id"))
        if session is None:
            raise AuthenticationError("Admin account is inactive or missing.")
        return Response({"access": str(refresh.access_token)})


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(_session_payload(request.user))
