# rad_core/iam/api/auth.py

from __future__ import annotations

from django.db.models import Count, Q
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from rad_core.common.permissions import IsSuperAdmin
from rad_core.iam.api.schema_serializers import (
    LoginRequestSerializer,
    MeResponseSerializer,
    MessageResponseSerializer,
    OrganizationOptionSerializer,
    SessionResponseSerializer,
    SwitchOrganizationRequestSerializer,
)
from rad_core.iam.models import User
from rad_core.iam.projections import lab_summary, project_user
from rad_core.iam.roles import Role
from rad_core.iam.sessions import IssuedSession, SessionIssuer
from rad_core.labs.selectors import active_lab_count
from rad_core.organizations.selectors import active_organizations_qs


def _session_response(issuer: SessionIssuer, session: IssuedSession, *, message: str) -> Response:
    res = Response(
        {
            "success": True,
            "message": message,
            "token": session.token,
            "expiresIn": session.expires_in,
            "user": project_user(session.user),
            "organizationContext": session.context.label,
            "redirectTo": session.redirect_to,
        },
        status=status.HTTP_200_OK,
    )
    issuer.set_cookie(res, session.token)
    return res


def _organization_stats(organization_identifier: str) -> dict:
    users = User.objects.filter(organization_identifier=organization_identifier).aggregate(
        total=Count("id"),
        active=Count("id", filter=Q(is_active=True)),
    )
    return {
        "totalUsers": users["total"],
        "activeUsers": users["active"],
        "activeLabs": active_lab_count(organization_identifier=organization_identifier),
    }


class LoginView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    @extend_schema(request=LoginRequestSerializer, responses={200: SessionResponseSerializer}, tags=["Auth"])
    def post(self, request):
        ser = LoginRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        issuer = SessionIssuer()
        session = issuer.login(
            email=ser.validated_data.get("email"),
            password=ser.validated_data.get("password"),
        )
        return _session_response(issuer, session, message="Login successful.")


class LabLoginView(APIView):
    """Lab connector login; lab_staff with an active organization and lab only."""

    authentication_classes = []
    permission_classes = [AllowAny]

    @extend_schema(request=LoginRequestSerializer, responses={200: SessionResponseSerializer}, tags=["Auth"])
    def post(self, request):
        ser = LoginRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        issuer = SessionIssuer()
        session = issuer.lab_login(
            email=ser.validated_data.get("email"),
            password=ser.validated_data.get("password"),
        )
        user = session.user
        return Response(
            {
                "success": True,
                "message": "Lab Connector authenticated successfully.",
                "token": session.token,
                "expiresIn": session.expires_in,
                "user": {
                    "id": str(user.id),
                    "fullName": user.full_name,
                    "email": user.email,
                    "role": user.role,
                    "organizationIdentifier": user.organization.identifier,
                    "lab": lab_summary(user.lab),
                },
            },
            status=status.HTTP_200_OK,
        )


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses={200: MeResponseSerializer}, tags=["Auth"])
    def get(self, request):
        user = request.user
        token_ctx = request.auth

        body = {
            "success": True,
            "user": project_user(user),
            "organizationContext": user.organization_identifier or "global",
            "tokenContext": {
                "organizationId": token_ctx.organization_id,
                "organizationIdentifier": token_ctx.organization_identifier,
                "labIdentifier": token_ctx.lab_identifier,
            },
        }
        if user.role in (Role.ADMIN, Role.OWNER) and user.organization_identifier:
            body["organizationStats"] = _organization_stats(user.organization_identifier)

        return Response(body, status=status.HTTP_200_OK)


class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=None, responses={200: MessageResponseSerializer}, tags=["Auth"])
    def post(self, request):
        issuer = SessionIssuer()
        issuer.logout(user=request.user)

        res = Response({"success": True, "message": "Logged out successfully."}, status=status.HTTP_200_OK)
        issuer.clear_cookie(res)
        return res


class RefreshTokenView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=None, responses={200: SessionResponseSerializer}, tags=["Auth"])
    def post(self, request):
        issuer = SessionIssuer()
        session = issuer.refresh(user=request.user, token_context=request.auth)
        return _session_response(issuer, session, message="Token refreshed.")


class SwitchOrganizationView(APIView):
    permission_classes = [IsSuperAdmin]

    @extend_schema(request=SwitchOrganizationRequestSerializer, responses={200: SessionResponseSerializer}, tags=["Auth"])
    def post(self, request):
        ser = SwitchOrganizationRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        issuer = SessionIssuer()
        session = issuer.switch_organization(
            user=request.user,
            identifier=ser.validated_data.get("organizationIdentifier"),
        )
        return _session_response(issuer, session, message="Organization context switched.")


class OrganizationsView(APIView):
    permission_classes = [IsSuperAdmin]

    @extend_schema(responses={200: OrganizationOptionSerializer(many=True)}, tags=["Auth"])
    def get(self, request):
        data = OrganizationOptionSerializer(active_organizations_qs(), many=True).data
        return Response({"success": True, "data": data}, status=status.HTTP_200_OK)
