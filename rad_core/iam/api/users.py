# rad_core/iam/api/users.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from rad_core.common.api.pagination import paginate
from rad_core.common.permissions import authorize
from rad_core.iam.api.serializers import (
    AvailableRoleSerializer,
    ManagedUserSerializer,
    UserCreateSerializer,
    UserRolesSerializer,
)
from rad_core.iam.models import User
from rad_core.iam.roles import Role, creatable_roles
from rad_core.iam.selectors import users_for_organization
from rad_core.iam.services import UserService, role_created_message, status_toggled_message
from rad_core.iam.tenancy import scope_identifier

CanManageUsers = authorize(Role.ADMIN, Role.GROUP_ID, Role.SUPER_ADMIN)


def _parse_uuid(value) -> UUID:
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError({"detail": "Invalid user ID"})


def _parse_bool(value: str | None) -> bool | None:
    if value is None or value == "":
        return None
    return value.strip().lower() in ("1", "true", "yes")


@extend_schema_view(
    list=extend_schema(
        tags=["Users"],
        parameters=[
            OpenApiParameter("role", str, required=False),
            OpenApiParameter("isActive", bool, required=False),
            OpenApiParameter("search", str, required=False),
        ],
        responses={200: ManagedUserSerializer(many=True)},
    ),
    retrieve=extend_schema(tags=["Users"], responses={200: ManagedUserSerializer}),
    create=extend_schema(tags=["Users"], request=UserCreateSerializer, responses={201: ManagedUserSerializer}),
    roles=extend_schema(tags=["Users"], request=UserRolesSerializer, responses={200: ManagedUserSerializer}),
    toggle_status=extend_schema(tags=["Users"], request=None, responses={200: ManagedUserSerializer}),
    reset_password=extend_schema(tags=["Users"], request=None),
    available_roles=extend_schema(tags=["Users"], responses={200: AvailableRoleSerializer(many=True)}),
)
class UserViewSet(viewsets.ViewSet):
    """
    Account management inside the acting organization (a super_admin acts
    in the organization its token was switched to).
    """

    permission_classes = [CanManageUsers]

    serializer_class = ManagedUserSerializer
    queryset = User.objects.none()

    def _organization(self, request):
        return UserService.resolve_organization(identifier=scope_identifier(request))

    def _target(self, request, pk):
        organization = self._organization(request)
        return UserService.get_user(organization_identifier=organization.identifier, user_id=_parse_uuid(pk))

    def list(self, request):
        organization = self._organization(request)
        qs = users_for_organization(
            organization_identifier=organization.identifier,
            role=request.query_params.get("role"),
            is_active=_parse_bool(request.query_params.get("isActive")),
            search=request.query_params.get("search"),
        )
        return paginate(request, qs, ManagedUserSerializer)

    def retrieve(self, request, pk=None):
        user = self._target(request, pk)
        return Response({"success": True, "data": ManagedUserSerializer(user).data}, status=status.HTTP_200_OK)

    def create(self, request):
        ser = UserCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        result = UserService.create_user(
            actor=request.user,
            organization=self._organization(request),
            **ser.validated_data,
        )

        data = dict(ManagedUserSerializer(result.user).data)
        if result.temp_password:
            data["tempPassword"] = result.temp_password
        return Response(
            {"success": True, "message": role_created_message(result.user.role), "data": data},
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["put", "patch"], url_path="roles")
    def roles(self, request, pk=None):
        ser = UserRolesSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        user = UserService.update_roles(actor=request.user, target=self._target(request, pk), **ser.validated_data)
        return Response(
            {
                "success": True,
                "message": "User role configuration updated successfully",
                "data": ManagedUserSerializer(user).data,
            },
            status=status.HTTP_200_OK,
        )

    @action(detail=True, methods=["post", "patch"], url_path="toggle-status")
    def toggle_status(self, request, pk=None):
        user = UserService.toggle_status(actor=request.user, target=self._target(request, pk))
        return Response(
            {"success": True, "message": status_toggled_message(user), "data": ManagedUserSerializer(user).data},
            status=status.HTTP_200_OK,
        )

    @action(detail=True, methods=["post"], url_path="reset-password")
    def reset_password(self, request, pk=None):
        result = UserService.reset_password(actor=request.user, target=self._target(request, pk))
        return Response(
            {
                "success": True,
                "message": "Password reset successfully",
                "data": {"userId": str(result.user.id), "tempPassword": result.temp_password},
            },
            status=status.HTTP_200_OK,
        )

    @action(detail=False, methods=["get"], url_path="available-roles")
    def available_roles(self, request):
        allowed = creatable_roles(request.user)
        data = [{"value": r.value, "label": r.label} for r in Role if r in allowed]
        return Response({"success": True, "data": data}, status=status.HTTP_200_OK)
