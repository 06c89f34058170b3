# rad_core/organizations/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from rad_core.common.api.pagination import paginate
from rad_core.common.permissions import IsSuperAdmin
from rad_core.iam.projections import SessionUserSerializer, lab_summary
from rad_core.organizations.api.serializers import (
    OrganizationCreateSerializer,
    OrganizationSerializer,
    OrganizationUpdateSerializer,
)
from rad_core.organizations.models import Organization
from rad_core.organizations.selectors import get_organization, organization_stats, search_organizations
from rad_core.organizations.services import OrganizationService


def _parse_uuid(value) -> UUID:
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError({"detail": "Invalid organization ID"})


@extend_schema_view(
    list=extend_schema(
        tags=["Super Admin"],
        parameters=[
            OpenApiParameter("search", str, required=False),
            OpenApiParameter("status", str, required=False),
        ],
        responses={200: OrganizationSerializer(many=True)},
    ),
    retrieve=extend_schema(tags=["Super Admin"], responses={200: OrganizationSerializer}),
    create=extend_schema(tags=["Super Admin"], request=OrganizationCreateSerializer, responses={201: OrganizationSerializer}),
    update=extend_schema(tags=["Super Admin"], request=OrganizationUpdateSerializer, responses={200: OrganizationSerializer}),
    partial_update=extend_schema(tags=["Super Admin"], request=OrganizationUpdateSerializer, responses={200: OrganizationSerializer}),
    destroy=extend_schema(tags=["Super Admin"], responses={200: OrganizationSerializer}),
    stats=extend_schema(tags=["Super Admin"]),
)
class OrganizationViewSet(viewsets.ViewSet):
    """
    Super-admin organization management.
    Routing is centralized in rad_core/api/urls.py.
    """

    permission_classes = [IsSuperAdmin]

    serializer_class = OrganizationSerializer
    queryset = Organization.objects.none()

    def list(self, request):
        qs = search_organizations(
            search=request.query_params.get("search"),
            status=request.query_params.get("status"),
        )
        return paginate(request, qs, OrganizationSerializer)

    def retrieve(self, request, pk=None):
        org = get_organization(organization_id=_parse_uuid(pk))
        return Response({"success": True, "data": OrganizationSerializer(org).data}, status=status.HTTP_200_OK)

    def create(self, request):
        ser = OrganizationCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)

        result = OrganizationService.create(created_by=request.user, **data)

        admin = dict(SessionUserSerializer(result.admin_user).data)
        if result.temp_password:
            admin["tempPassword"] = result.temp_password

        return Response(
            {
                "success": True,
                "message": "Organization created successfully.",
                "data": {
                    "organization": OrganizationSerializer(result.organization).data,
                    "adminUser": admin,
                    "labs": [lab_summary(lab) for lab in result.labs],
                },
            },
            status=status.HTTP_201_CREATED,
        )

    def _update(self, request, pk, *, partial: bool):
        ser = OrganizationUpdateSerializer(data=request.data, partial=partial)
        ser.is_valid(raise_exception=True)
        data = {k: v for k, v in ser.validated_data.items() if k != "identifier"}

        org = OrganizationService.update(organization_id=_parse_uuid(pk), data=data)
        return Response({"success": True, "data": OrganizationSerializer(org).data}, status=status.HTTP_200_OK)

    def update(self, request, pk=None):
        return self._update(request, pk, partial=False)

    def partial_update(self, request, pk=None):
        return self._update(request, pk, partial=True)

    def destroy(self, request, pk=None):
        org = OrganizationService.deactivate(organization_id=_parse_uuid(pk))
        return Response(
            {
                "success": True,
                "message": "Organization deactivated successfully.",
                "data": OrganizationSerializer(org).data,
            },
            status=status.HTTP_200_OK,
        )

    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request):
        return Response({"success": True, "data": organization_stats()}, status=status.HTTP_200_OK)
