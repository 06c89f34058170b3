# rad_core/studies/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from rad_core.common.api.pagination import paginate
from rad_core.iam.roles import Role, granted_roles
from rad_core.iam.tenancy import scope_identifier
from rad_core.studies.api.serializers import (
    AssignRequestSerializer,
    DicomStudySerializer,
    StatusChangeSerializer,
    TransitionRequestSerializer,
)
from rad_core.studies.models import DicomStudy
from rad_core.studies.permissions import StudyPermission
from rad_core.studies.selectors import filter_studies, get_study, status_counts, study_qs
from rad_core.studies.services import StudyWorkflowService
from rad_core.studies.workflow import allowed_targets


def _parse_uuid(value, field: str = "id") -> UUID:
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError({field: "Invalid UUID"})


def _only_lab_staff(user) -> bool:
    return granted_roles(user) == {Role.LAB_STAFF}


@extend_schema_view(
    list=extend_schema(
        tags=["Studies"],
        parameters=[
            OpenApiParameter("status", str, required=False),
            OpenApiParameter("category", str, required=False, enum=["pending", "inprogress", "completed"]),
            OpenApiParameter("lab", str, required=False),
            OpenApiParameter("search", str, required=False),
        ],
        responses={200: DicomStudySerializer(many=True)},
    ),
    retrieve=extend_schema(tags=["Studies"], responses={200: DicomStudySerializer}),
    stats=extend_schema(tags=["Studies"]),
    history=extend_schema(tags=["Studies"], responses={200: StatusChangeSerializer(many=True)}),
    transition=extend_schema(tags=["Studies"], request=TransitionRequestSerializer, responses={200: DicomStudySerializer}),
    assign=extend_schema(tags=["Studies"], request=AssignRequestSerializer, responses={200: DicomStudySerializer}),
)
class StudyViewSet(viewsets.ViewSet):
    permission_classes = [StudyPermission]

    serializer_class = DicomStudySerializer
    queryset = DicomStudy.objects.none()

    def _base_qs(self, request):
        qs = study_qs(organization_identifier=scope_identifier(request))
        # lab staff only see their own lab's studies
        if _only_lab_staff(request.user):
            qs = qs.filter(source_lab_id=request.user.lab_id)
        return qs

    def list(self, request):
        params = request.query_params
        lab = params.get("lab")
        qs = filter_studies(
            self._base_qs(request),
            status=params.get("status"),
            category=params.get("category"),
            lab_id=_parse_uuid(lab, "lab") if lab else None,
            search=params.get("search"),
        )
        return paginate(request, qs, DicomStudySerializer)

    def retrieve(self, request, pk=None):
        study = self._base_qs(request).get(id=_parse_uuid(pk))
        data = DicomStudySerializer(study).data
        data["allowedTransitions"] = allowed_targets(study.workflow_status, granted_roles(request.user))
        return Response({"success": True, "data": data}, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request):
        qs = self._base_qs(request)
        lab = request.query_params.get("lab")
        if lab:
            qs = qs.filter(source_lab_id=_parse_uuid(lab, "lab"))
        return Response({"success": True, "data": status_counts(qs)}, status=status.HTTP_200_OK)

    @action(detail=True, methods=["get"], url_path="history")
    def history(self, request, pk=None):
        study = self._base_qs(request).get(id=_parse_uuid(pk))
        rows = study.status_changes.all()
        return Response({"success": True, "data": StatusChangeSerializer(rows, many=True).data})

    @action(detail=True, methods=["post"], url_path="transition")
    def transition(self, request, pk=None):
        ser = TransitionRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        # visibility check first so foreign studies 404
        self._base_qs(request).get(id=_parse_uuid(pk))

        study = StudyWorkflowService.transition(
            organization_identifier=scope_identifier(request),
            study_id=_parse_uuid(pk),
            to_status=ser.validated_data["status"],
            actor=request.user,
            note=ser.validated_data.get("note", ""),
        )
        return Response({"success": True, "data": DicomStudySerializer(study).data}, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="assign")
    def assign(self, request, pk=None):
        ser = AssignRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        study = StudyWorkflowService.assign(
            organization_identifier=scope_identifier(request),
            study_id=_parse_uuid(pk),
            assignee_id=ser.validated_data["doctorId"],
            actor=request.user,
            priority=ser.validated_data.get("priority"),
            note=ser.validated_data.get("note", ""),
        )
        return Response({"success": True, "data": DicomStudySerializer(study).data}, status=status.HTTP_200_OK)
