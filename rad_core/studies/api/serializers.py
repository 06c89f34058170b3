# rad_core/studies/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from rad_core.studies.models import DicomStudy, StudyPriority, StudyStatusChange
from rad_core.studies.workflow import WorkflowStatus, bucket_of


class DicomStudySerializer(serializers.ModelSerializer):
    studyInstanceUID = serializers.CharField(source="study_instance_uid")
    orthancStudyID = serializers.CharField(source="orthanc_study_id")
    accessionNumber = serializers.CharField(source="accession_number")
    studyDate = serializers.DateTimeField(source="study_date")
    patientName = serializers.CharField(source="patient_name")
    patientId = serializers.CharField(source="patient_id")
    organizationIdentifier = serializers.CharField(source="organization_identifier")
    sourceLab = serializers.UUIDField(source="source_lab_id")
    workflowStatus = serializers.CharField(source="workflow_status")
    category = serializers.SerializerMethodField()
    assignedTo = serializers.UUIDField(source="assigned_to_id")
    assignedBy = serializers.UUIDField(source="assigned_by_id")
    assignedAt = serializers.DateTimeField(source="assigned_at")
    categoryTracking = serializers.JSONField(source="category_tracking")
    notesCount = serializers.IntegerField(source="notes_count")
    createdAt = serializers.DateTimeField(source="created_at")

    class Meta:
        model = DicomStudy
        fields = [
            "id",
            "studyInstanceUID",
            "orthancStudyID",
            "accessionNumber",
            "modality",
            "studyDate",
            "patientName",
            "patientId",
            "organizationIdentifier",
            "sourceLab",
            "workflowStatus",
            "category",
            "priority",
            "assignedTo",
            "assignedBy",
            "assignedAt",
            "categoryTracking",
            "notesCount",
            "createdAt",
        ]
        read_only_fields = fields

    def get_category(self, obj) -> str | None:
        return bucket_of(obj.workflow_status)


class StatusChangeSerializer(serializers.ModelSerializer):
    fromStatus = serializers.CharField(source="from_status")
    toStatus = serializers.CharField(source="to_status")
    changedBy = serializers.UUIDField(source="changed_by_id")
    changedAt = serializers.DateTimeField(source="changed_at")

    class Meta:
        model = StudyStatusChange
        fields = ["id", "fromStatus", "toStatus", "changedBy", "changedAt", "note"]
        read_only_fields = fields


class TransitionRequestSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=WorkflowStatus.choices)
    note = serializers.CharField(required=False, allow_blank=True, default="")


class AssignRequestSerializer(serializers.Serializer):
    doctorId = serializers.UUIDField()
    priority = serializers.ChoiceField(choices=StudyPriority.choices, required=False)
    note = serializers.CharField(required=False, allow_blank=True, default="")
