# rad_core/studies/models.py
import uuid

from django.conf import settings
from django.db import models

from rad_core.common.models import TenantScopedModel
from rad_core.studies.workflow import WorkflowStatus


class StudyPriority(models.TextChoices):
    NORMAL = "normal", "Normal"
    HIGH = "high", "High"
    URGENT = "urgent", "Urgent"
    EMERGENCY = "emergency", "Emergency"


class DicomStudy(TenantScopedModel):
    """
    Workflow record of an imaging study. Pixel data stays in the PACS;
    only metadata and workflow state live here.
    """
    study_instance_uid = models.CharField(max_length=128)
    orthanc_study_id = models.CharField(max_length=128, blank=True, default="")
    accession_number = models.CharField(max_length=64, blank=True, default="", db_index=True)
    modality = models.CharField(max_length=16, blank=True, default="")
    study_date = models.DateTimeField(null=True, blank=True)

    patient_name = models.CharField(max_length=255, blank=True, default="")
    patient_id = models.CharField(max_length=64, blank=True, default="", db_index=True)

    source_lab = models.ForeignKey(
        "labs.Lab",
        on_delete=models.SET_NULL,
        related_name="studies",
        null=True,
        blank=True,
    )

    workflow_status = models.CharField(
        max_length=40,
        choices=WorkflowStatus.choices,
        default=WorkflowStatus.NEW_STUDY_RECEIVED,
        db_index=True,
    )

    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="assigned_studies",
        null=True,
        blank=True,
    )
    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="+",
        null=True,
        blank=True,
    )
    assigned_at = models.DateTimeField(null=True, blank=True)
    priority = models.CharField(max_length=16, choices=StudyPriority.choices, default=StudyPriority.NORMAL)

    category_tracking = models.JSONField(default=dict, blank=True)
    notes_count = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "studies_dicom_study"
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "study_instance_uid"],
                name="uq_study_uid_per_org",
            ),
        ]
        indexes = [
            models.Index(fields=["organization_identifier", "workflow_status"]),
            models.Index(fields=["organization_identifier", "source_lab", "workflow_status"]),
            models.Index(fields=["assigned_to", "workflow_status"]),
        ]

    def __str__(self) -> str:
        return f"{self.study_instance_uid} [{self.workflow_status}]"


class StudyStatusChange(models.Model):
    """
    Immutable history row, one per workflow transition.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    study = models.ForeignKey(DicomStudy, on_delete=models.CASCADE, related_name="status_changes")
    organization_identifier = models.CharField(max_length=32, db_index=True)

    from_status = models.CharField(max_length=40)
    to_status = models.CharField(max_length=40)

    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="+",
        null=True,
        blank=True,
    )
    changed_at = models.DateTimeField(auto_now_add=True, db_index=True)
    note = models.TextField(blank=True, default="")

    class Meta:
        db_table = "studies_status_change"
        ordering = ["changed_at"]
        indexes = [
            models.Index(fields=["study", "changed_at"]),
        ]
