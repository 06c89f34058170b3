# rad_core/notes/models.py
import uuid

from django.conf import settings
from django.db import models

from rad_core.common.models import TimeStampedModel


class NoteType(models.TextChoices):
    GENERAL = "general", "General"
    CLINICAL = "clinical", "Clinical"
    TECHNICAL = "technical", "Technical"
    ADMINISTRATIVE = "administrative", "Administrative"
    QUALITY = "quality", "Quality"
    FOLLOWUP = "followup", "Follow-up"
    PRIORITY = "priority", "Priority"
    DISCUSSION = "discussion", "Discussion"
    CORRECTION = "correction", "Correction"
    VERIFICATION = "verification", "Verification"


class NotePriority(models.TextChoices):
    LOW = "low", "Low"
    NORMAL = "normal", "Normal"
    HIGH = "high", "High"
    URGENT = "urgent", "Urgent"


class NoteVisibility(models.TextChoices):
    PUBLIC = "public", "Public"
    MEDICAL = "medical", "Medical staff"
    ADMIN = "admin", "Administrators"
    PRIVATE = "private", "Private"


class NoteStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    RESOLVED = "resolved", "Resolved"
    ARCHIVED = "archived", "Archived"


class StudyNote(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    study = models.ForeignKey("studies.DicomStudy", on_delete=models.CASCADE, related_name="notes")
    organization_identifier = models.CharField(max_length=32, db_index=True)

    note_text = models.TextField()
    note_type = models.CharField(max_length=20, choices=NoteType.choices, default=NoteType.GENERAL)
    priority = models.CharField(max_length=10, choices=NotePriority.choices, default=NotePriority.NORMAL)
    visibility = models.CharField(max_length=10, choices=NoteVisibility.choices, default=NoteVisibility.PUBLIC, db_index=True)
    status = models.CharField(max_length=10, choices=NoteStatus.choices, default=NoteStatus.ACTIVE, db_index=True)

    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="study_notes")
    created_by_name = models.CharField(max_length=255, blank=True, default="")
    created_by_role = models.CharField(max_length=32, blank=True, default="")

    # workflow status the study was in when the note was written
    related_workflow_status = models.CharField(max_length=40, blank=True, default="")

    is_edited = models.BooleanField(default=False)
    edited_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "notes_study_note"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["study", "status", "created_at"]),
            models.Index(fields=["organization_identifier", "visibility"]),
        ]


class NoteReply(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    note = models.ForeignKey(StudyNote, on_delete=models.CASCADE, related_name="replies")
    reply_text = models.TextField()
    replied_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="+")
    replied_by_name = models.CharField(max_length=255, blank=True, default="")
    replied_by_role = models.CharField(max_length=32, blank=True, default="")
    replied_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "notes_note_reply"
        ordering = ["replied_at"]
