# rad_core/studies/admin.py
from __future__ import annotations

from django.contrib import admin

from rad_core.studies.models import DicomStudy, StudyStatusChange


class StudyStatusChangeInline(admin.TabularInline):
    model = StudyStatusChange
    extra = 0
    can_delete = False
    readonly_fields = ("from_status", "to_status", "changed_by", "changed_at", "note")


@admin.register(DicomStudy)
class DicomStudyAdmin(admin.ModelAdmin):
    list_display = ("study_instance_uid", "organization_identifier", "modality", "workflow_status", "priority", "created_at")
    list_filter = ("workflow_status", "priority", "organization_identifier")
    search_fields = ("study_instance_uid", "accession_number", "patient_name", "patient_id")
    readonly_fields = ("workflow_status", "category_tracking", "notes_count")
    inlines = [StudyStatusChangeInline]
