# rad_core/report_templates/models.py
import re

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from rad_core.common.models import TenantScopedModel

_TAG_RE = re.compile(r"<[^>]*>")


class TemplateScope(models.TextChoices):
    GLOBAL = "global", "Global"
    DOCTOR_SPECIFIC = "doctor_specific", "Doctor Specific"


class TemplateCategory(models.TextChoices):
    GENERAL = "General", "General"
    CT = "CT", "CT"
    CR = "CR", "CR"
    CT_SCREENING = "CT SCREENING FORMAT", "CT Screening Format"
    ECHO = "ECHO", "Echo"
    EEG_TMT_NCS = "EEG-TMT-NCS", "EEG-TMT-NCS"
    MR = "MR", "MR"
    MRI_SCREENING = "MRI SCREENING FORMAT", "MRI Screening Format"
    PT = "PT", "PT"
    US = "US", "US"
    OTHER = "Other", "Other"


def html_has_text(content: str | None) -> bool:
    return bool(_TAG_RE.sub("", content or "").strip())


class HTMLTemplate(TenantScopedModel):
    title = models.CharField(max_length=100)
    category = models.CharField(max_length=32, choices=TemplateCategory.choices, db_index=True)
    html_content = models.TextField()

    template_scope = models.CharField(
        max_length=20,
        choices=TemplateScope.choices,
        default=TemplateScope.DOCTOR_SPECIFIC,
        db_index=True,
    )
    assigned_doctor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="assigned_templates",
        null=True,
        blank=True,
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="created_templates",
    )

    usage_count = models.PositiveIntegerField(default=0)
    last_used_at = models.DateTimeField(null=True, blank=True)
    is_default = models.BooleanField(default=False)
    tags = models.JSONField(default=list, blank=True)
    description = models.CharField(max_length=500, blank=True, default="")

    version = models.PositiveIntegerField(default=1)
    parent_template = models.ForeignKey("self", on_delete=models.SET_NULL, null=True, blank=True, related_name="+")

    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = "report_templates_html_template"
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "template_scope", "assigned_doctor", "title"],
                condition=Q(is_active=True),
                name="uq_active_template_title",
            ),
        ]
        indexes = [
            models.Index(fields=["organization_identifier", "template_scope", "is_active"]),
            models.Index(fields=["assigned_doctor", "category", "is_active"]),
        ]

    def __str__(self) -> str:
        return f"{self.title} [{self.template_scope}]"

    def save(self, *args, **kwargs):
        # scope invariant: doctor_specific needs a doctor, global never has one
        if self.template_scope == TemplateScope.DOCTOR_SPECIFIC and not self.assigned_doctor_id:
            raise ValidationError({"assigned_doctor": "Doctor-specific templates must have an assigned doctor"})
        if self.template_scope == TemplateScope.GLOBAL:
            self.assigned_doctor = None
        if not html_has_text(self.html_content):
            raise ValidationError({"html_content": "Template must contain actual content"})
        self.tags = [str(t).strip().lower() for t in (self.tags or []) if str(t).strip()]
        super().save(*args, **kwargs)
