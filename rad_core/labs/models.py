# rad_core/labs/models.py
from django.db import models

from rad_core.common.models import TenantScopedModel


def default_lab_settings() -> dict:
    return {"enableCompression": False, "autoAssignStudies": False}


class Lab(TenantScopedModel):
    """
    Imaging site under an organization. lab_staff users belong to one lab.
    """
    name = models.CharField(max_length=255)
    identifier = models.CharField(max_length=32)

    is_active = models.BooleanField(default=True, db_index=True)

    contact_person = models.CharField(max_length=255, blank=True, default="")
    contact_email = models.EmailField(blank=True, default="")
    contact_phone = models.CharField(max_length=32, blank=True, default="")

    settings = models.JSONField(default=default_lab_settings, blank=True)
    # header/footer image metadata only; binaries live in object storage
    report_branding = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "labs_lab"
        constraints = [
            models.UniqueConstraint(
                fields=["organization", "identifier"],
                name="uq_lab_identifier_per_org",
            ),
        ]
        indexes = [
            models.Index(fields=["organization_identifier", "is_active"]),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.organization_identifier}/{self.identifier})"

    @property
    def compression_enabled(self) -> bool:
        return bool((self.settings or {}).get("enableCompression", False))
