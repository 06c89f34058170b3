# rad_core/organizations/models.py
import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator
from django.db import models

IDENTIFIER_PATTERN = r"^[A-Z0-9_]+$"


class OrganizationStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"
    SUSPENDED = "suspended", "Suspended"
    TRIAL = "trial", "Trial"
    EXPIRED = "expired", "Expired"


class CompanyType(models.TextChoices):
    HOSPITAL = "hospital", "Hospital"
    CLINIC = "clinic", "Clinic"
    IMAGING_CENTER = "imaging_center", "Imaging Center"
    TELERADIOLOGY = "teleradiology", "Teleradiology"
    DIAGNOSTIC_CENTER = "diagnostic_center", "Diagnostic Center"


class SubscriptionPlan(models.TextChoices):
    BASIC = "basic", "Basic"
    PROFESSIONAL = "professional", "Professional"
    ENTERPRISE = "enterprise", "Enterprise"
    CUSTOM = "custom", "Custom"


class Organization(models.Model):
    """
    Tenant boundary.

    `identifier` is the stable tenant key embedded in tokens and copied onto
    every scoped row; it cannot change after the first save.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255, unique=True)
    identifier = models.CharField(
        max_length=32,
        unique=True,
        validators=[RegexValidator(IDENTIFIER_PATTERN, "Identifier must contain only uppercase letters, numbers, and underscores")],
    )
    display_name = models.CharField(max_length=255)
    company_type = models.CharField(max_length=32, choices=CompanyType.choices, default=CompanyType.IMAGING_CENTER)

    status = models.CharField(
        max_length=16,
        choices=OrganizationStatus.choices,
        default=OrganizationStatus.TRIAL,
        db_index=True,
    )

    # subscription
    plan = models.CharField(max_length=16, choices=SubscriptionPlan.choices, default=SubscriptionPlan.BASIC)
    max_users = models.PositiveIntegerField(default=10)
    max_studies_per_month = models.PositiveIntegerField(default=1000)
    subscription_start_date = models.DateTimeField(null=True, blank=True)
    subscription_end_date = models.DateTimeField(null=True, blank=True)

    features = models.JSONField(default=dict, blank=True)
    contact_info = models.JSONField(default=dict, blank=True)
    address = models.JSONField(default=dict, blank=True)
    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="+",
        null=True,
        blank=True,
    )

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "organizations_organization"
        indexes = [
            models.Index(fields=["identifier", "status"]),
            models.Index(fields=["status", "created_at"]),
            models.Index(fields=["plan", "status"]),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.identifier})"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_identifier = instance.__dict__.get("identifier")
        return instance

    def save(self, *args, **kwargs):
        self.identifier = (self.identifier or "").strip().upper()
        loaded = getattr(self, "_loaded_identifier", None)
        if loaded is not None and loaded != self.identifier:
            raise ValidationError({"identifier": "Organization identifier cannot be changed."})
        super().save(*args, **kwargs)
        self._loaded_identifier = self.identifier

    @property
    def is_active(self) -> bool:
        return self.status == OrganizationStatus.ACTIVE

    def subscription_expired(self, *, at) -> bool:
        """Strictly past the end date; no end date means no expiry."""
        return self.subscription_end_date is not None and at > self.subscription_end_date
