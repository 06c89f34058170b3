# rad_core/organizations/services.py
from __future__ import annotations

import logging
import re
import secrets
from dataclasses import dataclass
from typing import Any, Optional
from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from rad_core.common.api.exceptions import ConflictError
from rad_core.iam.models import DoctorProfile, User, normalize_email
from rad_core.iam.roles import Role
from rad_core.labs.models import Lab
from rad_core.labs.services import LabService
from rad_core.organizations.identifiers import generate_identifier, identifier_taken
from rad_core.organizations.models import IDENTIFIER_PATTERN, Organization, OrganizationStatus

logger = logging.getLogger(__name__)

# Fields a super_admin may edit after creation. `identifier` is deliberately absent.
UPDATABLE_FIELDS = (
    "name",
    "display_name",
    "company_type",
    "status",
    "plan",
    "max_users",
    "max_studies_per_month",
    "subscription_start_date",
    "subscription_end_date",
    "features",
    "contact_info",
    "address",
    "notes",
)


@dataclass(frozen=True)
class OrganizationCreated:
    organization: Organization
    admin_user: User
    labs: list[Lab]
    temp_password: Optional[str]


class OrganizationService:
    """
    All Organization mutations live here (write-model boundary).
    """

    @staticmethod
    def _clean_identifier(identifier: str | None) -> str:
        if not identifier:
            return generate_identifier()

        identifier = identifier.strip().upper()
        if not re.match(IDENTIFIER_PATTERN, identifier):
            raise ValidationError(
                {"identifier": "Identifier must contain only uppercase letters, numbers, and underscores"}
            )
        if identifier_taken(identifier):
            raise ConflictError(f"Organization identifier '{identifier}' already exists.", code="duplicate_key")
        return identifier

    @staticmethod
    @transaction.atomic
    def create(
        *,
        name: str,
        admin_email: str,
        admin_password: str | None = None,
        admin_full_name: str = "",
        identifier: str | None = None,
        display_name: str | None = None,
        created_by: User | None = None,
        status: str = OrganizationStatus.ACTIVE,
        **fields: Any,
    ) -> OrganizationCreated:
        """
        Organization + first admin user + default labs, all or nothing.
        A generated admin password is returned once as temp_password.
        """
        name = (name or "").strip()
        admin_email = normalize_email(admin_email)

        if not name:
            raise ValidationError({"name": "This field is required."})
        if not admin_email:
            raise ValidationError({"adminEmail": "This field is required."})
        if status not in OrganizationStatus.values:
            raise ValidationError({"status": f"Invalid status. Allowed: {list(OrganizationStatus.values)}"})

        if Organization.objects.filter(name=name).exists():
            raise ConflictError(f"Organization '{name}' already exists.", code="duplicate_key")
        if User.objects.filter(email=admin_email).exists():
            raise ConflictError(f"User with email '{admin_email}' already exists.", code="duplicate_key")

        organization = Organization.objects.create(
            name=name,
            identifier=OrganizationService._clean_identifier(identifier),
            display_name=(display_name or name).strip(),
            status=status,
            created_by=created_by,
            **{k: v for k, v in fields.items() if k in UPDATABLE_FIELDS},
        )

        temp_password = None
        if not admin_password:
            temp_password = secrets.token_urlsafe(9)
            admin_password = temp_password

        admin_user = User.objects.create_user(
            admin_email,
            admin_password,
            full_name=admin_full_name or f"{organization.display_name} Admin",
            role=Role.ADMIN,
            organization=organization,
            temp_password=temp_password or "",
            created_by=created_by,
        )

        labs = LabService.create_default_labs(organization=organization, contact_email=admin_email)

        logger.info("organization created id=%s identifier=%s", organization.id, organization.identifier)
        return OrganizationCreated(
            organization=organization,
            admin_user=admin_user,
            labs=labs,
            temp_password=temp_password,
        )

    @staticmethod
    @transaction.atomic
    def update(*, organization_id: UUID, data: dict[str, Any]) -> Organization:
        org = Organization.objects.select_for_update().get(id=organization_id)

        changed: list[str] = []
        for field in UPDATABLE_FIELDS:
            if field not in data:
                continue
            value = data[field]
            if field == "status" and value not in OrganizationStatus.values:
                raise ValidationError({"status": f"Invalid status. Allowed: {list(OrganizationStatus.values)}"})
            if field == "name":
                value = (value or "").strip()
                if Organization.objects.filter(name=value).exclude(id=org.id).exists():
                    raise ConflictError(f"Organization '{value}' already exists.", code="duplicate_key")
            if getattr(org, field) != value:
                setattr(org, field, value)
                changed.append(field)

        if changed:
            org.save(update_fields=[*changed, "updated_at"])
        return org

    @staticmethod
    @transaction.atomic
    def deactivate(*, organization_id: UUID) -> Organization:
        """
        Soft delete: organization -> inactive, and every user, lab and doctor
        profile under it is switched off in the same transaction.
        """
        org = Organization.objects.select_for_update().get(id=organization_id)

        org.status = OrganizationStatus.INACTIVE
        org.save(update_fields=["status", "updated_at"])

        users = User.objects.filter(organization=org).update(is_active=False, is_logged_in=False)
        labs = Lab.objects.filter(organization=org).update(is_active=False)
        doctors = DoctorProfile.objects.filter(organization_identifier=org.identifier).update(is_active_profile=False)

        logger.info(
            "organization deactivated id=%s users=%s labs=%s doctors=%s",
            org.id, users, labs, doctors,
        )
        return org
