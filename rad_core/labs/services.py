# rad_core/labs/services.py
from __future__ import annotations

import logging
from uuid import UUID

from django.db import transaction
from django.utils.timezone import now

from rad_core.labs.models import Lab

logger = logging.getLogger(__name__)

# (identifier suffix, name template)
DEFAULT_LABS = (
    ("MAIN", "{identifier} Main Lab"),
    ("EMERG", "{identifier} Emergency Lab"),
)


class LabService:
    """
    Lab write-model operations.
    """

    @staticmethod
    @transaction.atomic
    def create_default_labs(*, organization, contact_email: str = "") -> list[Lab]:
        labs = []
        for code, name_tpl in DEFAULT_LABS:
            labs.append(
                Lab.objects.create(
                    organization=organization,
                    organization_identifier=organization.identifier,
                    name=name_tpl.format(identifier=organization.identifier),
                    identifier=code,
                    contact_email=contact_email,
                )
            )
        return labs

    @staticmethod
    @transaction.atomic
    def set_compression(*, lab_id: UUID, enable: bool, actor: str = "api-key") -> Lab:
        lab = Lab.objects.select_for_update().get(id=lab_id)

        lab_settings = dict(lab.settings or {})
        lab_settings["enableCompression"] = bool(enable)
        lab_settings["compressionUpdatedAt"] = now().isoformat()
        lab_settings["compressionUpdatedBy"] = actor
        lab.settings = lab_settings
        lab.save(update_fields=["settings", "updated_at"])

        logger.info("lab compression set lab=%s enable=%s actor=%s", lab.id, enable, actor)
        return lab
