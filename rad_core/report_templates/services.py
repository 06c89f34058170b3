# rad_core/report_templates/services.py
from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from django.db import transaction
from django.db.models import F
from django.utils.timezone import now

from rad_core.common.api.exceptions import ConflictError
from rad_core.iam.models import User
from rad_core.report_templates.models import HTMLTemplate, TemplateScope

EDITABLE_FIELDS = ("title", "category", "html_content", "tags", "description", "is_default")


class TemplateService:
    """
    HTMLTemplate write-model. Title uniqueness among active templates is
    checked here so the caller gets a 409 instead of a raw IntegrityError.
    """

    @staticmethod
    def _title_taken(
        *,
        organization_identifier: str,
        scope: str,
        assigned_doctor_id: Optional[UUID],
        title: str,
        exclude_id: Optional[UUID] = None,
    ) -> bool:
        qs = HTMLTemplate.objects.filter(
            organization_identifier=organization_identifier,
            template_scope=scope,
            assigned_doctor_id=assigned_doctor_id if scope == TemplateScope.DOCTOR_SPECIFIC else None,
            title=title,
            is_active=True,
        )
        if exclude_id:
            qs = qs.exclude(id=exclude_id)
        return qs.exists()

    @staticmethod
    @transaction.atomic
    def create(
        *,
        created_by: User,
        title: str,
        category: str,
        html_content: str,
        template_scope: str = TemplateScope.DOCTOR_SPECIFIC,
        assigned_doctor: User | None = None,
        **extra: Any,
    ) -> HTMLTemplate:
        title = (title or "").strip()
        doctor_id = assigned_doctor.id if assigned_doctor else None

        if TemplateService._title_taken(
            organization_identifier=created_by.organization_identifier,
            scope=template_scope,
            assigned_doctor_id=doctor_id,
            title=title,
        ):
            raise ConflictError(f"A template titled '{title}' already exists.", code="duplicate_key")

        return HTMLTemplate.objects.create(
            organization=created_by.organization,
            organization_identifier=created_by.organization_identifier,
            created_by=created_by,
            title=title,
            category=category,
            html_content=html_content,
            template_scope=template_scope,
            assigned_doctor=assigned_doctor,
            **{k: v for k, v in extra.items() if k in EDITABLE_FIELDS},
        )

    @staticmethod
    @transaction.atomic
    def update(*, template_id: UUID, organization_identifier: str, data: dict[str, Any]) -> HTMLTemplate:
        tpl = HTMLTemplate.objects.select_for_update().get(
            id=template_id,
            organization_identifier=organization_identifier,
        )

        new_title = (data.get("title") or tpl.title).strip()
        if new_title != tpl.title and TemplateService._title_taken(
            organization_identifier=organization_identifier,
            scope=tpl.template_scope,
            assigned_doctor_id=tpl.assigned_doctor_id,
            title=new_title,
            exclude_id=tpl.id,
        ):
            raise ConflictError(f"A template titled '{new_title}' already exists.", code="duplicate_key")

        for field in EDITABLE_FIELDS:
            if field in data:
                setattr(tpl, field, data[field])
        tpl.title = new_title
        tpl.version = F("version") + 1
        tpl.save()
        tpl.refresh_from_db()
        return tpl

    @staticmethod
    def record_usage(*, template_id: UUID) -> None:
        HTMLTemplate.objects.filter(id=template_id).update(
            usage_count=F("usage_count") + 1,
            last_used_at=now(),
        )

    @staticmethod
    def deactivate(*, template_id: UUID, organization_identifier: str) -> None:
        HTMLTemplate.objects.filter(
            id=template_id,
            organization_identifier=organization_identifier,
        ).update(is_active=False, updated_at=now())
