# rad_core/studies/services.py

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.utils.timezone import now
from rest_framework.exceptions import PermissionDenied, ValidationError

from rad_core.common.api.exceptions import ConflictError
from rad_core.iam.models import User
from rad_core.iam.roles import Role, granted_roles
from rad_core.studies.models import DicomStudy, StudyPriority, StudyStatusChange
from rad_core.studies.workflow import TRACKING_STAMPS, WorkflowStatus, is_legal, role_may_set

logger = logging.getLogger(__name__)

ASSIGNABLE_ROLES = frozenset({Role.RADIOLOGIST, Role.DOCTOR_ACCOUNT})


class StudyWorkflowService:
    """
    Study workflow write-model.

    Every status change goes through `transition`, which locks the row,
    checks the transition table and the actor's roles, stamps
    category_tracking and writes a StudyStatusChange row.
    """

    @staticmethod
    def _get_locked(*, organization_identifier: Optional[str], study_id: UUID) -> DicomStudy:
        qs = DicomStudy.objects.select_for_update()
        if organization_identifier:
            qs = qs.filter(organization_identifier=organization_identifier)
        return qs.get(id=study_id)

    @staticmethod
    def _stamp(study: DicomStudy, status: str, *, at) -> None:
        tracking = dict(study.category_tracking or {})
        stamp = TRACKING_STAMPS.get(status)
        if stamp:
            section, key = stamp
            tracking[section] = {**(tracking.get(section) or {}), key: at.isoformat()}
        tracking["lastStatusChangeAt"] = at.isoformat()
        study.category_tracking = tracking

    @staticmethod
    def _apply(study: DicomStudy, *, to_status: str, actor: User | None, note: str, at) -> StudyStatusChange:
        from_status = study.workflow_status
        actor_roles = granted_roles(actor) if actor is not None else frozenset()

        if not is_legal(from_status, to_status):
            raise ConflictError(
                f"Illegal workflow transition from '{from_status}' to '{to_status}'.",
                code="illegal_transition",
            )
        if not role_may_set(to_status, actor_roles):
            raise PermissionDenied(
                f"User role '{getattr(actor, 'role', 'unknown')}' may not set status '{to_status}'."
            )

        study.workflow_status = to_status
        StudyWorkflowService._stamp(study, to_status, at=at)

        return StudyStatusChange.objects.create(
            study=study,
            organization_identifier=study.organization_identifier,
            from_status=from_status,
            to_status=to_status,
            changed_by=actor,
            note=note or "",
        )

    @staticmethod
    @transaction.atomic
    def transition(
        *,
        organization_identifier: Optional[str],
        study_id: UUID,
        to_status: str,
        actor: User,
        note: str = "",
    ) -> DicomStudy:
        if to_status not in WorkflowStatus.values:
            raise ValidationError({"status": f"Unknown workflow status '{to_status}'."})
        if to_status == WorkflowStatus.ASSIGNED_TO_DOCTOR:
            raise ValidationError({"status": "Use the assign endpoint to assign a study."})

        study = StudyWorkflowService._get_locked(organization_identifier=organization_identifier, study_id=study_id)
        change = StudyWorkflowService._apply(study, to_status=to_status, actor=actor, note=note, at=now())
        study.save(update_fields=["workflow_status", "category_tracking", "updated_at"])

        logger.info(
            "study %s: %s -> %s by %s",
            study.id, change.from_status, change.to_status, getattr(actor, "id", None),
        )
        return study

    @staticmethod
    @transaction.atomic
    def assign(
        *,
        organization_identifier: Optional[str],
        study_id: UUID,
        assignee_id: UUID,
        actor: User,
        priority: str | None = None,
        note: str = "",
    ) -> DicomStudy:
        study = StudyWorkflowService._get_locked(organization_identifier=organization_identifier, study_id=study_id)

        assignee = User.objects.filter(
            id=assignee_id,
            organization_identifier=study.organization_identifier,
            is_active=True,
        ).first()
        if assignee is None:
            raise ValidationError({"doctorId": "Doctor not found in this organization."})
        if not (granted_roles(assignee) & ASSIGNABLE_ROLES):
            raise ValidationError({"doctorId": "Studies can only be assigned to radiologists or doctors."})
        if priority and priority not in StudyPriority.values:
            raise ValidationError({"priority": f"Invalid priority. Allowed: {list(StudyPriority.values)}"})

        at = now()
        StudyWorkflowService._apply(
            study,
            to_status=WorkflowStatus.ASSIGNED_TO_DOCTOR,
            actor=actor,
            note=note,
            at=at,
        )

        study.assigned_to = assignee
        study.assigned_by = actor
        study.assigned_at = at
        if priority:
            study.priority = priority

        assigned = dict((study.category_tracking or {}).get("assigned") or {})
        assigned["assignedTo"] = str(assignee.id)
        assigned["assignedBy"] = str(actor.id)
        study.category_tracking = {**study.category_tracking, "assigned": assigned}

        study.save(
            update_fields=[
                "workflow_status",
                "category_tracking",
                "assigned_to",
                "assigned_by",
                "assigned_at",
                "priority",
                "updated_at",
            ]
        )
        logger.info("study %s assigned to %s by %s", study.id, assignee.id, actor.id)
        return study
