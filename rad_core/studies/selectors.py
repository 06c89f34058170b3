# rad_core/studies/selectors.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from django.db.models import Count, Q, QuerySet

from rad_core.studies.models import DicomStudy
from rad_core.studies.workflow import COMPLETED, INPROGRESS, PENDING, bucket_of, statuses_in


def study_qs(*, organization_identifier: Optional[str]) -> QuerySet[DicomStudy]:
    """None means global scope (super_admin without an organization context)."""
    qs = DicomStudy.objects.select_related("source_lab", "assigned_to")
    if organization_identifier:
        qs = qs.filter(organization_identifier=organization_identifier)
    return qs


def get_study(*, organization_identifier: Optional[str], study_id: UUID) -> DicomStudy:
    return study_qs(organization_identifier=organization_identifier).get(id=study_id)


def filter_studies(
    qs: QuerySet[DicomStudy],
    *,
    status: str | None = None,
    category: str | None = None,
    lab_id: UUID | None = None,
    assigned_to_id: UUID | None = None,
    search: str | None = None,
) -> QuerySet[DicomStudy]:
    if status:
        qs = qs.filter(workflow_status=status)
    if category:
        qs = qs.filter(workflow_status__in=statuses_in(category))
    if lab_id:
        qs = qs.filter(source_lab_id=lab_id)
    if assigned_to_id:
        qs = qs.filter(assigned_to_id=assigned_to_id)
    if search:
        qs = qs.filter(
            Q(patient_name__icontains=search)
            | Q(patient_id__icontains=search)
            | Q(accession_number__icontains=search)
        )
    return qs.order_by("-created_at")


def status_counts(qs: QuerySet[DicomStudy]) -> dict[str, int]:
    """Dashboard counters: one per bucket plus the total."""
    counts = {PENDING: 0, INPROGRESS: 0, COMPLETED: 0}
    for row in qs.order_by().values("workflow_status").annotate(n=Count("id")):
        bucket = bucket_of(row["workflow_status"])
        if bucket:
            counts[bucket] += row["n"]
    counts["total"] = sum(counts.values())
    return counts
