# rad_core/organizations/selectors.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from django.db.models import Count, Q, QuerySet

from rad_core.organizations.models import Organization, OrganizationStatus


def active_organizations_qs() -> QuerySet[Organization]:
    return Organization.objects.filter(status=OrganizationStatus.ACTIVE).order_by("name")


def get_organization(*, organization_id: UUID) -> Organization:
    return Organization.objects.get(id=organization_id)


def get_active_by_identifier_or_none(*, identifier: str) -> Optional[Organization]:
    return Organization.objects.filter(
        identifier=(identifier or "").strip().upper(),
        status=OrganizationStatus.ACTIVE,
    ).first()


def search_organizations(*, search: str | None = None, status: str | None = None) -> QuerySet[Organization]:
    qs = Organization.objects.all()
    if status:
        qs = qs.filter(status=status)
    if search:
        qs = qs.filter(
            Q(name__icontains=search)
            | Q(identifier__icontains=search)
            | Q(display_name__icontains=search)
        )
    return qs.order_by("-created_at")


def organization_stats() -> dict:
    """Totals by status and plan for the super-admin dashboard."""
    by_status = {
        row["status"]: row["n"]
        for row in Organization.objects.values("status").annotate(n=Count("id"))
    }
    by_plan = {
        row["plan"]: row["n"]
        for row in Organization.objects.values("plan").annotate(n=Count("id"))
    }
    return {
        "total": sum(by_status.values()),
        "byStatus": {s: by_status.get(s, 0) for s in OrganizationStatus.values},
        "byPlan": by_plan,
    }
