# rad_core/labs/selectors.py
from __future__ import annotations

from django.db.models import QuerySet

from rad_core.labs.models import Lab


def labs_for_organization(*, organization_identifier: str) -> QuerySet[Lab]:
    return Lab.objects.filter(organization_identifier=organization_identifier).order_by("name")


def active_lab_count(*, organization_identifier: str) -> int:
    return Lab.objects.filter(organization_identifier=organization_identifier, is_active=True).count()
