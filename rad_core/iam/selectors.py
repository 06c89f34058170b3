# rad_core/iam/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import Q, QuerySet

from rad_core.iam.models import User


def users_for_organization(
    *,
    organization_identifier: str,
    role: str | None = None,
    is_active: bool | None = None,
    search: str | None = None,
) -> QuerySet[User]:
    qs = User.objects.select_related("organization", "lab").filter(organization_identifier=organization_identifier)
    if role:
        qs = qs.filter(role=role)
    if is_active is not None:
        qs = qs.filter(is_active=is_active)
    if search:
        qs = qs.filter(
            Q(full_name__icontains=search)
            | Q(email__icontains=search)
            | Q(username__icontains=search)
        )
    return qs.order_by("-created_at")


def get_user_in_organization(*, user_id: UUID, organization_identifier: str) -> User:
    """Raises User.DoesNotExist for users outside the organization."""
    return User.objects.select_related("organization", "lab").get(
        id=user_id,
        organization_identifier=organization_identifier,
    )
