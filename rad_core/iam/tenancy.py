# rad_core/iam/tenancy.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from rad_core.iam.roles import Role

ORG_INACTIVE_MESSAGE = "Your organization account is not active. Please contact support."
SUBSCRIPTION_EXPIRED_MESSAGE = "Your organization subscription has expired. Please renew to continue."
NO_ORGANIZATION_MESSAGE = "No organization context available"


@dataclass(frozen=True)
class OrganizationContext:
    organization_id: Optional[str]
    identifier: Optional[str]

    @property
    def label(self) -> str:
        return self.identifier or "global"


class TenantResolver:
    """
    Decides which organization a user acts in and whether that organization
    may be used right now. `now` is injectable for boundary tests.
    """

    def __init__(self, *, now: datetime | None = None):
        self._now = now

    def now(self) -> datetime:
        return self._now or timezone.now()

    def resolve(self, user) -> OrganizationContext:
        if user.role == Role.SUPER_ADMIN and not user.organization_id:
            return OrganizationContext(organization_id=None, identifier=None)
        return OrganizationContext(
            organization_id=str(user.organization_id) if user.organization_id else None,
            identifier=user.organization_identifier or None,
        )

    def check_organization(self, organization, *, check_subscription: bool = True) -> None:
        if organization is None:
            raise PermissionDenied(NO_ORGANIZATION_MESSAGE, code="organization_missing")
        if not organization.is_active:
            raise PermissionDenied(ORG_INACTIVE_MESSAGE, code="organization_inactive")
        if check_subscription and organization.subscription_expired(at=self.now()):
            raise PermissionDenied(SUBSCRIPTION_EXPIRED_MESSAGE, code="subscription_expired")

    def check_user(self, user, *, check_subscription: bool = True) -> OrganizationContext:
        """Login-time gate; super_admin is global and skips organization checks."""
        if user.role != Role.SUPER_ADMIN:
            self.check_organization(user.organization, check_subscription=check_subscription)
        return self.resolve(user)


def scope_identifier(request) -> str | None:
    """
    Organization the request acts in. super_admin uses the context of its
    token (set by switch-organization) and may be global; everyone else is
    pinned to their own organization.
    """
    user = request.user
    if user.is_super_admin:
        return getattr(request.auth, "organization_identifier", None)
    return user.organization_identifier or None
