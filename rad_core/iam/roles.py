# rad_core/iam/roles.py
from __future__ import annotations

from typing import Iterable

from django.db import models


class Role(models.TextChoices):
    SUPER_ADMIN = "super_admin", "Super Admin"
    ADMIN = "admin", "Admin"
    OWNER = "owner", "Owner"
    LAB_STAFF = "lab_staff", "Lab Staff"
    DOCTOR_ACCOUNT = "doctor_account", "Doctor Account"
    GROUP_ID = "group_id", "Group ID"
    ASSIGNOR = "assignor", "Assignor"
    RADIOLOGIST = "radiologist", "Radiologist"
    VERIFIER = "verifier", "Verifier"
    PHYSICIAN = "physician", "Physician"
    RECEPTIONIST = "receptionist", "Receptionist"
    BILLING = "billing", "Billing"
    TYPIST = "typist", "Typist"
    DASHBOARD_VIEWER = "dashboard_viewer", "Dashboard Viewer"


ADMIN_ROLES = frozenset({Role.SUPER_ADMIN, Role.ADMIN, Role.OWNER})

# Roles allowed to read clinical notes marked "medical".
MEDICAL_ROLES = frozenset(
    {
        Role.DOCTOR_ACCOUNT,
        Role.RADIOLOGIST,
        Role.VERIFIER,
        Role.PHYSICIAN,
        Role.ASSIGNOR,
        Role.GROUP_ID,
    }
)

# Every role that works inside an organization.
ORGANIZATION_ROLES = frozenset(r for r in Role if r != Role.SUPER_ADMIN)

ROLE_HIERARCHY: dict[str, int] = {
    Role.SUPER_ADMIN: 100,
    Role.ADMIN: 90,
    Role.GROUP_ID: 80,
    Role.ASSIGNOR: 70,
    Role.RADIOLOGIST: 60,
    Role.TYPIST: 60,
    Role.VERIFIER: 50,
    Role.PHYSICIAN: 40,
    Role.RECEPTIONIST: 30,
    Role.BILLING: 20,
    Role.DASHBOARD_VIEWER: 10,
    Role.LAB_STAFF: 10,
    Role.DOCTOR_ACCOUNT: 10,
    Role.OWNER: 10,
}

# Roles each managing role may hand out. super_admin appears on no right-hand side.
CREATABLE_ROLES: dict[str, frozenset[str]] = {
    Role.SUPER_ADMIN: frozenset(
        {
            Role.ADMIN,
            Role.OWNER,
            Role.LAB_STAFF,
            Role.DOCTOR_ACCOUNT,
            Role.GROUP_ID,
            Role.ASSIGNOR,
            Role.RADIOLOGIST,
            Role.VERIFIER,
            Role.PHYSICIAN,
            Role.RECEPTIONIST,
            Role.BILLING,
            Role.TYPIST,
            Role.DASHBOARD_VIEWER,
        }
    ),
    Role.ADMIN: frozenset(
        {
            Role.GROUP_ID,
            Role.ASSIGNOR,
            Role.RADIOLOGIST,
            Role.VERIFIER,
            Role.PHYSICIAN,
            Role.RECEPTIONIST,
            Role.BILLING,
            Role.TYPIST,
            Role.DASHBOARD_VIEWER,
        }
    ),
    Role.GROUP_ID: frozenset(
        {
            Role.ASSIGNOR,
            Role.RADIOLOGIST,
            Role.VERIFIER,
            Role.TYPIST,
            Role.RECEPTIONIST,
        }
    ),
}

DEFAULT_REDIRECT = "/dashboard"

REDIRECTS: dict[str, str] = {
    Role.SUPER_ADMIN: "/superadmin/dashboard",
    Role.ADMIN: "/admin/dashboard",
    Role.OWNER: "/owner/dashboard",
    Role.LAB_STAFF: "/lab/dashboard",
    Role.DOCTOR_ACCOUNT: "/doctor/dashboard",
    Role.GROUP_ID: "/group/dashboard",
    Role.ASSIGNOR: "/assignor/dashboard",
    Role.RADIOLOGIST: "/radiologist/dashboard",
    Role.VERIFIER: "/verifier/dashboard",
    Role.PHYSICIAN: "/physician/dashboard",
    Role.RECEPTIONIST: "/receptionist/dashboard",
    Role.BILLING: "/billing/dashboard",
    Role.TYPIST: "/typist/dashboard",
    Role.DASHBOARD_VIEWER: "/dashboard/viewer",
}


def redirect_for(role: str | None) -> str:
    """Landing route for a role; unknown roles get the generic dashboard."""
    return REDIRECTS.get(role or "", DEFAULT_REDIRECT)


def is_valid_role(value: str) -> bool:
    return value in Role.values


def granted_roles(user) -> frozenset[str]:
    """
    Capability set of a user: primary role plus any account roles
    (super_admin excluded).
    Anonymous or role-less users get the empty set.
    """
    if not user or not getattr(user, "is_authenticated", False):
        return frozenset()

    roles: set[str] = set()
    primary = getattr(user, "role", None)
    if primary:
        roles.add(str(primary))

    extra = getattr(user, "account_roles", None) or []
    roles.update(str(r) for r in extra if is_valid_role(str(r)) and str(r) != Role.SUPER_ADMIN)
    return frozenset(roles)


def determine_primary_role(roles: Iterable[str]) -> str | None:
    """Highest-ranked role of a multi-role account."""
    ranked = [r for r in roles if r in ROLE_HIERARCHY]
    if not ranked:
        return None
    return max(ranked, key=lambda r: ROLE_HIERARCHY[r])


def creatable_roles(user) -> frozenset[str]:
    """Roles `user` may assign to accounts it manages."""
    out: set[str] = set()
    for role in granted_roles(user):
        out |= CREATABLE_ROLES.get(role, frozenset())
    return frozenset(out)
