# rad_core/studies/permissions.py
from __future__ import annotations

from rad_core.common.permissions import BaseRolePermission
from rad_core.iam.roles import ORGANIZATION_ROLES, Role
from rad_core.studies.workflow import WORKFLOW_ROLES


class StudyPermission(BaseRolePermission):
    """Admin roles pass everywhere (BaseRolePermission)."""
    allowed_roles_per_action = {
        "list": ORGANIZATION_ROLES,
        "retrieve": ORGANIZATION_ROLES,
        "stats": ORGANIZATION_ROLES,
        "history": ORGANIZATION_ROLES,
        "transition": WORKFLOW_ROLES,
        "assign": {Role.ASSIGNOR, Role.GROUP_ID},
    }
