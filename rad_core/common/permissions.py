# rad_core/common/permissions.py

from __future__ import annotations

from typing import Iterable

from rest_framework.permissions import SAFE_METHODS, BasePermission

from rad_core.iam.roles import ADMIN_ROLES, Role, granted_roles


def _denied_message(user) -> str:
    role = getattr(user, "role", None) or "unknown"
    return f"User role '{role}' is not authorized to access this route"


def authorize(*allowed: str) -> type[BasePermission]:
    """
    Build a permission class that admits users whose granted role set
    ({role} | account_roles) intersects `allowed`.

        permission_classes = [authorize(Role.SUPER_ADMIN)]
    """
    allowed_set = frozenset(str(r) for r in allowed)

    class RoleAuthorizer(BasePermission):
        message = "You do not have permission to perform this action."

        def has_permission(self, request, view) -> bool:
            user = request.user
            if not user or not getattr(user, "is_authenticated", False):
                return False

            if granted_roles(user) & allowed_set:
                return True

            self.message = _denied_message(user)
            return False

    RoleAuthorizer.allowed_roles = allowed_set
    RoleAuthorizer.__name__ = "Authorize_" + "_".join(sorted(allowed_set)) if allowed_set else "AuthorizeNone"
    return RoleAuthorizer


class BaseRolePermission(BasePermission):
    """
    Action-level RBAC for ViewSets.

    - Admin roles (super_admin, admin, owner) may call every action.
    - Otherwise the granted role set must intersect allowed_roles_per_action[action].
    - Unknown SAFE actions fall back to list/retrieve; unknown writes are denied.
    """
    message = "You do not have permission to perform this action."

    allowed_roles_per_action: dict[str, Iterable[str]] = {
        "list": set(),
        "retrieve": set(),
    }

    def _infer_action(self, request, view) -> str | None:
        action = getattr(view, "action", None)
        if action:
            return action

        kwargs = getattr(view, "kwargs", {}) or {}
        is_detail = "pk" in kwargs
        if request.method in SAFE_METHODS:
            return "retrieve" if is_detail else "list"
        return None

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not user or not getattr(user, "is_authenticated", False):
            return False

        roles = granted_roles(user)
        if roles & ADMIN_ROLES:
            return True

        action = self._infer_action(request, view)
        allowed = self.allowed_roles_per_action.get(action) if action else None

        if allowed is None and request.method in SAFE_METHODS:
            kwargs = getattr(view, "kwargs", {}) or {}
            allowed = self.allowed_roles_per_action.get("retrieve" if "pk" in kwargs else "list")

        if allowed is not None and roles & set(allowed):
            return True

        self.message = _denied_message(user)
        return False


IsSuperAdmin = authorize(Role.SUPER_ADMIN)
