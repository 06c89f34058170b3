# rad_core/iam/services.py
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from typing import Iterable, Optional
from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from rad_core.common.api.exceptions import ConflictError
from rad_core.iam.models import User, normalize_email
from rad_core.iam.roles import ADMIN_ROLES, Role, creatable_roles, granted_roles, is_valid_role
from rad_core.iam.selectors import get_user_in_organization
from rad_core.labs.selectors import labs_for_organization
from rad_core.organizations.models import Organization
from rad_core.organizations.selectors import get_active_by_identifier_or_none

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

REQUIRED_FIELDS_MESSAGE = "Full name, email, and role are required"
PASSWORD_TOO_SHORT_MESSAGE = f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
NO_ORGANIZATION_MESSAGE = "Creator must belong to an organization"
EMAIL_TAKEN_IN_ORGANIZATION_MESSAGE = "Email already exists in this organization"
EMAIL_TAKEN_MESSAGE = "Email already exists"
USERNAME_TAKEN_MESSAGE = "Username already exists in this organization"
USER_NOT_FOUND_MESSAGE = "User not found"
CANNOT_MODIFY_MESSAGE = "You do not have permission to modify this user"
CANNOT_MODIFY_SELF_MESSAGE = "You cannot change your own account status"
LAB_REQUIRED_MESSAGE = "Lab staff accounts must be assigned to a lab"
LAB_NOT_FOUND_MESSAGE = "Lab not found in this organization"


def _spoken(role: str) -> str:
    return str(role).replace("_", " ", 1)


def role_created_message(role: str) -> str:
    return f"{_spoken(role).upper()} created successfully"


def status_toggled_message(user: User) -> str:
    return f"User {'activated' if user.is_active else 'deactivated'} successfully"


@dataclass(frozen=True)
class UserCreated:
    user: User
    temp_password: Optional[str]


@dataclass(frozen=True)
class PasswordReset:
    user: User
    temp_password: str


class UserService:
    """
    Organization-scoped account management for admin, group_id and
    super_admin actors. Every target user is looked up inside the acting
    organization; users elsewhere are reported as not found.
    """

    @staticmethod
    def resolve_organization(*, identifier: str | None) -> Organization:
        organization = get_active_by_identifier_or_none(identifier=identifier) if identifier else None
        if organization is None:
            raise ValidationError({"detail": NO_ORGANIZATION_MESSAGE})
        return organization

    @staticmethod
    def get_user(*, organization_identifier: str, user_id: UUID) -> User:
        try:
            return get_user_in_organization(user_id=user_id, organization_identifier=organization_identifier)
        except User.DoesNotExist:
            raise NotFound(USER_NOT_FOUND_MESSAGE)

    @staticmethod
    def check_assignable(*, actor: User, roles: Iterable[str]) -> None:
        """Raises 403 unless every role is one the actor may hand out."""
        allowed = creatable_roles(actor)
        for role in roles:
            if not is_valid_role(str(role)):
                raise ValidationError({"role": f"Invalid role '{role}'."})
            if role not in allowed:
                raise PermissionDenied(f"{_spoken(actor.role)} cannot create {_spoken(role)} accounts")

    @staticmethod
    def check_can_modify(*, actor: User, target: User) -> None:
        if target.is_super_admin:
            raise PermissionDenied(CANNOT_MODIFY_MESSAGE)
        if granted_roles(actor) & ADMIN_ROLES:
            return
        if target.created_by_id != actor.id:
            raise PermissionDenied(CANNOT_MODIFY_MESSAGE)

    @staticmethod
    def _clean_account_roles(role: str, account_roles: Iterable[str] | None) -> list[str]:
        out: list[str] = []
        for r in account_roles or []:
            r = str(r)
            if r != role and r not in out:
                out.append(r)
        return out

    @staticmethod
    @transaction.atomic
    def create_user(
        *,
        actor: User,
        organization: Organization,
        email: str,
        full_name: str,
        role: str,
        password: str | None = None,
        username: str | None = None,
        account_roles: Iterable[str] | None = None,
        lab_id: UUID | None = None,
    ) -> UserCreated:
        """
        Creates an account inside `organization`. Without a password a
        generated one is returned once as temp_password.
        """
        email = normalize_email(email)
        full_name = (full_name or "").strip()
        if not email or not full_name or not role:
            raise ValidationError({"detail": REQUIRED_FIELDS_MESSAGE})
        if password and len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError({"password": PASSWORD_TOO_SHORT_MESSAGE})

        extra_roles = UserService._clean_account_roles(role, account_roles)
        UserService.check_assignable(actor=actor, roles=[role, *extra_roles])

        existing = User.objects.filter(email=email).first()
        if existing is not None:
            if existing.organization_identifier == organization.identifier:
                raise ConflictError(EMAIL_TAKEN_IN_ORGANIZATION_MESSAGE, code="duplicate_key")
            raise ConflictError(EMAIL_TAKEN_MESSAGE, code="duplicate_key")

        username = (username or "").strip() or email.split("@", 1)[0]
        if User.objects.filter(organization_identifier=organization.identifier, username=username).exists():
            raise ConflictError(USERNAME_TAKEN_MESSAGE, code="duplicate_key")

        lab = None
        if lab_id:
            lab = labs_for_organization(organization_identifier=organization.identifier).filter(id=lab_id).first()
            if lab is None:
                raise ValidationError({"labId": LAB_NOT_FOUND_MESSAGE})
        elif role == Role.LAB_STAFF:
            raise ValidationError({"labId": LAB_REQUIRED_MESSAGE})

        temp_password = None
        if not password:
            temp_password = secrets.token_urlsafe(9)
            password = temp_password

        user = User.objects.create_user(
            email,
            password,
            username=username,
            full_name=full_name,
            role=role,
            account_roles=extra_roles,
            organization=organization,
            lab=lab,
            temp_password=temp_password or "",
            created_by=actor,
        )
        if lab is not None:
            user.linked_labs.add(lab)

        logger.info(
            "user created id=%s role=%s org=%s by=%s",
            user.id, user.role, organization.identifier, actor.id,
        )
        return UserCreated(user=user, temp_password=temp_password)

    @staticmethod
    @transaction.atomic
    def update_roles(
        *,
        actor: User,
        target: User,
        role: str | None = None,
        account_roles: Iterable[str] | None = None,
    ) -> User:
        UserService.check_can_modify(actor=actor, target=target)

        new_role = role or target.role
        extra_roles = UserService._clean_account_roles(
            new_role,
            target.account_roles if account_roles is None else account_roles,
        )
        changed = [r for r in [new_role, *extra_roles] if r != target.role and r not in (target.account_roles or [])]
        UserService.check_assignable(actor=actor, roles=changed)

        target.role = new_role
        target.account_roles = extra_roles
        target.save(update_fields=["role", "account_roles", "updated_at"])

        logger.info("user roles updated id=%s role=%s extra=%s by=%s", target.id, new_role, extra_roles, actor.id)
        return target

    @staticmethod
    @transaction.atomic
    def toggle_status(*, actor: User, target: User) -> User:
        if target.id == actor.id:
            raise ValidationError({"detail": CANNOT_MODIFY_SELF_MESSAGE})
        UserService.check_can_modify(actor=actor, target=target)

        target.is_active = not target.is_active
        fields = ["is_active", "updated_at"]
        if not target.is_active:
            target.is_logged_in = False
            fields.append("is_logged_in")
        target.save(update_fields=fields)

        logger.info("user %s id=%s by=%s", "activated" if target.is_active else "deactivated", target.id, actor.id)
        return target

    @staticmethod
    @transaction.atomic
    def reset_password(*, actor: User, target: User) -> PasswordReset:
        """Replaces the password with a generated one, returned once."""
        UserService.check_can_modify(actor=actor, target=target)

        temp_password = secrets.token_urlsafe(9)
        target.set_password(temp_password)
        target.temp_password = temp_password
        target.save(update_fields=["password", "temp_password", "updated_at"])

        logger.info("password reset id=%s by=%s", target.id, actor.id)
        return PasswordReset(user=target, temp_password=temp_password)
