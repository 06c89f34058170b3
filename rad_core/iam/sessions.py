# rad_core/iam/sessions.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from django.db import transaction
from django.db.models import F
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from rad_core.common.api.exceptions import Unauthorized
from rad_core.iam.config import AuthConfig, get_auth_config
from rad_core.iam.models import User, normalize_email
from rad_core.iam.passwords import CredentialVerifier
from rad_core.iam.roles import Role, redirect_for
from rad_core.iam.tenancy import OrganizationContext, TenantResolver
from rad_core.iam.tokens import TokenClaims, TokenCodec, claims_for_user
from rad_core.organizations.selectors import get_active_by_identifier_or_none

logger = logging.getLogger(__name__)

MISSING_CREDENTIALS_MESSAGE = "Please provide email and password."
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."
ACCOUNT_DEACTIVATED_MESSAGE = "Your account has been deactivated."
LAB_ONLY_MESSAGE = "Access Denied: This application is for Lab Staff only."
LAB_NO_ORGANIZATION_MESSAGE = "Configuration Error: No Organization linked to this account."
LAB_NOT_ASSIGNED_MESSAGE = "Configuration Error: No Lab assigned to this account."
LAB_INACTIVE_MESSAGE = "Your assigned Lab is currently inactive."
REFRESH_REJECTED_MESSAGE = "User not found or account deactivated."
SWITCH_NOT_FOUND_MESSAGE = "Organization not found or not active."


@dataclass(frozen=True)
class IssuedSession:
    user: User
    token: str
    context: OrganizationContext
    redirect_to: str
    expires_in: int


class SessionIssuer:
    """
    Composes CredentialVerifier + TenantResolver + TokenCodec into the
    login, lab-login, refresh and organization-switch flows.

    Failures raise DRF exceptions; the global handler renders the envelope.
    """

    def __init__(
        self,
        *,
        config: AuthConfig | None = None,
        codec: TokenCodec | None = None,
        resolver: TenantResolver | None = None,
    ):
        self.config = config or get_auth_config()
        self.codec = codec or TokenCodec(self.config)
        self.resolver = resolver or TenantResolver()

    # -------------------------
    # Credential path
    # -------------------------
    @staticmethod
    def _lookup(email: str) -> Optional[User]:
        return (
            User.objects.select_related("organization", "lab")
            .filter(email=normalize_email(email))
            .first()
        )

    def authenticate(self, *, email: str | None, password: str | None) -> User:
        if not email or not password:
            raise ValidationError({"detail": MISSING_CREDENTIALS_MESSAGE})

        user = self._lookup(email)
        if not CredentialVerifier.verify_user(user, password):
            logger.info("login rejected: bad credentials")
            raise Unauthorized(INVALID_CREDENTIALS_MESSAGE, code="invalid_credentials")

        if not user.is_active:
            logger.info("login rejected: inactive user=%s", user.id)
            raise PermissionDenied(ACCOUNT_DEACTIVATED_MESSAGE, code="account_deactivated")
        return user

    def _record_login(self, user: User) -> None:
        stamp = self.resolver.now()
        User.objects.filter(pk=user.pk).update(
            is_logged_in=True,
            last_login_at=stamp,
            login_count=F("login_count") + 1,
        )
        user.refresh_from_db(fields=["is_logged_in", "last_login_at", "login_count"])

    def _issue(self, claims: TokenClaims) -> str:
        return self.codec.issue(claims, self.config.token_lifetime)

    # -------------------------
    # Flows
    # -------------------------
    @transaction.atomic
    def login(self, *, email: str | None, password: str | None) -> IssuedSession:
        user = self.authenticate(email=email, password=password)
        context = self.resolver.check_user(user)

        self._record_login(user)
        token = self._issue(claims_for_user(user))

        logger.info("login ok user=%s role=%s org=%s", user.id, user.role, context.label)
        return IssuedSession(
            user=user,
            token=token,
            context=context,
            redirect_to=redirect_for(user.role),
            expires_in=self.config.token_lifetime_seconds,
        )

    @transaction.atomic
    def lab_login(self, *, email: str | None, password: str | None) -> IssuedSession:
        user = self.authenticate(email=email, password=password)

        if user.role != Role.LAB_STAFF:
            raise PermissionDenied(LAB_ONLY_MESSAGE, code="lab_staff_only")
        if not user.organization_id:
            raise PermissionDenied(LAB_NO_ORGANIZATION_MESSAGE, code="organization_missing")
        self.resolver.check_organization(user.organization)

        if not user.lab_id:
            raise PermissionDenied(LAB_NOT_ASSIGNED_MESSAGE, code="lab_missing")
        if not user.lab.is_active:
            raise PermissionDenied(LAB_INACTIVE_MESSAGE, code="lab_inactive")

        self._record_login(user)
        claims = TokenClaims(
            user_id=str(user.id),
            role=user.role,
            organization_identifier=user.organization.identifier,
            lab_identifier=user.lab.identifier,
        )
        token = self._issue(claims)

        logger.info("lab login ok user=%s lab=%s/%s", user.id, user.organization.identifier, user.lab.identifier)
        return IssuedSession(
            user=user,
            token=token,
            context=OrganizationContext(organization_id=None, identifier=user.organization.identifier),
            redirect_to=redirect_for(user.role),
            expires_in=self.config.token_lifetime_seconds,
        )

    def refresh(self, *, user: User, token_context=None) -> IssuedSession:
        """
        Re-checks the live user and organization before reissuing. The
        presented token's context carries over: a super_admin keeps the
        organization it switched into, a lab session keeps its lab.
        """
        fresh = User.objects.select_related("organization").filter(pk=user.pk, is_active=True).first()
        if fresh is None:
            raise Unauthorized(REFRESH_REJECTED_MESSAGE, code="user_inactive")

        context = self.resolver.check_user(fresh)
        lab_identifier = getattr(token_context, "lab_identifier", None)
        claims = claims_for_user(fresh, lab_identifier=lab_identifier)

        switched = getattr(token_context, "organization_identifier", None)
        if fresh.is_super_admin and switched:
            organization = get_active_by_identifier_or_none(identifier=switched)
            if organization is None:
                raise NotFound(SWITCH_NOT_FOUND_MESSAGE)
            context = OrganizationContext(organization_id=str(organization.id), identifier=organization.identifier)
            claims = TokenClaims(
                user_id=str(fresh.id),
                role=fresh.role,
                organization_id=context.organization_id,
                organization_identifier=context.identifier,
            )

        return IssuedSession(
            user=fresh,
            token=self._issue(claims),
            context=context,
            redirect_to=redirect_for(fresh.role),
            expires_in=self.config.token_lifetime_seconds,
        )

    def switch_organization(self, *, user: User, identifier: str | None) -> IssuedSession:
        """
        super_admin only: token scoped to another organization, or a global
        token when no identifier is given. The stored user is not modified.
        """
        if not user.is_super_admin:
            raise PermissionDenied("Only super admins can switch organization context.")

        if identifier:
            organization = get_active_by_identifier_or_none(identifier=identifier)
            if organization is None:
                raise NotFound(SWITCH_NOT_FOUND_MESSAGE)
            context = OrganizationContext(organization_id=str(organization.id), identifier=organization.identifier)
        else:
            context = OrganizationContext(organization_id=None, identifier=None)

        claims = TokenClaims(
            user_id=str(user.id),
            role=user.role,
            organization_id=context.organization_id,
            organization_identifier=context.identifier,
        )
        logger.info("super_admin %s switched context to %s", user.id, context.label)
        return IssuedSession(
            user=user,
            token=self._issue(claims),
            context=context,
            redirect_to=redirect_for(user.role),
            expires_in=self.config.token_lifetime_seconds,
        )

    def logout(self, *, user: User) -> None:
        User.objects.filter(pk=user.pk).update(is_logged_in=False, last_logout_at=timezone.now())
        logger.info("logout user=%s", user.id)

    # -------------------------
    # Cookie transport
    # -------------------------
    def set_cookie(self, response, token: str) -> None:
        response.set_cookie(
            self.config.cookie_name,
            token,
            max_age=self.config.token_lifetime_seconds,
            httponly=True,
            secure=self.config.cookie_secure,
            samesite=self.config.cookie_samesite,
            path="/",
        )

    def clear_cookie(self, response) -> None:
        response.delete_cookie(self.config.cookie_name, path="/", samesite=self.config.cookie_samesite)
