# rad_core/iam/auth.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from django.core.exceptions import ImproperlyConfigured
from rest_framework import status
from rest_framework.authentication import BaseAuthentication, get_authorization_header
from rest_framework.exceptions import APIException, AuthenticationFailed, PermissionDenied

from rad_core.iam.config import AuthConfig, get_auth_config
from rad_core.iam.models import User
from rad_core.iam.roles import Role
from rad_core.iam.tokens import TokenClaims, TokenCodec

logger = logging.getLogger(__name__)

USER_MISMATCH_MESSAGE = "Not authorized, user not found or organization context mismatch"
USER_DEACTIVATED_MESSAGE = "User account is deactivated"
ORG_NOT_ACTIVE_MESSAGE = "Organization account is not active"


class AuthenticationServerError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Server error during authentication"
    default_code = "auth_server_error"


@dataclass(frozen=True)
class TokenContext:
    """
    Organization context the token was issued for. Compare with
    request.user.organization_identifier to detect drift.
    """
    claims: TokenClaims

    @property
    def organization_id(self) -> Optional[str]:
        return self.claims.organization_id

    @property
    def organization_identifier(self) -> Optional[str]:
        return self.claims.organization_identifier

    @property
    def lab_identifier(self) -> Optional[str]:
        return self.claims.lab_identifier


class OrganizationJWTAuthentication(BaseAuthentication):
    """
    Authenticate using, in order:
      1) Authorization: Bearer <token>
      2) ?token=<token> (direct download links)
      3) auth_token cookie

    The token only supplies identity and issuing context; the user and its
    organization are re-read on every request.
    """

    keyword = b"bearer"

    def __init__(self, config: AuthConfig | None = None):
        self.config = config or get_auth_config()

    def authenticate_header(self, request) -> str:
        # Non-empty so DRF keeps 401 instead of downgrading to 403.
        return 'Bearer realm="api"'

    def get_raw_token(self, request) -> Optional[str]:
        parts = get_authorization_header(request).split()
        if parts and parts[0].lower() == self.keyword:
            if len(parts) != 2:
                raise AuthenticationFailed("Invalid token", code="TOKEN_MALFORMED")
            return parts[1].decode("utf-8", errors="replace")

        query_token = request.query_params.get(self.config.token_query_param) if hasattr(request, "query_params") else None
        if query_token:
            return query_token

        return request.COOKIES.get(self.config.cookie_name) or None

    def authenticate(self, request):
        raw_token = self.get_raw_token(request)
        if not raw_token:
            return None

        try:
            claims = TokenCodec(self.config).verify(raw_token)
        except ImproperlyConfigured:
            logger.error("JWT secret missing; refusing to authenticate")
            raise AuthenticationServerError()

        user = self.get_user(claims)
        return user, TokenContext(claims=claims)

    def get_user(self, claims: TokenClaims) -> User:
        try:
            UUID(claims.user_id)
        except ValueError:
            raise AuthenticationFailed(USER_MISMATCH_MESSAGE, code="user_context_mismatch")

        qs = User.objects.select_related("organization", "lab")

        if claims.role == Role.SUPER_ADMIN:
            user = qs.filter(pk=claims.user_id).first()
        elif not claims.organization_identifier:
            user = None
        else:
            user = qs.filter(pk=claims.user_id, organization_identifier=claims.organization_identifier).first()

        # A role change since issuance must not keep the global lookup.
        if user is not None and claims.role == Role.SUPER_ADMIN and user.role != Role.SUPER_ADMIN:
            user = None

        if user is None:
            logger.warning("token user rejected user=%s org=%s", claims.user_id, claims.organization_identifier)
            raise AuthenticationFailed(USER_MISMATCH_MESSAGE, code="user_context_mismatch")

        if not user.is_active:
            raise PermissionDenied(USER_DEACTIVATED_MESSAGE, code="account_deactivated")

        if user.role != Role.SUPER_ADMIN:
            organization = user.organization
            if organization is None or not organization.is_active:
                raise PermissionDenied(ORG_NOT_ACTIVE_MESSAGE, code="organization_inactive")

        return user
