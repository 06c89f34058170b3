# rad_core/iam/tokens.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from rest_framework import status
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.backends import TokenBackend
from rest_framework_simplejwt.exceptions import TokenBackendError

from rad_core.iam.config import AuthConfig, get_auth_config

logger = logging.getLogger(__name__)

TOKEN_EXPIRED = "TOKEN_EXPIRED"
TOKEN_MALFORMED = "TOKEN_MALFORMED"
TOKEN_INVALID_SIGNATURE = "TOKEN_INVALID_SIGNATURE"


class TokenError(AuthenticationFailed):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Invalid token"
    default_code = TOKEN_MALFORMED


class TokenExpired(TokenError):
    default_detail = "Token expired"
    default_code = TOKEN_EXPIRED


class TokenInvalidSignature(TokenError):
    default_detail = "Invalid token signature"
    default_code = TOKEN_INVALID_SIGNATURE


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    role: str
    organization_id: Optional[str] = None
    organization_identifier: Optional[str] = None
    lab_identifier: Optional[str] = None
    issued_at: Optional[int] = None
    expires_at: Optional[int] = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.user_id,
            "userId": self.user_id,
            "role": self.role,
            "organizationId": self.organization_id,
            "organizationIdentifier": self.organization_identifier,
        }
        if self.lab_identifier:
            payload["labIdentifier"] = self.lab_identifier
        return payload

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "TokenClaims":
        user_id = payload.get("userId") or payload.get("id")
        if not user_id or not payload.get("role"):
            raise TokenError()
        return cls(
            user_id=str(user_id),
            role=str(payload["role"]),
            organization_id=payload.get("organizationId"),
            organization_identifier=payload.get("organizationIdentifier"),
            lab_identifier=payload.get("labIdentifier"),
            issued_at=payload.get("iat"),
            expires_at=payload.get("exp"),
        )


def _classify(exc: TokenBackendError) -> TokenError:
    cause = exc.__cause__
    if isinstance(cause, jwt.ExpiredSignatureError):
        return TokenExpired()
    if isinstance(cause, jwt.InvalidSignatureError):
        return TokenInvalidSignature()
    return TokenError()


class TokenCodec:
    """
    HS256 signing/verification of session claims.

    Built around simplejwt's TokenBackend; the secret comes from AuthConfig
    and a missing secret raises ImproperlyConfigured on first use.
    """

    def __init__(self, config: AuthConfig | None = None):
        self.config = config or get_auth_config()

    def _backend(self) -> TokenBackend:
        return TokenBackend(self.config.jwt_algorithm, signing_key=self.config.require_secret())

    def issue(self, claims: TokenClaims, ttl: timedelta | None = None, *, at: datetime | None = None) -> str:
        issued = at or datetime.now(tz=timezone.utc)
        lifetime = ttl if ttl is not None else self.config.token_lifetime
        payload = claims.to_payload()
        payload["iat"] = int(issued.timestamp())
        payload["exp"] = int((issued + lifetime).timestamp())
        return self._backend().encode(payload)

    def verify(self, token: str) -> TokenClaims:
        backend = self._backend()
        try:
            payload = backend.decode(token, verify=True)
        except TokenBackendError as exc:
            err = _classify(exc)
            logger.warning("token rejected code=%s", err.default_code)
            raise err from exc
        return TokenClaims.from_payload(payload)


def claims_for_user(user, *, lab_identifier: str | None = None) -> TokenClaims:
    organization_id = str(user.organization_id) if user.organization_id else None
    return TokenClaims(
        user_id=str(user.id),
        role=user.role,
        organization_id=organization_id,
        organization_identifier=user.organization_identifier or None,
        lab_identifier=lab_identifier,
    )
