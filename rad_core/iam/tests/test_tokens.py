from datetime import datetime, timedelta, timezone

import pytest
from django.core.exceptions import ImproperlyConfigured

from rad_core.iam.config import build_auth_config, get_auth_config
from rad_core.iam.tokens import (
    TOKEN_EXPIRED,
    TOKEN_INVALID_SIGNATURE,
    TOKEN_MALFORMED,
    TokenClaims,
    TokenCodec,
    TokenError,
    TokenExpired,
    TokenInvalidSignature,
)

CLAIMS = TokenClaims(
    user_id="2f1c6a8e-9a4b-4a8e-8f1a-5d0c7b1e2a33",
    role="radiologist",
    organization_id="7d4b1f0c-2e3a-4c5d-9e8f-0a1b2c3d4e5f",
    organization_identifier="TEST",
)


def test_issue_then_verify_returns_same_claims():
    codec = TokenCodec()
    token = codec.issue(CLAIMS)

    claims = codec.verify(token)
    assert claims.user_id == CLAIMS.user_id
    assert claims.role == "radiologist"
    assert claims.organization_id == CLAIMS.organization_id
    assert claims.organization_identifier == "TEST"
    assert claims.lab_identifier is None
    assert claims.expires_at - claims.issued_at == get_auth_config().token_lifetime_seconds


def test_payload_carries_both_id_keys():
    payload = CLAIMS.to_payload()
    assert payload["id"] == payload["userId"] == CLAIMS.user_id
    assert "labIdentifier" not in payload


def test_expired_token_is_rejected_with_expired_code():
    codec = TokenCodec()
    issued = datetime.now(tz=timezone.utc) - timedelta(hours=2)
    token = codec.issue(CLAIMS, timedelta(hours=1), at=issued)

    with pytest.raises(TokenExpired) as exc:
        codec.verify(token)
    assert exc.value.default_code == TOKEN_EXPIRED
    assert str(exc.value.detail) == "Token expired"


def test_token_signed_with_other_secret_is_rejected():
    other = TokenCodec(build_auth_config({"JWT_SECRET": "a-completely-different-secret-value!!"}))
    token = other.issue(CLAIMS)

    with pytest.raises(TokenInvalidSignature) as exc:
        TokenCodec().verify(token)
    assert exc.value.default_code == TOKEN_INVALID_SIGNATURE


@pytest.mark.parametrize("garbage", ["not-a-jwt", "a.b.c", ""])
def test_malformed_token_is_rejected(garbage):
    with pytest.raises(TokenError) as exc:
        TokenCodec().verify(garbage)
    assert exc.value.default_code == TOKEN_MALFORMED
    assert not isinstance(exc.value, (TokenExpired, TokenInvalidSignature))


def test_payload_without_role_is_malformed():
    with pytest.raises(TokenError):
        TokenClaims.from_payload({"id": CLAIMS.user_id})


def test_missing_secret_fails_loudly():
    codec = TokenCodec(build_auth_config({"JWT_SECRET": ""}))
    with pytest.raises(ImproperlyConfigured):
        codec.issue(CLAIMS)


def test_settings_override_reloads_config(settings):
    settings.RAD_AUTH = {**settings.RAD_AUTH, "TOKEN_LIFETIME": timedelta(minutes=5)}
    assert get_auth_config().token_lifetime_seconds == 300
