from datetime import datetime, timedelta, timezone

import pytest
from rest_framework.test import APIClient

from rad_core.conftest import auth_headers, token_for
from rad_core.iam.config import build_auth_config
from rad_core.iam.models import User
from rad_core.iam.roles import Role
from rad_core.iam.tokens import TokenClaims, TokenCodec
from rad_core.organizations.models import OrganizationStatus

pytestmark = pytest.mark.django_db

ME_URL = "/api/auth/me"


def _get_me(token=None, **extra):
    c = APIClient()
    if token:
        extra.update(auth_headers(token))
    return c.get(ME_URL, **extra)


def test_no_token_is_401_with_challenge():
    res = _get_me()
    assert res.status_code == 401
    body = res.json()
    assert body["success"] is False
    assert body["message"] == "Not authorized, no token provided"
    assert res["WWW-Authenticate"].startswith("Bearer")


def test_valid_bearer_token_reaches_the_view(radiologist):
    res = _get_me(token_for(radiologist))
    assert res.status_code == 200
    body = res.json()
    assert body["user"]["id"] == str(radiologist.id)
    assert body["tokenContext"]["organizationIdentifier"] == "TEST"


def test_query_param_token_is_accepted(radiologist):
    res = APIClient().get(ME_URL, {"token": token_for(radiologist)})
    assert res.status_code == 200


def test_cookie_token_is_accepted(radiologist):
    c = APIClient()
    c.cookies["auth_token"] = token_for(radiologist)
    assert c.get(ME_URL).status_code == 200


def test_bearer_header_wins_over_query_param(radiologist, assignor):
    res = APIClient().get(ME_URL, {"token": token_for(assignor)}, **auth_headers(token_for(radiologist)))
    assert res.json()["user"]["id"] == str(radiologist.id)


def test_expired_token_reports_expired_code(radiologist):
    issued = datetime.now(tz=timezone.utc) - timedelta(days=2)
    token = TokenCodec().issue(TokenClaims(user_id=str(radiologist.id), role=radiologist.role, organization_identifier="TEST"), at=issued)

    res = _get_me(token)
    assert res.status_code == 401
    assert res.json()["code"] == "TOKEN_EXPIRED"
    assert res.json()["message"] == "Token expired"


def test_foreign_signature_is_rejected(radiologist):
    foreign = TokenCodec(build_auth_config({"JWT_SECRET": "some-other-secret-that-is-long-enough"}))
    res = _get_me(foreign.issue(TokenClaims(user_id=str(radiologist.id), role=radiologist.role, organization_identifier="TEST")))
    assert res.status_code == 401
    assert res.json()["code"] == "TOKEN_INVALID_SIGNATURE"


def test_garbage_token_is_malformed():
    res = _get_me("definitely.not.valid")
    assert res.status_code == 401
    assert res.json()["code"] == "TOKEN_MALFORMED"


def test_token_with_other_organization_identifier_is_rejected(radiologist, other_organization):
    claims = TokenClaims(user_id=str(radiologist.id), role=radiologist.role, organization_identifier=other_organization.identifier)
    res = _get_me(TokenCodec().issue(claims))
    assert res.status_code == 401
    assert res.json()["message"] == "Not authorized, user not found or organization context mismatch"


def test_user_moved_to_other_organization_after_issue_is_rejected(radiologist, other_organization):
    token = token_for(radiologist)
    radiologist.organization = other_organization
    radiologist.save()

    res = _get_me(token)
    assert res.status_code == 401
    assert res.json()["message"] == "Not authorized, user not found or organization context mismatch"


def test_token_without_organization_for_tenant_user_is_rejected(radiologist):
    claims = TokenClaims(user_id=str(radiologist.id), role=radiologist.role)
    assert _get_me(TokenCodec().issue(claims)).status_code == 401


def test_non_uuid_user_id_is_rejected():
    claims = TokenClaims(user_id="12345", role=Role.ADMIN, organization_identifier="TEST")
    assert _get_me(TokenCodec().issue(claims)).status_code == 401


def test_super_admin_claim_for_demoted_user_is_rejected(admin_user):
    claims = TokenClaims(user_id=str(admin_user.id), role=Role.SUPER_ADMIN)
    assert _get_me(TokenCodec().issue(claims)).status_code == 401


def test_deactivated_user_is_forbidden_even_with_valid_token(radiologist):
    token = token_for(radiologist)
    User.objects.filter(pk=radiologist.pk).update(is_active=False)

    res = _get_me(token)
    assert res.status_code == 403
    assert res.json()["message"] == "User account is deactivated"


def test_deactivated_super_admin_is_forbidden(super_admin):
    token = token_for(super_admin)
    User.objects.filter(pk=super_admin.pk).update(is_active=False)
    assert _get_me(token).status_code == 403


def test_inactive_organization_is_forbidden(radiologist, organization):
    token = token_for(radiologist)
    organization.status = OrganizationStatus.SUSPENDED
    organization.save(update_fields=["status"])

    res = _get_me(token)
    assert res.status_code == 403
    assert res.json()["message"] == "Organization account is not active"


def test_super_admin_passes_without_organization(super_admin):
    res = _get_me(token_for(super_admin))
    assert res.status_code == 200
    assert res.json()["organizationContext"] == "global"


def test_missing_secret_is_a_500(radiologist, settings):
    token = token_for(radiologist)
    settings.RAD_AUTH = {**settings.RAD_AUTH, "JWT_SECRET": ""}

    res = _get_me(token)
    assert res.status_code == 500
    assert res.json()["message"] == "Server error during authentication"


def test_me_includes_organization_stats_for_admin(api_client, radiologist):
    res = api_client.get(ME_URL)
    assert res.status_code == 200
    stats = res.json()["organizationStats"]
    assert stats["totalUsers"] == 2
    assert stats["activeUsers"] == 2


def test_error_responses_carry_request_id():
    res = _get_me(HTTP_X_REQUEST_ID="abc123")
    assert res.json()["request_id"] == "abc123"
    assert res["X-Request-Id"] == "abc123"
