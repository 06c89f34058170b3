from datetime import timedelta

import pytest
from django.test import override_settings
from django.utils import timezone

from rad_core.conftest import PASSWORD
from rad_core.iam.models import User
from rad_core.iam.roles import Role
from rad_core.iam.tokens import TokenCodec
from rad_core.organizations.models import OrganizationStatus

pytestmark = pytest.mark.django_db

LOGIN_URL = "/api/auth/login"


def _login(client, email, password=PASSWORD):
    return client.post(LOGIN_URL, {"email": email, "password": password}, format="json")


def test_login_success_returns_token_user_and_cookie(anon_client, radiologist):
    res = _login(anon_client, "RAD@example.com ")
    assert res.status_code == 200, res.content

    body = res.json()
    assert body["success"] is True
    assert body["redirectTo"] == "/radiologist/dashboard"
    assert body["organizationContext"] == "TEST"
    assert body["expiresIn"] == 24 * 60 * 60
    assert body["user"]["email"] == "rad@example.com"
    assert "password" not in body["user"]

    claims = TokenCodec().verify(body["token"])
    assert claims.user_id == str(radiologist.id)
    assert claims.organization_identifier == "TEST"

    cookie = res.cookies["auth_token"]
    assert cookie.value == body["token"]
    assert cookie["httponly"]


def test_login_updates_login_bookkeeping(anon_client, radiologist):
    _login(anon_client, radiologist.email)
    _login(anon_client, radiologist.email)

    radiologist.refresh_from_db()
    assert radiologist.login_count == 2
    assert radiologist.is_logged_in is True
    assert radiologist.last_login_at is not None


@pytest.mark.parametrize("payload", [{}, {"email": "a@b.com"}, {"password": "x"}, {"email": "", "password": ""}])
def test_login_missing_fields_is_400(anon_client, payload):
    res = anon_client.post(LOGIN_URL, payload, format="json")
    assert res.status_code == 400
    assert res.json()["message"] == "Please provide email and password."


def test_unknown_email_and_wrong_password_look_identical(anon_client, radiologist):
    unknown = _login(anon_client, "nobody@example.com")
    wrong = _login(anon_client, radiologist.email, password="wrong-password")

    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json()["message"] == wrong.json()["message"] == "Invalid email or password."
    assert unknown.json()["code"] == wrong.json()["code"]


def test_inactive_user_is_forbidden(anon_client, radiologist):
    User.objects.filter(pk=radiologist.pk).update(is_active=False)

    res = _login(anon_client, radiologist.email)
    assert res.status_code == 403
    assert res.json()["message"] == "Your account has been deactivated."


@pytest.mark.parametrize("org_status", [OrganizationStatus.INACTIVE, OrganizationStatus.SUSPENDED, OrganizationStatus.TRIAL])
def test_login_blocked_when_organization_not_active(anon_client, radiologist, organization, org_status):
    organization.status = org_status
    organization.save(update_fields=["status"])

    res = _login(anon_client, radiologist.email)
    assert res.status_code == 403
    assert "not active" in res.json()["message"]


def test_login_blocked_when_subscription_expired(anon_client, radiologist, organization):
    organization.subscription_end_date = timezone.now() - timedelta(seconds=1)
    organization.save(update_fields=["subscription_end_date"])

    res = _login(anon_client, radiologist.email)
    assert res.status_code == 403
    assert res.json()["code"] == "subscription_expired"


def test_super_admin_login_is_global(anon_client, super_admin):
    res = _login(anon_client, super_admin.email)
    assert res.status_code == 200

    body = res.json()
    assert body["organizationContext"] == "global"
    assert body["redirectTo"] == "/superadmin/dashboard"

    claims = TokenCodec().verify(body["token"])
    assert claims.organization_id is None
    assert claims.organization_identifier is None


def test_missing_secret_is_a_server_error(anon_client, radiologist, settings):
    settings.RAD_AUTH = {**settings.RAD_AUTH, "JWT_SECRET": ""}

    res = _login(anon_client, radiologist.email)
    assert res.status_code == 500
    assert res.json()["success"] is False


def test_failed_issue_leaves_login_bookkeeping_untouched(anon_client, radiologist, settings):
    settings.RAD_AUTH = {**settings.RAD_AUTH, "JWT_SECRET": ""}

    assert _login(anon_client, radiologist.email).status_code == 500

    radiologist.refresh_from_db()
    assert radiologist.login_count == 0
    assert radiologist.is_logged_in is False
    assert radiologist.last_login_at is None


@override_settings(RAD_AUTH={"JWT_SECRET": "test-jwt-secret-with-enough-length-for-hs256", "AUTH_COOKIE_SECURE": True})
def test_secure_cookie_flag_follows_config(anon_client, radiologist):
    res = _login(anon_client, radiologist.email)
    assert res.cookies["auth_token"]["secure"]


def test_password_is_never_stored_in_plaintext(radiologist):
    assert radiologist.password != PASSWORD
    assert radiologist.check_password(PASSWORD)


def test_role_redirects_cover_every_role():
    from rad_core.iam.roles import REDIRECTS

    assert set(REDIRECTS) == set(Role.values)
