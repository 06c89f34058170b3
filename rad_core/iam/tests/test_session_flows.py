from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from rad_core.conftest import auth_headers
from rad_core.iam.tokens import TokenCodec
from rad_core.organizations.models import OrganizationStatus

pytestmark = pytest.mark.django_db


def test_logout_clears_cookie_and_flag(client_for, radiologist):
    c = client_for(radiologist)
    c.post("/api/auth/login", {"email": radiologist.email, "password": "s3cret-pass"}, format="json")

    res = c.post("/api/auth/logout")
    assert res.status_code == 200
    assert res.cookies["auth_token"].value == ""

    radiologist.refresh_from_db()
    assert radiologist.is_logged_in is False
    assert radiologist.last_logout_at is not None


def test_refresh_issues_new_token_for_live_user(client_for, radiologist):
    res = client_for(radiologist).post("/api/auth/refresh-token")
    assert res.status_code == 200
    claims = TokenCodec().verify(res.json()["token"])
    assert claims.user_id == str(radiologist.id)


def test_refresh_refused_when_subscription_expired(client_for, radiologist, organization):
    c = client_for(radiologist)
    organization.subscription_end_date = timezone.now() - timedelta(minutes=1)
    organization.save(update_fields=["subscription_end_date"])

    # the guard itself does not look at the subscription
    assert c.get("/api/auth/me").status_code == 200
    assert c.post("/api/auth/refresh-token").status_code == 403


def test_switch_organization_scopes_super_admin_token(client_for, super_admin, organization):
    res = client_for(super_admin).post(
        "/api/auth/switch-organization", {"organizationIdentifier": "test"}, format="json"
    )
    assert res.status_code == 200
    body = res.json()
    assert body["organizationContext"] == "TEST"

    claims = TokenCodec().verify(body["token"])
    assert claims.organization_identifier == "TEST"
    assert claims.organization_id == str(organization.id)

    # stored user is untouched
    super_admin.refresh_from_db()
    assert super_admin.organization_id is None

    me = APIClient().get("/api/auth/me", **auth_headers(body["token"]))
    assert me.status_code == 200
    assert me.json()["tokenContext"]["organizationIdentifier"] == "TEST"


def test_switch_organization_without_identifier_returns_global(client_for, super_admin):
    res = client_for(super_admin).post("/api/auth/switch-organization", {}, format="json")
    assert res.status_code == 200
    assert res.json()["organizationContext"] == "global"


def test_switch_to_inactive_organization_is_404(client_for, super_admin, organization):
    organization.status = OrganizationStatus.INACTIVE
    organization.save(update_fields=["status"])

    res = client_for(super_admin).post(
        "/api/auth/switch-organization", {"organizationIdentifier": "TEST"}, format="json"
    )
    assert res.status_code == 404


def test_switch_organization_is_super_admin_only(api_client):
    res = api_client.post("/api/auth/switch-organization", {"organizationIdentifier": "TEST"}, format="json")
    assert res.status_code == 403
    assert res.json()["message"] == "User role 'admin' is not authorized to access this route"


def test_organizations_list_for_super_admin(client_for, super_admin, organization, other_organization):
    other_organization.status = OrganizationStatus.SUSPENDED
    other_organization.save(update_fields=["status"])

    res = client_for(super_admin).get("/api/auth/organizations")
    assert res.status_code == 200
    assert [o["identifier"] for o in res.json()["data"]] == ["TEST"]


def _switch(client, identifier):
    res = client.post("/api/auth/switch-organization", {"organizationIdentifier": identifier}, format="json")
    assert res.status_code == 200
    return res.json()["token"]


def test_refresh_keeps_switched_organization(client_for, super_admin, organization):
    token = _switch(client_for(super_admin), "TEST")

    res = APIClient().post("/api/auth/refresh-token", **auth_headers(token))
    assert res.status_code == 200
    body = res.json()
    assert body["organizationContext"] == "TEST"

    claims = TokenCodec().verify(body["token"])
    assert claims.organization_identifier == "TEST"
    assert claims.organization_id == str(organization.id)


def test_refresh_of_global_super_admin_token_stays_global(client_for, super_admin):
    res = client_for(super_admin).post("/api/auth/refresh-token")
    assert res.status_code == 200
    assert res.json()["organizationContext"] == "global"
    assert TokenCodec().verify(res.json()["token"]).organization_identifier is None


def test_refresh_refused_after_switched_organization_deactivated(client_for, super_admin, organization):
    token = _switch(client_for(super_admin), "TEST")
    organization.status = OrganizationStatus.INACTIVE
    organization.save(update_fields=["status"])

    res = APIClient().post("/api/auth/refresh-token", **auth_headers(token))
    assert res.status_code == 404
    assert res.json()["message"] == "Organization not found or not active."
