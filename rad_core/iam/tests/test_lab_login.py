import pytest

from rad_core.conftest import PASSWORD
from rad_core.iam.roles import Role
from rad_core.iam.tokens import TokenCodec
from rad_core.organizations.models import OrganizationStatus

pytestmark = pytest.mark.django_db

LAB_LOGIN_URL = "/api/auth/lab-login"


def _lab_login(client, email):
    return client.post(LAB_LOGIN_URL, {"email": email, "password": PASSWORD}, format="json")


def test_lab_staff_gets_lab_scoped_token(anon_client, lab_staff, lab):
    res = _lab_login(anon_client, lab_staff.email)
    assert res.status_code == 200, res.content

    body = res.json()
    assert body["user"]["lab"]["identifier"] == "MAIN"
    assert body["user"]["organizationIdentifier"] == "TEST"

    claims = TokenCodec().verify(body["token"])
    assert claims.lab_identifier == "MAIN"
    assert claims.organization_identifier == "TEST"
    assert claims.role == Role.LAB_STAFF


def test_lab_login_token_is_accepted_by_guard(anon_client, lab_staff):
    token = _lab_login(anon_client, lab_staff.email).json()["token"]
    res = anon_client.get("/api/auth/me", HTTP_AUTHORIZATION=f"Bearer {token}")
    assert res.status_code == 200
    assert res.json()["tokenContext"]["labIdentifier"] == "MAIN"


def test_non_lab_staff_is_refused(anon_client, radiologist):
    res = _lab_login(anon_client, radiologist.email)
    assert res.status_code == 403
    assert res.json()["message"] == "Access Denied: This application is for Lab Staff only."


def test_lab_staff_without_lab_is_refused(anon_client, make_user):
    user = make_user(Role.LAB_STAFF)
    res = _lab_login(anon_client, user.email)
    assert res.status_code == 403
    assert res.json()["message"] == "Configuration Error: No Lab assigned to this account."


def test_inactive_lab_is_refused(anon_client, lab_staff, lab):
    lab.is_active = False
    lab.save(update_fields=["is_active"])

    res = _lab_login(anon_client, lab_staff.email)
    assert res.status_code == 403
    assert res.json()["message"] == "Your assigned Lab is currently inactive."


def test_inactive_organization_is_refused(anon_client, lab_staff, organization):
    organization.status = OrganizationStatus.INACTIVE
    organization.save(update_fields=["status"])
    assert _lab_login(anon_client, lab_staff.email).status_code == 403


def test_bad_password_is_401(anon_client, lab_staff):
    res = anon_client.post(LAB_LOGIN_URL, {"email": lab_staff.email, "password": "nope"}, format="json")
    assert res.status_code == 401
