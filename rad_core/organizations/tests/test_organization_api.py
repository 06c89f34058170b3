import pytest

from rad_core.organizations.models import Organization, OrganizationStatus

pytestmark = pytest.mark.django_db

BASE = "/api/superadmin/organizations"


@pytest.fixture
def root_client(client_for, super_admin):
    return client_for(super_admin)


def test_org_admin_cannot_reach_superadmin_routes(api_client):
    res = api_client.get(BASE)
    assert res.status_code == 403
    assert res.json()["code"] == "permission_denied"


def test_anonymous_gets_401(anon_client):
    assert anon_client.get(BASE).status_code == 401


def test_list_is_paginated_and_searchable(root_client, organization, other_organization):
    res = root_client.get(BASE, {"search": "other"})
    assert res.status_code == 200
    body = res.json()
    assert body["pagination"]["count"] == 1
    assert body["data"][0]["identifier"] == "OTHR"


def test_create_returns_admin_with_temp_password(root_client):
    res = root_client.post(
        BASE,
        {"name": "Harbor Scans", "identifier": "HARB", "adminEmail": "boss@harbor.example"},
        format="json",
    )
    assert res.status_code == 201, res.content

    data = res.json()["data"]
    assert data["organization"]["identifier"] == "HARB"
    assert data["adminUser"]["role"] == "admin"
    assert data["adminUser"]["tempPassword"]
    assert len(data["labs"]) == 2


def test_create_duplicate_identifier_is_409(root_client, organization):
    res = root_client.post(
        BASE,
        {"name": "Clone", "identifier": "TEST", "adminEmail": "clone@example.com"},
        format="json",
    )
    assert res.status_code == 409
    assert res.json()["code"] == "duplicate_key"


def test_patch_cannot_change_identifier(root_client, organization):
    res = root_client.patch(
        f"{BASE}/{organization.id}",
        {"identifier": "NOPE", "displayName": "Renamed"},
        format="json",
    )
    assert res.status_code == 200
    assert res.json()["data"]["identifier"] == "TEST"
    assert res.json()["data"]["displayName"] == "Renamed"


def test_retrieve_unknown_is_404(root_client):
    res = root_client.get(f"{BASE}/00000000-0000-0000-0000-000000000000")
    assert res.status_code == 404


def test_retrieve_bad_uuid_is_400(root_client):
    assert root_client.get(f"{BASE}/not-a-uuid").status_code == 400


def test_delete_is_soft(root_client, organization, radiologist):
    res = root_client.delete(f"{BASE}/{organization.id}")
    assert res.status_code == 200

    assert Organization.objects.get(pk=organization.pk).status == OrganizationStatus.INACTIVE
    radiologist.refresh_from_db()
    assert radiologist.is_active is False


def test_stats(root_client, organization, other_organization):
    res = root_client.get(f"{BASE}/stats")
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["total"] == 2
    assert data["byStatus"]["active"] == 2
