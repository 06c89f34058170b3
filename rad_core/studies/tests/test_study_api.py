import pytest
from rest_framework.test import APIClient

from rad_core.iam.roles import Role
from rad_core.labs.models import Lab
from rad_core.studies.models import DicomStudy
from rad_core.studies.workflow import WorkflowStatus

pytestmark = pytest.mark.django_db

BASE = "/api/studies"


@pytest.fixture
def foreign_study(other_organization):
    return DicomStudy.objects.create(organization=other_organization, study_instance_uid="9.9.9")


def _ids(res):
    return {row["id"] for row in res.json()["data"]}


def test_list_is_scoped_to_own_organization(client_for, radiologist, study, foreign_study):
    res = client_for(radiologist).get(BASE)
    assert res.status_code == 200
    assert _ids(res) == {str(study.id)}
    assert res.json()["data"][0]["category"] == "pending"


def test_lab_staff_only_sees_own_lab(client_for, organization, lab_staff, study):
    other_lab = Lab.objects.create(organization=organization, name="Second", identifier="SEC")
    DicomStudy.objects.create(organization=organization, study_instance_uid="2.2.2", source_lab=other_lab)

    res = client_for(lab_staff).get(BASE)
    assert _ids(res) == {str(study.id)}


def test_super_admin_is_global_until_switched(client_for, super_admin, organization, study, foreign_study):
    assert _ids(client_for(super_admin).get(BASE)) == {str(study.id), str(foreign_study.id)}

    switched = client_for(super_admin).post(
        "/api/auth/switch-organization", {"organizationIdentifier": "TEST"}, format="json"
    ).json()["token"]
    c = APIClient()
    c.credentials(HTTP_AUTHORIZATION=f"Bearer {switched}")
    assert _ids(c.get(BASE)) == {str(study.id)}


def test_category_filter(client_for, radiologist, study, organization):
    DicomStudy.objects.create(
        organization=organization,
        study_instance_uid="3.3.3",
        workflow_status=WorkflowStatus.REPORT_FINALIZED,
    )
    res = client_for(radiologist).get(BASE, {"category": "completed"})
    assert len(res.json()["data"]) == 1
    assert res.json()["data"][0]["workflowStatus"] == "report_finalized"


def test_stats_counts_buckets(client_for, radiologist, study, organization):
    DicomStudy.objects.create(organization=organization, study_instance_uid="4.4.4", workflow_status=WorkflowStatus.REPORT_DRAFTED)
    DicomStudy.objects.create(organization=organization, study_instance_uid="5.5.5", workflow_status=WorkflowStatus.ARCHIVED)

    res = client_for(radiologist).get(f"{BASE}/stats")
    assert res.status_code == 200
    assert res.json()["data"] == {"pending": 1, "inprogress": 1, "completed": 1, "total": 3}


def test_retrieve_lists_allowed_transitions(client_for, assignor, study):
    res = client_for(assignor).get(f"{BASE}/{study.id}")
    assert res.status_code == 200
    allowed = res.json()["data"]["allowedTransitions"]
    assert "pending_assignment" in allowed
    assert "report_finalized" not in allowed


def test_foreign_study_is_404(client_for, radiologist, foreign_study):
    assert client_for(radiologist).get(f"{BASE}/{foreign_study.id}").status_code == 404


def test_transition_endpoint(client_for, assignor, study):
    res = client_for(assignor).post(f"{BASE}/{study.id}/transition", {"status": "pending_assignment", "note": "ready"}, format="json")
    assert res.status_code == 200
    assert res.json()["data"]["workflowStatus"] == "pending_assignment"

    history = client_for(assignor).get(f"{BASE}/{study.id}/history").json()["data"]
    assert history[0]["toStatus"] == "pending_assignment"
    assert history[0]["note"] == "ready"


def test_illegal_transition_is_409(api_client, study):
    res = api_client.post(f"{BASE}/{study.id}/transition", {"status": "archived"}, format="json")
    assert res.status_code == 200

    res = api_client.post(f"{BASE}/{study.id}/transition", {"status": "report_drafted"}, format="json")
    assert res.status_code == 409
    assert res.json()["code"] == "illegal_transition"


def test_transition_by_wrong_role_is_403(client_for, make_user, study):
    billing = make_user(Role.BILLING)
    res = client_for(billing).post(f"{BASE}/{study.id}/transition", {"status": "pending_assignment"}, format="json")
    assert res.status_code == 403


def test_assign_endpoint(client_for, assignor, radiologist, study):
    res = client_for(assignor).post(f"{BASE}/{study.id}/assign", {"doctorId": str(radiologist.id)}, format="json")
    assert res.status_code == 200
    assert res.json()["data"]["assignedTo"] == str(radiologist.id)


def test_radiologist_cannot_assign(client_for, radiologist, study):
    res = client_for(radiologist).post(f"{BASE}/{study.id}/assign", {"doctorId": str(radiologist.id)}, format="json")
    assert res.status_code == 403
