import pytest
from rest_framework.exceptions import ValidationError

from rad_core.common.api.exceptions import ConflictError
from rad_core.iam.models import DoctorProfile, User
from rad_core.iam.roles import Role
from rad_core.labs.models import Lab
from rad_core.labs.services import LabService
from rad_core.organizations.models import Organization, OrganizationStatus
from rad_core.organizations.services import OrganizationService

pytestmark = pytest.mark.django_db


def test_create_builds_org_admin_and_default_labs(super_admin):
    result = OrganizationService.create(
        name="North Imaging",
        admin_email="Owner@North.example",
        identifier="north",
        created_by=super_admin,
    )

    org = result.organization
    assert org.identifier == "NORTH"
    assert org.status == OrganizationStatus.ACTIVE
    assert org.created_by == super_admin

    admin = result.admin_user
    assert admin.email == "owner@north.example"
    assert admin.role == Role.ADMIN
    assert admin.organization_identifier == "NORTH"
    assert admin.check_password(result.temp_password)

    assert sorted(lab.identifier for lab in result.labs) == ["EMERG", "MAIN"]
    assert all(lab.organization_identifier == "NORTH" for lab in result.labs)


def test_create_generates_identifier_when_omitted(super_admin):
    result = OrganizationService.create(name="Auto", admin_email="a@auto.example", admin_password="given-pass")
    assert len(result.organization.identifier) == 4
    assert result.temp_password is None
    assert result.admin_user.check_password("given-pass")


def test_duplicate_identifier_is_conflict(organization):
    with pytest.raises(ConflictError):
        OrganizationService.create(name="Another", admin_email="x@y.example", identifier="TEST")


def test_invalid_identifier_format_is_rejected(db):
    with pytest.raises(ValidationError):
        OrganizationService.create(name="Bad", admin_email="x@y.example", identifier="BAD-ID")


def test_duplicate_admin_email_is_conflict(admin_user):
    with pytest.raises(ConflictError):
        OrganizationService.create(name="Fresh", admin_email=admin_user.email)
    assert not Organization.objects.filter(name="Fresh").exists()


def test_create_rolls_back_when_a_step_fails(monkeypatch, db):
    def boom(**kwargs):
        raise RuntimeError("lab setup failed")

    monkeypatch.setattr(LabService, "create_default_labs", staticmethod(boom))

    with pytest.raises(RuntimeError):
        OrganizationService.create(name="Doomed", admin_email="d@doomed.example", identifier="DOOM")

    assert not Organization.objects.filter(identifier="DOOM").exists()
    assert not User.objects.filter(email="d@doomed.example").exists()


def test_update_ignores_identifier(organization):
    org = OrganizationService.update(
        organization_id=organization.id,
        data={"identifier": "HACK", "display_name": "Shiny", "max_users": 50},
    )
    assert org.identifier == "TEST"
    assert org.display_name == "Shiny"
    assert org.max_users == 50


def test_update_rejects_taken_name(organization, other_organization):
    with pytest.raises(ConflictError):
        OrganizationService.update(organization_id=organization.id, data={"name": other_organization.name})


def test_deactivate_cascades(organization, lab, radiologist, make_user):
    doctor = make_user(Role.DOCTOR_ACCOUNT)
    DoctorProfile.objects.create(user=doctor, organization_identifier="TEST")

    OrganizationService.deactivate(organization_id=organization.id)

    organization.refresh_from_db()
    assert organization.status == OrganizationStatus.INACTIVE
    assert not User.objects.filter(organization=organization, is_active=True).exists()
    assert not Lab.objects.filter(organization=organization, is_active=True).exists()
    assert not DoctorProfile.objects.filter(organization_identifier="TEST", is_active_profile=True).exists()


def test_non_super_admin_user_requires_organization(db):
    from django.core.exceptions import ValidationError as DjangoValidationError

    with pytest.raises(DjangoValidationError):
        User.objects.create_user("orphan@example.com", "pw", role=Role.RADIOLOGIST)
