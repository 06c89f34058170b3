# rad_core/conftest.py
from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from rad_core.iam.models import User
from rad_core.iam.roles import Role
from rad_core.iam.tokens import TokenCodec, claims_for_user
from rad_core.labs.models import Lab
from rad_core.organizations.models import Organization, OrganizationStatus
from rad_core.studies.models import DicomStudy

PASSWORD = "s3cret-pass"


def auth_headers(token: str) -> dict:
    """DRF test client requires the HTTP_ prefix."""
    return {"HTTP_AUTHORIZATION": f"Bearer {token}"}


def token_for(user, **kwargs) -> str:
    return TokenCodec().issue(claims_for_user(user, **kwargs))


@pytest.fixture
def organization(db):
    return Organization.objects.create(
        name="Test Imaging",
        identifier="TEST",
        display_name="Test Imaging",
        status=OrganizationStatus.ACTIVE,
        subscription_end_date=timezone.now() + timedelta(days=30),
    )


@pytest.fixture
def other_organization(db):
    return Organization.objects.create(
        name="Other Imaging",
        identifier="OTHR",
        display_name="Other Imaging",
        status=OrganizationStatus.ACTIVE,
    )


@pytest.fixture
def lab(organization):
    return Lab.objects.create(organization=organization, name="Test Main Lab", identifier="MAIN")


@pytest.fixture
def make_user(db, organization):
    """
    Factory: make_user(Role.RADIOLOGIST, email=..., organization=..., **extra)
    Every user gets PASSWORD.
    """
    counter = {"n": 0}

    def _make(role=Role.ADMIN, *, email=None, organization=organization, **extra):
        counter["n"] += 1
        email = email or f"{role}{counter['n']}@example.com"
        return User.objects.create_user(
            email,
            PASSWORD,
            role=role,
            organization=organization,
            full_name=f"{role} user",
            **extra,
        )

    return _make


@pytest.fixture
def admin_user(make_user):
    return make_user(Role.ADMIN, email="admin@example.com")


@pytest.fixture
def super_admin(make_user):
    return make_user(Role.SUPER_ADMIN, email="root@example.com", organization=None)


@pytest.fixture
def radiologist(make_user):
    return make_user(Role.RADIOLOGIST, email="rad@example.com")


@pytest.fixture
def assignor(make_user):
    return make_user(Role.ASSIGNOR, email="assignor@example.com")


@pytest.fixture
def lab_staff(make_user, lab):
    return make_user(Role.LAB_STAFF, email="lab@example.com", lab=lab)


@pytest.fixture
def client_for():
    """client_for(user) -> APIClient carrying a real bearer token."""

    def _client(user, **claims_kwargs):
        c = APIClient()
        c.credentials(**auth_headers(token_for(user, **claims_kwargs)))
        return c

    return _client


@pytest.fixture
def api_client(admin_user, client_for):
    return client_for(admin_user)


@pytest.fixture
def anon_client():
    return APIClient()


@pytest.fixture
def study(organization, lab):
    return DicomStudy.objects.create(
        organization=organization,
        study_instance_uid="1.2.840.113619.2.1",
        patient_name="Test Patient",
        patient_id="PAT-001",
        modality="CT",
        source_lab=lab,
    )
