import re

import pytest
from django.core.exceptions import ValidationError

from rad_core.organizations import identifiers
from rad_core.organizations.identifiers import generate_identifier
from rad_core.organizations.models import Organization, OrganizationStatus

pytestmark = pytest.mark.django_db


def test_generated_identifier_is_four_uppercase_letters():
    assert re.fullmatch(r"[A-Z]{4}", generate_identifier())


def test_generated_identifier_skips_taken_codes_including_inactive(monkeypatch, organization):
    organization.status = OrganizationStatus.INACTIVE
    organization.save(update_fields=["status"])

    candidates = iter(["TEST", "TEST", "ABCD"])
    monkeypatch.setattr(identifiers, "random_identifier", lambda length=4: next(candidates))

    assert generate_identifier() == "ABCD"


def test_generation_gives_up_when_space_exhausted(monkeypatch, organization):
    monkeypatch.setattr(identifiers, "random_identifier", lambda length=4: "TEST")
    with pytest.raises(RuntimeError):
        generate_identifier()


def test_identifier_cannot_change_after_creation(organization):
    org = Organization.objects.get(pk=organization.pk)
    org.identifier = "NEWX"
    with pytest.raises(ValidationError):
        org.save()

    assert Organization.objects.get(pk=organization.pk).identifier == "TEST"


def test_identifier_is_uppercased_on_save(db):
    org = Organization.objects.create(name="Lower", identifier="low1", display_name="Lower")
    assert org.identifier == "LOW1"
    assert org.status == OrganizationStatus.TRIAL


def test_other_fields_still_editable(organization):
    org = Organization.objects.get(pk=organization.pk)
    org.display_name = "Renamed"
    org.save()
    assert Organization.objects.get(pk=organization.pk).display_name == "Renamed"
