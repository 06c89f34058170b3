import pytest
from django.core.exceptions import ValidationError

from rad_core.common.api.exceptions import ConflictError
from rad_core.report_templates.models import HTMLTemplate, TemplateScope, html_has_text
from rad_core.report_templates.services import TemplateService

pytestmark = pytest.mark.django_db

BODY = "<p>Impression: <b>normal</b></p>"


def test_doctor_specific_template_requires_doctor(admin_user):
    with pytest.raises(ValidationError):
        TemplateService.create(
            created_by=admin_user,
            title="Chest CT",
            category="CT",
            html_content=BODY,
            template_scope=TemplateScope.DOCTOR_SPECIFIC,
        )


def test_global_template_never_keeps_a_doctor(admin_user, radiologist):
    tpl = TemplateService.create(
        created_by=admin_user,
        title="Chest CT",
        category="CT",
        html_content=BODY,
        template_scope=TemplateScope.GLOBAL,
        assigned_doctor=radiologist,
    )
    tpl.refresh_from_db()
    assert tpl.assigned_doctor is None
    assert tpl.organization_identifier == "TEST"


def test_markup_only_content_is_rejected(admin_user, radiologist):
    assert not html_has_text("<p> </p><br/>")
    with pytest.raises(ValidationError):
        TemplateService.create(
            created_by=admin_user,
            title="Empty",
            category="CT",
            html_content="<p> </p>",
            assigned_doctor=radiologist,
        )


def test_duplicate_active_title_is_conflict_per_doctor(admin_user, radiologist, make_user):
    TemplateService.create(created_by=admin_user, title="Brain MR", category="MR", html_content=BODY, assigned_doctor=radiologist)

    with pytest.raises(ConflictError):
        TemplateService.create(created_by=admin_user, title="Brain MR", category="MR", html_content=BODY, assigned_doctor=radiologist)

    # same title for another doctor is fine
    other = make_user("radiologist")
    TemplateService.create(created_by=admin_user, title="Brain MR", category="MR", html_content=BODY, assigned_doctor=other)


def test_deactivated_title_can_be_reused(admin_user):
    tpl = TemplateService.create(
        created_by=admin_user, title="Spine", category="MR", html_content=BODY, template_scope=TemplateScope.GLOBAL
    )
    TemplateService.deactivate(template_id=tpl.id, organization_identifier="TEST")

    TemplateService.create(
        created_by=admin_user, title="Spine", category="MR", html_content=BODY, template_scope=TemplateScope.GLOBAL
    )
    assert HTMLTemplate.objects.filter(title="Spine").count() == 2


def test_usage_and_version_counters(admin_user):
    tpl = TemplateService.create(
        created_by=admin_user, title="Abdomen US", category="US", html_content=BODY, template_scope=TemplateScope.GLOBAL
    )
    TemplateService.record_usage(template_id=tpl.id)
    TemplateService.record_usage(template_id=tpl.id)

    tpl = TemplateService.update(template_id=tpl.id, organization_identifier="TEST", data={"description": "v2"})
    assert tpl.usage_count == 2
    assert tpl.last_used_at is not None
    assert tpl.version == 2
    assert tpl.description == "v2"
