# rad_core/report_templates/apps.py
from django.apps import AppConfig


class ReportTemplatesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "rad_core.report_templates"
    label = "report_templates"
