# rad_core/studies/apps.py
from django.apps import AppConfig


class StudiesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "rad_core.studies"
