# rad_core/labs/apps.py
from django.apps import AppConfig


class LabsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "rad_core.labs"
