# rad_core/iam/apps.py
from django.apps import AppConfig


class IamConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "rad_core.iam"

    def ready(self) -> None:
        # import here so app loading doesn't break tooling
        from rad_core.iam import config, openapi  # noqa: F401

        config.check_auth_config()
