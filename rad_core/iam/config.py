# rad_core/iam/config.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.core.signals import setting_changed
from django.dispatch import receiver

logger = logging.getLogger(__name__)

DEFAULTS = {
    "JWT_SECRET": "",
    "JWT_ALGORITHM": "HS256",
    "TOKEN_LIFETIME": timedelta(hours=24),
    "AUTH_COOKIE": "auth_token",
    "AUTH_COOKIE_SECURE": False,
    "AUTH_COOKIE_SAMESITE": "None",
    "TOKEN_QUERY_PARAM": "token",
    "LAB_COMPRESSION_API_KEY": "",
}


@dataclass(frozen=True)
class AuthConfig:
    """
    Immutable auth configuration, built once from settings.RAD_AUTH.
    Request code receives this object; it never reads the environment.
    """
    jwt_secret: str
    jwt_algorithm: str
    token_lifetime: timedelta
    cookie_name: str
    cookie_secure: bool
    cookie_samesite: str
    token_query_param: str
    lab_compression_api_key: str

    @property
    def token_lifetime_seconds(self) -> int:
        return int(self.token_lifetime.total_seconds())

    def require_secret(self) -> str:
        if not self.jwt_secret:
            raise ImproperlyConfigured("RAD_AUTH['JWT_SECRET'] is not set.")
        return self.jwt_secret


def build_auth_config(raw: dict | None = None) -> AuthConfig:
    merged = {**DEFAULTS, **(raw or {})}
    lifetime = merged["TOKEN_LIFETIME"]
    if not isinstance(lifetime, timedelta):
        lifetime = timedelta(seconds=int(lifetime))
    return AuthConfig(
        jwt_secret=merged["JWT_SECRET"] or "",
        jwt_algorithm=merged["JWT_ALGORITHM"],
        token_lifetime=lifetime,
        cookie_name=merged["AUTH_COOKIE"],
        cookie_secure=bool(merged["AUTH_COOKIE_SECURE"]),
        cookie_samesite=merged["AUTH_COOKIE_SAMESITE"],
        token_query_param=merged["TOKEN_QUERY_PARAM"],
        lab_compression_api_key=merged["LAB_COMPRESSION_API_KEY"] or "",
    )


@lru_cache(maxsize=1)
def get_auth_config() -> AuthConfig:
    return build_auth_config(getattr(settings, "RAD_AUTH", None))


@receiver(setting_changed)
def reload_auth_config(*, setting, **kwargs):
    if setting == "RAD_AUTH":
        get_auth_config.cache_clear()


def check_auth_config() -> None:
    """Startup check; logs loudly instead of crashing management commands."""
    if not get_auth_config().jwt_secret:
        logger.error("JWT secret is not configured; every protected request will fail with 500.")
