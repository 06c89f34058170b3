# config/settings/test.py
from .base import *  # noqa

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

RAD_AUTH = {
    **RAD_AUTH,
    "JWT_SECRET": "test-jwt-secret-with-enough-length-for-hs256",
    "LAB_COMPRESSION_API_KEY": "test-compression-key",
}

LOGGING["loggers"]["rad_core"]["level"] = "WARNING"
