# config/settings/local.py
from .base import *  # noqa

DEBUG = os.getenv("DJANGO_DEBUG", "1") == "1"

# Dev convenience: a stable signing secret when none is exported.
RAD_AUTH["JWT_SECRET"] = RAD_AUTH["JWT_SECRET"] or "local-dev-jwt-secret"
