# rad_core/api/urls.py
from __future__ import annotations

from django.urls import re_path
from rest_framework.routers import SimpleRouter

from rad_core.common.views import HealthView
from rad_core.iam.api.auth import (
    LabLoginView,
    LoginView,
    LogoutView,
    MeView,
    OrganizationsView,
    RefreshTokenView,
    SwitchOrganizationView,
)
from rad_core.iam.api.users import UserViewSet
from rad_core.labs.api.views import CompressionToggleView
from rad_core.organizations.api.views import OrganizationViewSet
from rad_core.studies.api.views import StudyViewSet


class OptionalSlashRouter(SimpleRouter):
    """Clients call both /studies and /studies/."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.trailing_slash = "/?"


router = OptionalSlashRouter()
router.register(r"superadmin/organizations", OrganizationViewSet, basename="superadmin-organizations")
router.register(r"studies", StudyViewSet, basename="studies")
router.register(r"users", UserViewSet, basename="users")

urlpatterns = [
    # Auth
    re_path(r"^auth/login/?$", LoginView.as_view(), name="auth-login"),
    re_path(r"^auth/lab-login/?$", LabLoginView.as_view(), name="auth-lab-login"),
    re_path(r"^auth/me/?$", MeView.as_view(), name="auth-me"),
    re_path(r"^auth/logout/?$", LogoutView.as_view(), name="auth-logout"),
    re_path(r"^auth/refresh-token/?$", RefreshTokenView.as_view(), name="auth-refresh-token"),
    re_path(r"^auth/switch-organization/?$", SwitchOrganizationView.as_view(), name="auth-switch-organization"),
    re_path(r"^auth/organizations/?$", OrganizationsView.as_view(), name="auth-organizations"),

    # Labs
    re_path(r"^labs/compression/toggle/?$", CompressionToggleView.as_view(), name="labs-compression-toggle"),

    re_path(r"^health/?$", HealthView.as_view(), name="health"),

    # Router URLs last (so explicit paths win if ever overlapping)
    *router.urls,
]
