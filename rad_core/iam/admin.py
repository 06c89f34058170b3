# rad_core/iam/admin.py
from __future__ import annotations

from django.contrib import admin

from rad_core.iam.models import DoctorProfile, User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ("email", "role", "organization_identifier", "is_active", "is_logged_in", "last_login_at")
    list_filter = ("role", "is_active", "organization_identifier")
    search_fields = ("email", "username", "full_name")
    exclude = ("password", "temp_password")
    readonly_fields = ("organization_identifier", "login_count", "last_login_at", "last_logout_at")
    ordering = ("-created_at",)


@admin.register(DoctorProfile)
class DoctorProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "specialization", "organization_identifier", "is_active_profile")
    list_filter = ("is_active_profile",)
    search_fields = ("user__email", "license_number")
