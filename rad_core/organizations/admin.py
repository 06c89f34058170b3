# rad_core/organizations/admin.py
from __future__ import annotations

from django.contrib import admin

from rad_core.organizations.models import Organization


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ("identifier", "name", "status", "plan", "subscription_end_date", "created_at")
    list_filter = ("status", "plan", "company_type")
    search_fields = ("identifier", "name", "display_name")
    ordering = ("name",)

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return ("identifier",)
        return ()
