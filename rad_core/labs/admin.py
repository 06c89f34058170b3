# rad_core/labs/admin.py
from __future__ import annotations

from django.contrib import admin

from rad_core.labs.models import Lab


@admin.register(Lab)
class LabAdmin(admin.ModelAdmin):
    list_display = ("identifier", "name", "organization_identifier", "is_active", "created_at")
    list_filter = ("is_active", "organization_identifier")
    search_fields = ("identifier", "name", "organization_identifier")
    ordering = ("organization_identifier", "identifier")
