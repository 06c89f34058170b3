# rad_core/report_templates/admin.py
from django.contrib import admin

from rad_core.report_templates.models import HTMLTemplate


@admin.register(HTMLTemplate)
class HTMLTemplateAdmin(admin.ModelAdmin):
    list_display = ("title", "category", "template_scope", "organization_identifier", "usage_count", "is_active")
    list_filter = ("template_scope", "category", "is_active")
    search_fields = ("title", "description")
