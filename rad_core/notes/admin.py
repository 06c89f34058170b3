# rad_core/notes/admin.py
from __future__ import annotations

from django.contrib import admin

from rad_core.notes.models import NoteReply, StudyNote


class NoteReplyInline(admin.TabularInline):
    model = NoteReply
    extra = 0
    readonly_fields = ("replied_by", "replied_by_name", "replied_by_role", "replied_at")


@admin.register(StudyNote)
class StudyNoteAdmin(admin.ModelAdmin):
    list_display = ("id", "study", "organization_identifier", "note_type", "visibility", "status", "created_by_role", "created_at")
    list_filter = ("visibility", "status", "note_type", "organization_identifier")
    search_fields = ("note_text", "created_by_name")
    ordering = ("-created_at",)
    inlines = [NoteReplyInline]
