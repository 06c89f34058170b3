# rad_core/notes/services.py
from __future__ import annotations

from django.db import transaction
from django.db.models import F
from rest_framework.exceptions import ValidationError

from rad_core.iam.models import User
from rad_core.notes.models import NoteReply, NoteVisibility, StudyNote
from rad_core.studies.models import DicomStudy


class NoteService:

    @staticmethod
    @transaction.atomic
    def add_note(
        *,
        study: DicomStudy,
        author: User,
        note_text: str,
        visibility: str = NoteVisibility.PUBLIC,
        **fields,
    ) -> StudyNote:
        note_text = (note_text or "").strip()
        if not note_text:
            raise ValidationError({"noteText": "This field is required."})
        if visibility not in NoteVisibility.values:
            raise ValidationError({"visibility": f"Invalid visibility. Allowed: {list(NoteVisibility.values)}"})

        note = StudyNote.objects.create(
            study=study,
            organization_identifier=study.organization_identifier,
            note_text=note_text,
            visibility=visibility,
            created_by=author,
            created_by_name=author.full_name or author.email,
            created_by_role=author.role,
            related_workflow_status=study.workflow_status,
            **{k: v for k, v in fields.items() if k in ("note_type", "priority")},
        )
        DicomStudy.objects.filter(pk=study.pk).update(notes_count=F("notes_count") + 1)
        return note

    @staticmethod
    @transaction.atomic
    def add_reply(*, note: StudyNote, author: User, reply_text: str) -> NoteReply:
        reply_text = (reply_text or "").strip()
        if not reply_text:
            raise ValidationError({"replyText": "This field is required."})
        return NoteReply.objects.create(
            note=note,
            reply_text=reply_text,
            replied_by=author,
            replied_by_name=author.full_name or author.email,
            replied_by_role=author.role,
        )
