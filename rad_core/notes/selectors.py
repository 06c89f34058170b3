# rad_core/notes/selectors.py
from __future__ import annotations

from django.db.models import Q, QuerySet

from rad_core.iam.roles import ADMIN_ROLES, MEDICAL_ROLES, granted_roles
from rad_core.notes.models import NoteStatus, NoteVisibility, StudyNote


def visibility_filter(user) -> Q:
    """
    public  -> everyone in the organization
    medical -> medical roles and admins
    admin   -> admins
    private -> the author and admins
    """
    roles = granted_roles(user)
    if roles & ADMIN_ROLES:
        return Q()

    allowed = Q(visibility=NoteVisibility.PUBLIC) | Q(visibility=NoteVisibility.PRIVATE, created_by_id=user.id)
    if roles & MEDICAL_ROLES:
        allowed |= Q(visibility=NoteVisibility.MEDICAL)
    return allowed


def visible_notes(*, study, user, include_archived: bool = False) -> QuerySet[StudyNote]:
    qs = StudyNote.objects.filter(study=study).filter(visibility_filter(user)).prefetch_related("replies")
    if not include_archived:
        qs = qs.exclude(status=NoteStatus.ARCHIVED)
    return qs
