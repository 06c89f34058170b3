# rad_core/studies/workflow.py
"""
Study workflow vocabulary and the transition table.

Statuses are grouped into three dashboard buckets (pending / inprogress /
completed). Legal moves are listed explicitly in TRANSITIONS; who may make a
move is decided by the *target* status (TARGET_ROLES). Admin roles may make
any legal move but never an illegal one.
"""
from __future__ import annotations

from typing import Iterable

from django.db import models

from rad_core.iam.roles import ADMIN_ROLES, Role


class WorkflowStatus(models.TextChoices):
    # pending
    NEW_STUDY_RECEIVED = "new_study_received", "New Study Received"
    METADATA_EXTRACTED = "metadata_extracted", "Metadata Extracted"
    HISTORY_PENDING = "history_pending", "History Pending"
    HISTORY_CREATED = "history_created", "History Created"
    HISTORY_VERIFIED = "history_verified", "History Verified"
    PENDING_ASSIGNMENT = "pending_assignment", "Pending Assignment"
    AWAITING_RADIOLOGIST = "awaiting_radiologist", "Awaiting Radiologist"
    ASSIGNED_TO_DOCTOR = "assigned_to_doctor", "Assigned To Doctor"
    ASSIGNMENT_ACCEPTED = "assignment_accepted", "Assignment Accepted"

    # inprogress
    REPORT_DRAFTED = "report_drafted", "Report Drafted"
    DRAFT_SAVED = "draft_saved", "Draft Saved"
    VERIFICATION_PENDING = "verification_pending", "Verification Pending"
    VERIFICATION_IN_PROGRESS = "verification_in_progress", "Verification In Progress"
    DOCTOR_OPENED_REPORT = "doctor_opened_report", "Doctor Opened Report"
    REPORT_IN_PROGRESS = "report_in_progress", "Report In Progress"
    PENDING_COMPLETION = "pending_completion", "Pending Completion"
    REPORT_UPLOADED = "report_uploaded", "Report Uploaded"
    REPORT_DOWNLOADED_RADIOLOGIST = "report_downloaded_radiologist", "Report Downloaded (Radiologist)"
    REPORT_DOWNLOADED = "report_downloaded", "Report Downloaded"
    REPORT_VERIFIED = "report_verified", "Report Verified"
    REPORT_REJECTED = "report_rejected", "Report Rejected"
    URGENT_PRIORITY = "urgent_priority", "Urgent Priority"
    EMERGENCY_CASE = "emergency_case", "Emergency Case"
    REPRINT_REQUESTED = "reprint_requested", "Reprint Requested"
    CORRECTION_NEEDED = "correction_needed", "Correction Needed"
    NO_ACTIVE_STUDY = "no_active_study", "No Active Study"

    # completed
    REPORT_FINALIZED = "report_finalized", "Report Finalized"
    FINAL_APPROVED = "final_approved", "Final Approved"
    REVERT_TO_RADIOLOGIST = "revert_to_radiologist", "Revert To Radiologist"
    REPORT_COMPLETED = "report_completed", "Report Completed"
    FINAL_REPORT_DOWNLOADED = "final_report_downloaded", "Final Report Downloaded"
    ARCHIVED = "archived", "Archived"


S = WorkflowStatus

PENDING = "pending"
INPROGRESS = "inprogress"
COMPLETED = "completed"

STATUS_BUCKETS: dict[str, frozenset[str]] = {
    PENDING: frozenset(
        {
            S.NEW_STUDY_RECEIVED, S.METADATA_EXTRACTED, S.HISTORY_PENDING, S.HISTORY_CREATED,
            S.HISTORY_VERIFIED, S.PENDING_ASSIGNMENT, S.AWAITING_RADIOLOGIST,
            S.ASSIGNED_TO_DOCTOR, S.ASSIGNMENT_ACCEPTED,
        }
    ),
    INPROGRESS: frozenset(
        {
            S.REPORT_DRAFTED, S.DRAFT_SAVED, S.VERIFICATION_PENDING, S.VERIFICATION_IN_PROGRESS,
            S.DOCTOR_OPENED_REPORT, S.REPORT_IN_PROGRESS, S.PENDING_COMPLETION, S.REPORT_UPLOADED,
            S.REPORT_DOWNLOADED_RADIOLOGIST, S.REPORT_DOWNLOADED, S.REPORT_VERIFIED,
            S.REPORT_REJECTED, S.URGENT_PRIORITY, S.EMERGENCY_CASE, S.REPRINT_REQUESTED,
            S.CORRECTION_NEEDED, S.NO_ACTIVE_STUDY,
        }
    ),
    COMPLETED: frozenset(
        {
            S.REPORT_FINALIZED, S.FINAL_APPROVED, S.REVERT_TO_RADIOLOGIST, S.REPORT_COMPLETED,
            S.FINAL_REPORT_DOWNLOADED, S.ARCHIVED,
        }
    ),
}

_BUCKET_OF = {status: bucket for bucket, members in STATUS_BUCKETS.items() for status in members}


def bucket_of(status: str) -> str | None:
    return _BUCKET_OF.get(status)


def statuses_in(bucket: str) -> frozenset[str]:
    return STATUS_BUCKETS.get(bucket, frozenset())


_DOWNLOADS = {S.REPORT_DOWNLOADED, S.REPORT_DOWNLOADED_RADIOLOGIST, S.FINAL_REPORT_DOWNLOADED}

TRANSITIONS: dict[str, frozenset[str]] = {
    S.NO_ACTIVE_STUDY: frozenset({S.NEW_STUDY_RECEIVED}),
    S.NEW_STUDY_RECEIVED: frozenset(
        {
            S.METADATA_EXTRACTED, S.HISTORY_PENDING, S.HISTORY_CREATED, S.PENDING_ASSIGNMENT,
            S.ASSIGNED_TO_DOCTOR, S.URGENT_PRIORITY, S.EMERGENCY_CASE, S.ARCHIVED,
        }
    ),
    S.METADATA_EXTRACTED: frozenset(
        {
            S.HISTORY_PENDING, S.HISTORY_CREATED, S.PENDING_ASSIGNMENT, S.ASSIGNED_TO_DOCTOR,
            S.URGENT_PRIORITY, S.EMERGENCY_CASE, S.ARCHIVED,
        }
    ),
    S.HISTORY_PENDING: frozenset({S.HISTORY_CREATED, S.PENDING_ASSIGNMENT, S.ARCHIVED}),
    S.HISTORY_CREATED: frozenset({S.HISTORY_VERIFIED, S.HISTORY_PENDING, S.PENDING_ASSIGNMENT, S.ASSIGNED_TO_DOCTOR}),
    S.HISTORY_VERIFIED: frozenset({S.PENDING_ASSIGNMENT, S.ASSIGNED_TO_DOCTOR}),
    S.PENDING_ASSIGNMENT: frozenset(
        {S.AWAITING_RADIOLOGIST, S.ASSIGNED_TO_DOCTOR, S.URGENT_PRIORITY, S.EMERGENCY_CASE, S.ARCHIVED}
    ),
    S.AWAITING_RADIOLOGIST: frozenset({S.ASSIGNED_TO_DOCTOR, S.PENDING_ASSIGNMENT}),
    S.URGENT_PRIORITY: frozenset({S.ASSIGNED_TO_DOCTOR, S.PENDING_ASSIGNMENT}),
    S.EMERGENCY_CASE: frozenset({S.ASSIGNED_TO_DOCTOR, S.PENDING_ASSIGNMENT}),
    # reassignment keeps the status
    S.ASSIGNED_TO_DOCTOR: frozenset(
        {
            S.ASSIGNMENT_ACCEPTED, S.DOCTOR_OPENED_REPORT, S.REPORT_IN_PROGRESS,
            S.PENDING_ASSIGNMENT, S.ASSIGNED_TO_DOCTOR,
        }
    ),
    S.ASSIGNMENT_ACCEPTED: frozenset(
        {S.DOCTOR_OPENED_REPORT, S.REPORT_IN_PROGRESS, S.REPORT_DRAFTED, S.PENDING_ASSIGNMENT}
    ),
    S.DOCTOR_OPENED_REPORT: frozenset(
        {S.REPORT_IN_PROGRESS, S.REPORT_DRAFTED, S.DRAFT_SAVED, S.PENDING_ASSIGNMENT}
    ),
    S.REPORT_IN_PROGRESS: frozenset(
        {
            S.REPORT_DRAFTED, S.DRAFT_SAVED, S.REPORT_UPLOADED, S.VERIFICATION_PENDING,
            S.PENDING_COMPLETION, S.REPORT_FINALIZED,
        }
    ),
    S.REPORT_DRAFTED: frozenset({S.DRAFT_SAVED, S.REPORT_IN_PROGRESS, S.VERIFICATION_PENDING, S.REPORT_FINALIZED}),
    S.DRAFT_SAVED: frozenset({S.REPORT_DRAFTED, S.REPORT_IN_PROGRESS, S.VERIFICATION_PENDING, S.REPORT_FINALIZED}),
    S.REPORT_UPLOADED: frozenset({S.VERIFICATION_PENDING, S.REPORT_FINALIZED, S.REPORT_COMPLETED}),
    S.PENDING_COMPLETION: frozenset({S.REPORT_IN_PROGRESS, S.REPORT_FINALIZED, S.REPORT_COMPLETED}),
    S.VERIFICATION_PENDING: frozenset(
        {S.VERIFICATION_IN_PROGRESS, S.REPORT_VERIFIED, S.REPORT_REJECTED, S.REPORT_COMPLETED}
    ),
    S.VERIFICATION_IN_PROGRESS: frozenset(
        {S.REPORT_VERIFIED, S.REPORT_REJECTED, S.REPORT_COMPLETED, S.VERIFICATION_PENDING}
    ),
    S.REPORT_VERIFIED: frozenset({S.REPORT_FINALIZED, S.FINAL_APPROVED, S.REPORT_COMPLETED}),
    S.REPORT_REJECTED: frozenset({S.REVERT_TO_RADIOLOGIST, S.REPORT_IN_PROGRESS, S.CORRECTION_NEEDED}),
    S.CORRECTION_NEEDED: frozenset({S.REPORT_IN_PROGRESS, S.REPORT_DRAFTED, S.DRAFT_SAVED}),
    S.REVERT_TO_RADIOLOGIST: frozenset({S.REPORT_IN_PROGRESS, S.REPORT_DRAFTED, S.CORRECTION_NEEDED}),
    S.REPORT_FINALIZED: frozenset(
        {*_DOWNLOADS, S.REPRINT_REQUESTED, S.REVERT_TO_RADIOLOGIST, S.FINAL_APPROVED, S.REPORT_COMPLETED, S.ARCHIVED}
    ),
    S.FINAL_APPROVED: frozenset({*_DOWNLOADS, S.REPRINT_REQUESTED, S.REPORT_COMPLETED, S.ARCHIVED}),
    S.REPORT_COMPLETED: frozenset({*_DOWNLOADS, S.REPRINT_REQUESTED, S.REVERT_TO_RADIOLOGIST, S.ARCHIVED}),
    S.REPORT_DOWNLOADED: frozenset({*_DOWNLOADS, S.REPRINT_REQUESTED, S.ARCHIVED}),
    S.REPORT_DOWNLOADED_RADIOLOGIST: frozenset({*_DOWNLOADS, S.REPRINT_REQUESTED, S.ARCHIVED}),
    S.FINAL_REPORT_DOWNLOADED: frozenset({S.FINAL_REPORT_DOWNLOADED, S.REPRINT_REQUESTED, S.ARCHIVED}),
    S.REPRINT_REQUESTED: frozenset({S.REPORT_IN_PROGRESS, S.REVERT_TO_RADIOLOGIST, S.REPORT_COMPLETED, S.ARCHIVED}),
    S.ARCHIVED: frozenset(),
}

_INGEST = frozenset({Role.LAB_STAFF, Role.RECEPTIONIST, Role.ASSIGNOR})
_ASSIGNMENT = frozenset({Role.ASSIGNOR, Role.GROUP_ID})
_REPORTING = frozenset({Role.RADIOLOGIST, Role.DOCTOR_ACCOUNT})
_DRAFTING = _REPORTING | {Role.TYPIST}
_VERIFICATION = frozenset({Role.VERIFIER})
_DELIVERY = frozenset({Role.LAB_STAFF, Role.RECEPTIONIST, Role.PHYSICIAN, Role.ASSIGNOR})

TARGET_ROLES: dict[str, frozenset[str]] = {
    S.NO_ACTIVE_STUDY: frozenset(),
    S.NEW_STUDY_RECEIVED: _INGEST,
    S.METADATA_EXTRACTED: _INGEST,
    S.HISTORY_PENDING: _INGEST,
    S.HISTORY_CREATED: _INGEST,
    S.HISTORY_VERIFIED: _INGEST,
    S.URGENT_PRIORITY: _INGEST | _ASSIGNMENT,
    S.EMERGENCY_CASE: _INGEST | _ASSIGNMENT,
    S.PENDING_ASSIGNMENT: _ASSIGNMENT | _REPORTING,
    S.AWAITING_RADIOLOGIST: _ASSIGNMENT,
    S.ASSIGNED_TO_DOCTOR: _ASSIGNMENT,
    S.ASSIGNMENT_ACCEPTED: _REPORTING,
    S.DOCTOR_OPENED_REPORT: _REPORTING,
    S.REPORT_IN_PROGRESS: _REPORTING,
    S.REPORT_DRAFTED: _DRAFTING,
    S.DRAFT_SAVED: _DRAFTING,
    S.REPORT_UPLOADED: _DRAFTING,
    S.PENDING_COMPLETION: _REPORTING,
    S.VERIFICATION_PENDING: _REPORTING,
    S.VERIFICATION_IN_PROGRESS: _VERIFICATION,
    S.REPORT_VERIFIED: _VERIFICATION,
    S.REPORT_REJECTED: _VERIFICATION,
    S.CORRECTION_NEEDED: _VERIFICATION,
    S.REVERT_TO_RADIOLOGIST: _VERIFICATION | _ASSIGNMENT,
    S.FINAL_APPROVED: _VERIFICATION,
    S.REPORT_FINALIZED: _REPORTING | _VERIFICATION,
    S.REPORT_COMPLETED: _REPORTING | _VERIFICATION,
    S.REPORT_DOWNLOADED_RADIOLOGIST: _REPORTING,
    S.REPORT_DOWNLOADED: _DELIVERY,
    S.FINAL_REPORT_DOWNLOADED: _DELIVERY,
    S.REPRINT_REQUESTED: _DELIVERY,
    S.ARCHIVED: frozenset({Role.ASSIGNOR}),
}

# Every role that can move a study somewhere.
WORKFLOW_ROLES = frozenset().union(*TARGET_ROLES.values())

# status -> (category_tracking section, timestamp key)
TRACKING_STAMPS: dict[str, tuple[str, str]] = {
    S.NEW_STUDY_RECEIVED: ("created", "uploadedAt"),
    S.HISTORY_CREATED: ("historyCreated", "createdAt"),
    S.HISTORY_VERIFIED: ("historyCreated", "verifiedAt"),
    S.PENDING_ASSIGNMENT: ("unassigned", "waitingSince"),
    S.ASSIGNED_TO_DOCTOR: ("assigned", "assignedAt"),
    S.ASSIGNMENT_ACCEPTED: ("assigned", "acceptedAt"),
    S.REPORT_IN_PROGRESS: ("pending", "startedAt"),
    S.REPORT_DRAFTED: ("draft", "draftCreatedAt"),
    S.DRAFT_SAVED: ("draft", "draftSavedAt"),
    S.VERIFICATION_PENDING: ("verificationPending", "submittedForVerificationAt"),
    S.VERIFICATION_IN_PROGRESS: ("verificationPending", "verificationStartedAt"),
    S.REPORT_VERIFIED: ("final", "verifiedAt"),
    S.REPORT_FINALIZED: ("final", "finalizedAt"),
    S.REPORT_DOWNLOADED: ("final", "downloadedAt"),
    S.REPORT_DOWNLOADED_RADIOLOGIST: ("final", "downloadedAt"),
    S.FINAL_REPORT_DOWNLOADED: ("final", "downloadedAt"),
    S.ARCHIVED: ("final", "archivedAt"),
}


def is_legal(from_status: str, to_status: str) -> bool:
    return to_status in TRANSITIONS.get(from_status, frozenset())


def role_may_set(to_status: str, acting_roles: Iterable[str]) -> bool:
    roles = set(acting_roles)
    if roles & ADMIN_ROLES:
        return True
    return bool(roles & TARGET_ROLES.get(to_status, frozenset()))


def can_transition(from_status: str, to_status: str, acting_roles: Iterable[str]) -> bool:
    roles = frozenset(acting_roles)
    return is_legal(from_status, to_status) and role_may_set(to_status, roles)


def allowed_targets(from_status: str, acting_roles: Iterable[str]) -> list[str]:
    roles = frozenset(acting_roles)
    return sorted(t for t in TRANSITIONS.get(from_status, ()) if role_may_set(t, roles))
