"""Domain models package."""

from hrms_api.models.domain.employee import Employee, EmployeeStatus, OnboardingStatus
from hrms_api.models.domain.invitation import (
    Invitation,
    InvitationResult,
    InvitationStatus,
    OnboardingSubmitResult,
)
from hrms_api.models.domain.submission import (
    BulkSendResult,
    FormSubmission,
    ReminderResult,
    Submission,
    SubmissionStatus,
    Submitter,
    advance_status,
)
from hrms_api.models.domain.template import FormTemplate, TemplateSyncResult

__all__ = [
    "BulkSendResult",
    "Employee",
    "EmployeeStatus",
    "FormSubmission",
    "FormTemplate",
    "Invitation",
    "InvitationResult",
    "InvitationStatus",
    "OnboardingStatus",
    "OnboardingSubmitResult",
    "ReminderResult",
    "Submission",
    "SubmissionStatus",
    "Submitter",
    "TemplateSyncResult",
    "advance_status",
]
