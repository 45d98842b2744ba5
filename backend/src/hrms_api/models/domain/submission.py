"""Form submission domain models and the submission status machine."""

from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SubmissionStatus(StrEnum):
    """Signature status of a routed document.

    Forward order is pending < sent < opened < completed. ``expired`` is a
    terminal side branch reachable from any non-terminal status.
    """

    PENDING = "pending"
    SENT = "sent"
    OPENED = "opened"
    COMPLETED = "completed"
    EXPIRED = "expired"

    @property
    def rank(self) -> int:
        """Position along the forward path."""
        return _RANKS[self]

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition is possible."""
        return self in (SubmissionStatus.COMPLETED, SubmissionStatus.EXPIRED)

    @classmethod
    def parse(cls, value: str | None) -> "SubmissionStatus | None":
        """Map a provider status string 1:1 onto the local enum.

        Unknown or missing values yield None.
        """
        if not value:
            return None
        try:
            return cls(str(value).lower())
        except ValueError:
            return None


_RANKS = {
    SubmissionStatus.PENDING: 0,
    SubmissionStatus.SENT: 1,
    SubmissionStatus.OPENED: 2,
    SubmissionStatus.COMPLETED: 3,
    SubmissionStatus.EXPIRED: 3,
}


def advance_status(
    current: SubmissionStatus, observed: SubmissionStatus | None
) -> SubmissionStatus:
    """Apply an observed provider status without ever regressing.

    Args:
        current: Status stored locally
        observed: Status reported by the provider, if recognized

    Returns:
        The status to store
    """
    if observed is None or current.is_terminal:
        return current
    if observed == SubmissionStatus.EXPIRED:
        return observed
    if observed.rank > current.rank:
        return observed
    return current


class Submitter(BaseModel):
    """One signer within a provider submission, in canonical form."""

    id: str
    submitter_id: str | None = None
    slug: str | None = None
    email: str = ""
    name: str | None = None
    phone: str | None = None
    role: str | None = None
    status: str = "sent"
    embed_src: str | None = None
    sent_at: datetime | None = None
    opened_at: datetime | None = None
    completed_at: datetime | None = None
    values: dict[str, Any] = Field(default_factory=dict)

    @property
    def signing_token(self) -> str:
        """Token for the signing URL, slug preferred over the opaque id."""
        return self.slug or self.id

    @property
    def has_signed(self) -> bool:
        """Whether this signer has completed the document."""
        return self.completed_at is not None or self.status == "completed"


class Submission(BaseModel):
    """Provider submission normalized from any of its response shapes."""

    id: str
    template_id: str | None = None
    status: str = "pending"
    submitters: list[Submitter] = Field(default_factory=list)
    documents_url: str | None = None
    completed_at: datetime | None = None

    def find_submitter(self, email: str) -> Submitter | None:
        """Find a submitter by e-mail, case-insensitively."""
        wanted = email.strip().lower()
        for submitter in self.submitters:
            if submitter.email.lower() == wanted:
                return submitter
        return None


class FormSubmission(BaseModel):
    """Locally persisted record of a document routed for signature."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    submission_id: str
    employee_id: UUID
    template_id: str
    invitation_id: UUID | None = None
    is_onboarding_requirement: bool = False
    recipient_email: str
    recipient_name: str | None = None
    recipient_phone: str | None = None
    status: SubmissionStatus = SubmissionStatus.PENDING
    sent_at: datetime | None = None
    opened_at: datetime | None = None
    completed_at: datetime | None = None
    expires_at: datetime | None = None
    documents_url: str | None = None
    storage_key: str | None = None
    submission_data: dict[str, Any] = Field(default_factory=dict)
    reminders_sent: int = 0
    last_reminder_at: datetime | None = None
    next_reminder_at: datetime | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def requires_hr_signature(self) -> bool:
        """Whether a second HR signer was routed."""
        return bool(self.submission_data.get("requiresHrSignature"))

    @property
    def signing_urls(self) -> dict[str, str]:
        """Signing URLs keyed by signer role."""
        return dict(self.submission_data.get("signingUrls") or {})


class BulkSendResult(BaseModel):
    """Outcome of sending several forms, one entry per template."""

    submissions: list[FormSubmission] = Field(default_factory=list)
    failures: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def all_succeeded(self) -> bool:
        """Whether every template was sent."""
        return not self.failures


class ReminderResult(BaseModel):
    """Outcome of a reminder request."""

    success: bool
    message: str
