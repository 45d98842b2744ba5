"""Onboarding invitation domain model."""

from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from hrms_api.models.domain.employee import Employee
from hrms_api.models.domain.submission import BulkSendResult


class InvitationStatus(StrEnum):
    """Invitation lifecycle status enum."""

    PENDING = "pending"
    REGISTERED = "registered"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"


# States that lapse to EXPIRED once expires_at has passed
EXPIRABLE_STATUSES = frozenset({InvitationStatus.PENDING, InvitationStatus.REGISTERED})


class Invitation(BaseModel):
    """Invitation of a prospective employee to self-service onboarding."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    token: str
    email: str
    first_name: str
    last_name: str
    phone: str | None = None
    job_title: str | None = None
    required_form_templates: list[str] = Field(default_factory=list)
    status: InvitationStatus = InvitationStatus.PENDING
    invited_by: str | None = None
    invited_at: datetime
    expires_at: datetime
    reminder_count: int = 0
    last_reminder_at: datetime | None = None
    employee_id: UUID | None = None
    registered_at: datetime | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    rejected_by: str | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None

    def is_past_expiry(self, now: datetime) -> bool:
        """Whether the validity window has elapsed at ``now``."""
        return self.status in EXPIRABLE_STATUSES and now > self.expires_at


class InvitationResult(BaseModel):
    """Invitation plus the separate outcome of its e-mail delivery."""

    invitation: Invitation
    email_sent: bool
    email_error: str | None = None


class OnboardingSubmitResult(BaseModel):
    """Outcome of submitting a completed onboarding for review.

    ``record_failures`` lists child records that could not be saved and
    ``forms`` reports the onboarding forms that were dispatched.
    """

    invitation: Invitation
    employee: Employee
    record_failures: list[dict[str, Any]] = Field(default_factory=list)
    forms: BulkSendResult | None = None

    @property
    def complete(self) -> bool:
        """Whether every record was saved and every form was sent."""
        return not self.record_failures and (self.forms is None or self.forms.all_succeeded)
