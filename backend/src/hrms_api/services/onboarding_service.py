"""Onboarding invitation lifecycle: invite, register, submit, review."""

import asyncio
import logging
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import pydantic

from hrms_api.exceptions import (
    ConflictError,
    EmployeeNotFoundError,
    HRMSError,
    InvalidStateTransitionError,
    InvitationExpiredError,
    InvitationNotFoundError,
    PartialFailureError,
    ValidationError,
)
from hrms_api.models.domain.employee import Employee, EmployeeStatus, OnboardingStatus
from hrms_api.models.domain.invitation import (
    Invitation,
    InvitationResult,
    InvitationStatus,
    OnboardingSubmitResult,
)
from hrms_api.models.dto.employee import invitee_employee_fields
from hrms_api.models.dto.invitation import InvitationCreate
from hrms_api.protocols import EMPLOYEES, InvitationStore, NotificationSender
from hrms_api.services.document_workflow import DocumentWorkflowOrchestrator
from hrms_api.services.email_service import MAX_INVITATION_REMINDERS, render_invitation_email
from hrms_api.services.employee_submitter import EmployeeAggregateSubmitter
from hrms_api.utils.secure_logging import log_warning, mask_email

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def describe_expiry(expires_at: datetime, now: datetime) -> str:
    """Human-readable remaining validity, e.g. ``expires in 3 days``."""
    remaining = expires_at - now
    if remaining <= timedelta(0):
        return "has expired"
    days = remaining.days
    if days >= 1:
        return f"expires in {days} day{'s' if days != 1 else ''}"
    return "expires today"


class OnboardingLifecycleController:
    """Drives an invitation from ``pending`` to ``approved`` or ``rejected``.

    ``pending`` and ``registered`` invitations lapse to ``expired`` once
    their validity window has passed. Expiry is checked whenever an
    invitation is read and the new status is stored.
    """

    def __init__(
        self,
        invitations: InvitationStore,
        submitter: EmployeeAggregateSubmitter,
        sender: NotificationSender | None = None,
        documents: DocumentWorkflowOrchestrator | None = None,
        app_base_url: str = "http://localhost:5000",
        validity_days: int = 7,
        reminder_interval: timedelta = timedelta(hours=48),
        max_reminders: int = MAX_INVITATION_REMINDERS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            invitations: Invitation store
            submitter: Writes the invitee's employee record
            sender: E-mail sender, or None when e-mail is disabled
            documents: Dispatches onboarding forms on submission
            app_base_url: Public base URL of the onboarding portal
            validity_days: Days an invitation stays valid
            reminder_interval: Minimum gap between automatic reminders
            max_reminders: Upper bound on automatic reminders
            clock: Returns the current UTC time
        """
        self.invitations = invitations
        self.submitter = submitter
        self.sender = sender
        self.documents = documents
        self.app_base_url = app_base_url.rstrip("/")
        self.validity_days = validity_days
        self.reminder_interval = reminder_interval
        self.max_reminders = max_reminders
        self._now = clock or _utcnow
        self._locks: dict[UUID, asyncio.Lock] = {}
        self._invitee_fields = invitee_employee_fields()

    def invitation_url(self, invitation: Invitation) -> str:
        """Self-service registration link of an invitation."""
        return f"{self.app_base_url}/onboarding/register?token={invitation.token}"

    def _lock(self, invitation_id: UUID) -> asyncio.Lock:
        return self._locks.setdefault(invitation_id, asyncio.Lock())

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _refresh(self, invitation: Invitation) -> Invitation:
        """Store the expired status if the validity window has passed."""
        if invitation.is_past_expiry(self._now()):
            logger.info(f"Invitation {invitation.id} expired")
            return await self.invitations.update(
                invitation.id, {"status": InvitationStatus.EXPIRED}
            )
        return invitation

    async def get_invitation(self, invitation_id: UUID) -> Invitation:
        """Load an invitation with its current status.

        Raises:
            InvitationNotFoundError: If it does not exist
        """
        invitation = await self.invitations.get(invitation_id)
        if invitation is None:
            raise InvitationNotFoundError(str(invitation_id))
        return await self._refresh(invitation)

    async def get_invitation_by_token(self, token: str) -> Invitation:
        """Load an invitation by its registration token.

        Raises:
            InvitationNotFoundError: If no invitation has this token
        """
        invitation = await self.invitations.get_by_token(token) if token else None
        if invitation is None:
            raise InvitationNotFoundError()
        return await self._refresh(invitation)

    def _require_status(
        self, invitation: Invitation, allowed: tuple[InvitationStatus, ...], operation: str
    ) -> None:
        if invitation.status in allowed:
            return
        if invitation.status == InvitationStatus.EXPIRED:
            raise InvitationExpiredError(str(invitation.id))
        raise InvalidStateTransitionError("invitation", str(invitation.status), operation)

    # ------------------------------------------------------------------
    # Invitations
    # ------------------------------------------------------------------

    async def create_invitation(
        self,
        email: str,
        first_name: str,
        last_name: str,
        invited_by: str | None,
        phone: str | None = None,
        job_title: str | None = None,
        required_form_templates: list[str] | None = None,
    ) -> InvitationResult:
        """Invite a prospective employee and e-mail them the registration link.

        The invitation is kept even if the e-mail cannot be delivered; the
        result reports delivery separately.

        Raises:
            ValidationError: If the invitee details are invalid
            ConflictError: If an open invitation exists for the address
        """
        try:
            data = InvitationCreate(
                email=email,
                first_name=first_name,
                last_name=last_name,
                phone=phone,
                job_title=job_title,
                required_form_templates=required_form_templates or [],
            )
        except pydantic.ValidationError as e:
            raise ValidationError.from_pydantic(e, "Invitation validation failed") from e

        for status in (InvitationStatus.PENDING, InvitationStatus.REGISTERED):
            for existing in await self.invitations.list_by_status(status):
                if existing.email.lower() == data.email and not existing.is_past_expiry(self._now()):
                    raise ConflictError(
                        "An open invitation already exists for this email",
                        {"invitation_id": str(existing.id)},
                    )

        now = self._now()
        invitation = await self.invitations.create(
            {
                **data.model_dump(),
                "token": secrets.token_urlsafe(TOKEN_BYTES),
                "status": InvitationStatus.PENDING,
                "invited_by": invited_by,
                "invited_at": now,
                "expires_at": now + timedelta(days=self.validity_days),
                "reminder_count": 0,
            }
        )
        logger.info(f"Created invitation {invitation.id} for {mask_email(invitation.email)}")

        email_error = await self._deliver(invitation, reminder_number=0)
        return InvitationResult(
            invitation=invitation, email_sent=email_error is None, email_error=email_error
        )

    async def _deliver(self, invitation: Invitation, reminder_number: int) -> str | None:
        """Send the invitation or a reminder of it.

        Returns:
            None on success, otherwise the delivery error message
        """
        if self.sender is None:
            return "Email delivery is not configured"
        email = render_invitation_email(
            first_name=invitation.first_name,
            invitation_url=self.invitation_url(invitation),
            expires_in=describe_expiry(invitation.expires_at, self._now()),
            reminder_number=reminder_number,
        )
        try:
            await self.sender.send(
                invitation.email, email.subject, email.body_text, email.body_html
            )
        except HRMSError as e:
            log_warning(logger, f"Invitation email for {invitation.id} was not delivered", e)
            return e.message
        return None

    async def _remind(self, invitation: Invitation) -> InvitationResult:
        reminder_number = invitation.reminder_count + 1
        email_error = await self._deliver(invitation, reminder_number)
        if email_error is None:
            invitation = await self.invitations.update(
                invitation.id,
                {"reminder_count": reminder_number, "last_reminder_at": self._now()},
            )
        return InvitationResult(
            invitation=invitation, email_sent=email_error is None, email_error=email_error
        )

    async def resend_invitation(self, invitation_id: UUID) -> InvitationResult:
        """Re-send a pending invitation as a numbered reminder.

        The original invitation and expiry times are left unchanged.

        Raises:
            InvitationNotFoundError: If it does not exist
            InvitationExpiredError: If it has expired
            InvalidStateTransitionError: If it is no longer pending
        """
        invitation = await self.get_invitation(invitation_id)
        self._require_status(invitation, (InvitationStatus.PENDING,), "resend")
        return await self._remind(invitation)

    async def send_due_reminders(self) -> int:
        """Remind every pending invitee whose last e-mail is older than the interval.

        Invitations past their expiry are marked expired instead, and no
        invitation gets more than ``max_reminders`` automatic reminders.

        Returns:
            Number of reminders delivered
        """
        now = self._now()
        cutoff = now - self.reminder_interval
        sent = 0
        for invitation in await self.invitations.list_by_status(
            InvitationStatus.PENDING, invited_before=cutoff
        ):
            invitation = await self._refresh(invitation)
            if invitation.status != InvitationStatus.PENDING:
                continue
            if invitation.reminder_count >= self.max_reminders:
                continue
            if (invitation.last_reminder_at or invitation.invited_at) > cutoff:
                continue
            result = await self._remind(invitation)
            if result.email_sent:
                sent += 1
        if sent:
            logger.info(f"Sent {sent} invitation reminder(s)")
        return sent

    # ------------------------------------------------------------------
    # Invitee actions
    # ------------------------------------------------------------------

    async def register(self, token: str, employee_fields: dict[str, Any] | None = None) -> Invitation:
        """Accept an invitation and open the invitee's draft employee record.

        The draft stays inactive until HR approves it. At most one employee can
        reference an invitation, so a registration racing in another process
        fails with a conflict instead of creating a second employee.

        Raises:
            InvitationNotFoundError: If the token is unknown
            InvitationExpiredError: If the invitation has expired
            InvalidStateTransitionError: If it was already used
            ConflictError: If an employee already references the invitation
        """
        invitation = await self.get_invitation_by_token(token)
        async with self._lock(invitation.id):
            # Re-read under the lock so a double submit registers once
            invitation = await self.get_invitation(invitation.id)
            self._require_status(invitation, (InvitationStatus.PENDING,), "register")

            fields = {
                "first_name": invitation.first_name,
                "last_name": invitation.last_name,
                "work_email": invitation.email,
                "cell_phone": invitation.phone,
                "job_title": invitation.job_title,
                **(employee_fields or {}),
            }
            draft = self.submitter.draft_session(
                writable=self._invitee_fields,
                initial={"status": EmployeeStatus.INACTIVE, "invitation_id": invitation.id},
            )
            result = await draft.save(fields)
            employee_id = result["employee_id"]

            invitation = await self.invitations.update(
                invitation.id,
                {
                    "status": InvitationStatus.REGISTERED,
                    "employee_id": employee_id,
                    "registered_at": self._now(),
                },
            )
        logger.info(f"Invitation {invitation.id} registered as employee {employee_id}")
        return invitation

    async def _registered(self, invitation_id: UUID, operation: str) -> tuple[Invitation, UUID]:
        invitation = await self.get_invitation(invitation_id)
        self._require_status(invitation, (InvitationStatus.REGISTERED,), operation)
        if invitation.employee_id is None:
            raise EmployeeNotFoundError()
        return invitation, invitation.employee_id

    async def save_draft(self, invitation_id: UUID, employee_fields: dict[str, Any]) -> dict[str, UUID]:
        """Save onboarding progress onto the invitee's draft record.

        Returns:
            ``{"employee_id": ...}``
        """
        _, employee_id = await self._registered(invitation_id, "save draft for")
        draft = self.submitter.draft_session(employee_id, writable=self._invitee_fields)
        return await draft.save(employee_fields)

    async def submit_onboarding(
        self,
        invitation_id: UUID,
        employee_fields: dict[str, Any],
        child_collections: dict[str, list[dict[str, Any]]] | None = None,
        created_by: str | None = None,
    ) -> OnboardingSubmitResult:
        """Submit a completed onboarding for HR review.

        Child records that fail to save are reported and do not stop the
        submission. Onboarding forms are sent once the records are in.

        Raises:
            InvitationExpiredError: If the invitation has expired
            InvalidStateTransitionError: If the invitation is not registered or
                the onboarding was already submitted
            ValidationError: If the employee fields are rejected
        """
        invitation, employee_id = await self._registered(invitation_id, "submit")
        employee = await self.submitter.gateway.get(employee_id)
        if employee is None:
            raise EmployeeNotFoundError(str(employee_id))
        if employee.onboarding_status == OnboardingStatus.SUBMITTED:
            raise InvalidStateTransitionError(
                "onboarding", str(OnboardingStatus.SUBMITTED), "submit"
            )

        draft = self.submitter.draft_session(employee_id, writable=self._invitee_fields)
        await draft.save(employee_fields)

        record_failures: list[dict[str, Any]] = []
        if child_collections:
            try:
                await self.submitter.create_children(employee_id, child_collections)
            except PartialFailureError as e:
                record_failures = e.failures

        row = await self.submitter.gateway.update(
            EMPLOYEES, employee_id, {"onboarding_status": OnboardingStatus.SUBMITTED}
        )
        employee = Employee.model_validate(row)

        forms = None
        if self.documents is not None:
            forms = await self.documents.send_onboarding_forms(
                invitation.id, employee_id, created_by
            )

        logger.info(
            f"Onboarding submitted for invitation {invitation.id} "
            f"({len(record_failures)} record failure(s))"
        )
        return OnboardingSubmitResult(
            invitation=invitation,
            employee=employee,
            record_failures=record_failures,
            forms=forms,
        )

    # ------------------------------------------------------------------
    # HR review
    # ------------------------------------------------------------------

    async def approve(self, invitation_id: UUID, approved_by: str) -> Invitation:
        """Approve a registered onboarding and activate the employee.

        Raises:
            InvitationExpiredError: If the invitation has expired
            InvalidStateTransitionError: If it is not registered
        """
        invitation, employee_id = await self._registered(invitation_id, "approve")
        now = self._now()
        await self.submitter.gateway.update(
            EMPLOYEES,
            employee_id,
            {
                "status": EmployeeStatus.ACTIVE,
                "onboarding_status": OnboardingStatus.COMPLETED,
                "approved_by": approved_by,
                "approved_at": now,
            },
        )
        invitation = await self.invitations.update(
            invitation.id,
            {
                "status": InvitationStatus.APPROVED,
                "approved_by": approved_by,
                "approved_at": now,
            },
        )
        logger.info(f"Invitation {invitation.id} approved")
        return invitation

    async def reject(self, invitation_id: UUID, reason: str, rejected_by: str) -> Invitation:
        """Reject an invitation, deactivating the employee record if one exists.

        Raises:
            ValidationError: If the reason is empty
            InvitationExpiredError: If the invitation has expired
            InvalidStateTransitionError: If it was already approved or rejected
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError(
                "A rejection reason is required", {"reason": "Rejection reason is required"}
            )

        invitation = await self.get_invitation(invitation_id)
        self._require_status(
            invitation, (InvitationStatus.PENDING, InvitationStatus.REGISTERED), "reject"
        )

        if invitation.employee_id is not None:
            await self.submitter.gateway.update(
                EMPLOYEES, invitation.employee_id, {"status": EmployeeStatus.INACTIVE}
            )

        invitation = await self.invitations.update(
            invitation.id,
            {
                "status": InvitationStatus.REJECTED,
                "rejected_by": rejected_by,
                "rejected_at": self._now(),
                "rejection_reason": reason,
            },
        )
        logger.info(f"Invitation {invitation.id} rejected")
        return invitation
