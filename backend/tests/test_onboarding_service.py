"""Onboarding invitation lifecycle tests."""

import asyncio
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from hrms_api.exceptions import (
    ConflictError,
    InvalidStateTransitionError,
    InvitationExpiredError,
    InvitationNotFoundError,
    NotificationDeliveryError,
    ValidationError,
)
from hrms_api.models.domain.employee import EmployeeStatus, OnboardingStatus
from hrms_api.models.domain.invitation import InvitationStatus
from hrms_api.services.onboarding_service import OnboardingLifecycleController, describe_expiry


def invite(controller, email: str = "jane@x.com", **kwargs):
    return asyncio.run(
        controller.create_invitation(email, "Jane", "Doe", invited_by="hr-admin", **kwargs)
    )


def invite_and_register(controller):
    created = invite(controller, phone="555-0100", job_title="Counselor")
    return asyncio.run(controller.register(created.invitation.token))


class TestDescribeExpiry:
    now = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize(
        "delta, expected",
        [
            (timedelta(days=7), "expires in 7 days"),
            (timedelta(days=1, hours=2), "expires in 1 day"),
            (timedelta(hours=5), "expires today"),
            (timedelta(0), "has expired"),
            (timedelta(days=-1), "has expired"),
        ],
    )
    def test_wording(self, delta: timedelta, expected: str) -> None:
        assert describe_expiry(self.now + delta, self.now) == expected


class TestCreateInvitation:
    """Inviting a prospective employee."""

    def test_creates_pending_invitation_and_emails_link(self, controller, sender, clock) -> None:
        result = invite(controller, required_form_templates=[101, "202"])

        invitation = result.invitation
        assert result.email_sent is True
        assert result.email_error is None
        assert invitation.status == InvitationStatus.PENDING
        assert invitation.invited_by == "hr-admin"
        assert invitation.invited_at == clock.now
        assert invitation.expires_at == clock.now + timedelta(days=7)
        assert invitation.required_form_templates == ["101", "202"]
        assert len(invitation.token) >= 40

        message = sender.sent[0]
        assert message["to"] == "jane@x.com"
        assert message["subject"] == "Welcome! Complete Your Employee Onboarding"
        assert f"https://hr.example.com/onboarding/register?token={invitation.token}" in message["body_text"]
        assert "expires in 7 days" in message["body_text"]

    def test_email_is_normalized(self, controller) -> None:
        result = invite(controller, email="Jane.Doe@X.com")
        assert result.invitation.email == "jane.doe@x.com"

    def test_invalid_input(self, controller, invitations) -> None:
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(controller.create_invitation("not-an-email", "Jane", " ", invited_by=None))

        assert "email" in exc_info.value.field_errors
        assert "last_name" in exc_info.value.field_errors
        assert invitations.invitations == {}

    def test_delivery_failure_keeps_invitation(self, controller, sender, invitations) -> None:
        sender.error = NotificationDeliveryError("Email delivery failed: TimeoutError")

        result = invite(controller)

        assert result.email_sent is False
        assert result.email_error == "Email delivery failed: TimeoutError"
        assert result.invitation.id in invitations.invitations

    def test_without_sender(self, invitations, submitter, clock) -> None:
        controller = OnboardingLifecycleController(invitations, submitter, clock=clock)

        result = invite(controller)

        assert result.email_sent is False
        assert result.email_error == "Email delivery is not configured"

    def test_duplicate_open_invitation(self, controller) -> None:
        first = invite(controller)

        with pytest.raises(ConflictError) as exc_info:
            invite(controller, email="JANE@x.com")

        assert exc_info.value.code == "CONFLICT"
        assert exc_info.value.details["invitation_id"] == str(first.invitation.id)

    def test_expired_invitation_does_not_block(self, controller, clock) -> None:
        invite(controller)
        clock.advance(days=8)

        assert invite(controller).invitation.status == InvitationStatus.PENDING


class TestResendInvitation:
    """Manual reminders."""

    def test_resend_keeps_original_expiry(self, controller, sender, clock) -> None:
        """Resending three days in keeps the seven-day window from the first send."""
        created = invite(controller).invitation
        clock.advance(days=3)

        result = asyncio.run(controller.resend_invitation(created.id))

        invitation = result.invitation
        assert result.email_sent is True
        assert invitation.status == InvitationStatus.PENDING
        assert invitation.expires_at == created.expires_at
        assert invitation.invited_at == created.invited_at
        assert invitation.reminder_count == 1
        assert invitation.last_reminder_at == clock.now
        assert sender.sent[-1]["subject"] == "Reminder 1: Complete Your Employee Onboarding"
        assert "expires in 4 days" in sender.sent[-1]["body_text"]

    def test_failed_delivery_is_not_counted(self, controller, sender) -> None:
        created = invite(controller).invitation
        sender.error = NotificationDeliveryError("Recipient address was rejected")

        result = asyncio.run(controller.resend_invitation(created.id))

        assert result.email_sent is False
        assert result.invitation.reminder_count == 0

    def test_expired_invitation(self, controller, clock, invitations) -> None:
        created = invite(controller).invitation
        clock.advance(days=7, seconds=1)

        with pytest.raises(InvitationExpiredError) as exc_info:
            asyncio.run(controller.resend_invitation(created.id))

        assert exc_info.value.code == "INVITATION_EXPIRED"
        assert invitations.invitations[created.id].status == InvitationStatus.EXPIRED

    def test_registered_invitation(self, controller) -> None:
        invitation = invite_and_register(controller)
        with pytest.raises(InvalidStateTransitionError):
            asyncio.run(controller.resend_invitation(invitation.id))

    def test_unknown_invitation(self, controller) -> None:
        with pytest.raises(InvitationNotFoundError):
            asyncio.run(controller.resend_invitation(uuid4()))


class TestSendDueReminders:
    """Scheduled reminders."""

    def test_waits_for_interval(self, controller, clock, sender) -> None:
        invite(controller)

        clock.advance(hours=47)
        assert asyncio.run(controller.send_due_reminders()) == 0

        clock.advance(hours=2)
        assert asyncio.run(controller.send_due_reminders()) == 1
        assert sender.sent[-1]["subject"].startswith("Reminder 1:")

        # The interval restarts from the last reminder
        assert asyncio.run(controller.send_due_reminders()) == 0
        clock.advance(hours=49)
        assert asyncio.run(controller.send_due_reminders()) == 1
        assert sender.sent[-1]["subject"].startswith("Reminder 2:")

    def test_stops_at_maximum(self, controller, clock, invitations) -> None:
        created = invite(controller).invitation
        asyncio.run(invitations.update(created.id, {"reminder_count": 3}))
        clock.advance(hours=49)

        assert asyncio.run(controller.send_due_reminders()) == 0

    def test_expires_instead_of_reminding(self, controller, clock, invitations, sender) -> None:
        created = invite(controller).invitation
        clock.advance(days=8)

        assert asyncio.run(controller.send_due_reminders()) == 0
        assert invitations.invitations[created.id].status == InvitationStatus.EXPIRED
        assert len(sender.sent) == 1


class TestRegister:
    """Accepting an invitation."""

    def test_opens_draft_employee(self, controller, gateway, clock) -> None:
        invitation = invite_and_register(controller)

        assert invitation.status == InvitationStatus.REGISTERED
        assert invitation.registered_at == clock.now
        row = gateway.employees[invitation.employee_id]
        assert row["first_name"] == "Jane"
        assert row["work_email"] == "jane@x.com"
        assert row["cell_phone"] == "555-0100"
        assert row["job_title"] == "Counselor"
        assert row["onboarding_status"] == OnboardingStatus.DRAFT
        assert row["invitation_id"] == invitation.id

    def test_draft_is_inactive_until_approved(self, controller, gateway) -> None:
        invitation = invite_and_register(controller)

        assert gateway.employees[invitation.employee_id]["status"] == EmployeeStatus.INACTIVE

        asyncio.run(controller.approve(invitation.id, "hr-admin"))

        assert gateway.employees[invitation.employee_id]["status"] == EmployeeStatus.ACTIVE

    def test_invitee_cannot_set_lifecycle_fields(self, controller, gateway) -> None:
        created = invite(controller).invitation
        invitation = asyncio.run(
            controller.register(
                created.token,
                {"status": "active", "onboarding_status": "completed", "home_city": "Columbus"},
            )
        )

        row = gateway.employees[invitation.employee_id]
        assert row["status"] == EmployeeStatus.INACTIVE
        assert row["onboarding_status"] == OnboardingStatus.DRAFT
        assert row["home_city"] == "Columbus"

    def test_invitee_fields_override_invitation(self, controller, gateway) -> None:
        created = invite(controller).invitation
        invitation = asyncio.run(
            controller.register(created.token, {"first_name": "Janet", "home_city": "Columbus"})
        )

        row = gateway.employees[invitation.employee_id]
        assert row["first_name"] == "Janet"
        assert row["home_city"] == "Columbus"

    def test_token_is_single_use(self, controller) -> None:
        created = invite(controller).invitation
        asyncio.run(controller.register(created.token))

        with pytest.raises(InvalidStateTransitionError):
            asyncio.run(controller.register(created.token))

    def test_double_submit_registers_once(self, controller, gateway) -> None:
        created = invite(controller).invitation

        async def double_submit() -> list:
            return await asyncio.gather(
                controller.register(created.token),
                controller.register(created.token),
                return_exceptions=True,
            )

        results = asyncio.run(double_submit())

        errors = [r for r in results if isinstance(r, Exception)]
        assert len(errors) == 1
        assert isinstance(errors[0], InvalidStateTransitionError)
        assert len(gateway.employees) == 1

    def test_invitation_already_linked_to_employee(self, controller, gateway, invitations) -> None:
        created = invite(controller).invitation
        # Registered concurrently by another worker process
        gateway.add_employee(invitation_id=created.id)

        with pytest.raises(ConflictError):
            asyncio.run(controller.register(created.token))

        assert len(gateway.employees) == 1
        assert invitations.invitations[created.id].status == InvitationStatus.PENDING

    def test_unknown_token(self, controller) -> None:
        with pytest.raises(InvitationNotFoundError):
            asyncio.run(controller.register("no-such-token"))

    def test_expired_token(self, controller, clock) -> None:
        created = invite(controller).invitation
        clock.advance(days=8)

        with pytest.raises(InvitationExpiredError):
            asyncio.run(controller.register(created.token))


class TestSubmitOnboarding:
    """Submitting for HR review."""

    def test_saves_records_and_sends_forms(self, controller, gateway, forms, provider) -> None:
        forms.add_template("101", "W-4", required_for_onboarding=True)
        invitation = invite_and_register(controller)

        result = asyncio.run(
            controller.submit_onboarding(
                invitation.id,
                {"home_city": "Columbus"},
                {
                    "emergency_contacts": [
                        {"name": "Ann", "relationship": "Sister", "phone": "555-0101"},
                        {"name": "Bob", "relationship": "Brother"},
                    ]
                },
                created_by="system",
            )
        )

        assert result.employee.onboarding_status == OnboardingStatus.SUBMITTED
        assert result.employee.home_city == "Columbus"
        assert len(result.record_failures) == 1
        assert result.record_failures[0]["index"] == 1
        assert len(gateway.records["emergency_contacts"]) == 1

        assert result.forms.all_succeeded
        assert provider.created[0]["message"]["subject"] == "Onboarding Form Completion Required"
        sent = result.forms.submissions[0]
        assert sent.invitation_id == invitation.id
        assert sent.is_onboarding_requirement is True
        assert sent.created_by == "system"

    def test_requires_registration(self, controller) -> None:
        created = invite(controller).invitation
        with pytest.raises(InvalidStateTransitionError):
            asyncio.run(controller.submit_onboarding(created.id, {}))

    def test_save_draft(self, controller, gateway) -> None:
        invitation = invite_and_register(controller)

        result = asyncio.run(controller.save_draft(invitation.id, {"home_state": "OH"}))

        assert result == {"employee_id": invitation.employee_id}
        assert gateway.employees[invitation.employee_id]["home_state"] == "OH"

    def test_save_draft_drops_lifecycle_fields(self, controller, gateway, invitations) -> None:
        invitation = invite_and_register(controller)

        asyncio.run(
            controller.save_draft(
                invitation.id,
                {"status": "active", "onboarding_status": "completed", "home_state": "OH"},
            )
        )

        row = gateway.employees[invitation.employee_id]
        assert row["status"] == EmployeeStatus.INACTIVE
        assert row["onboarding_status"] == OnboardingStatus.DRAFT
        assert row["home_state"] == "OH"
        assert invitations.invitations[invitation.id].status == InvitationStatus.REGISTERED

    def test_submit_drops_lifecycle_fields(self, controller, gateway) -> None:
        invitation = invite_and_register(controller)

        result = asyncio.run(
            controller.submit_onboarding(
                invitation.id, {"status": "active", "onboarding_status": "completed"}
            )
        )

        assert result.employee.status == EmployeeStatus.INACTIVE
        assert result.employee.onboarding_status == OnboardingStatus.SUBMITTED

    def test_second_submit_is_rejected(self, controller, gateway) -> None:
        invitation = invite_and_register(controller)
        contacts = {
            "emergency_contacts": [{"name": "Ann", "relationship": "Sister", "phone": "555-0101"}]
        }
        asyncio.run(controller.submit_onboarding(invitation.id, {}, contacts))

        with pytest.raises(InvalidStateTransitionError) as exc_info:
            asyncio.run(controller.submit_onboarding(invitation.id, {}, contacts))

        assert exc_info.value.details["status"] == "submitted"
        assert len(gateway.records["emergency_contacts"]) == 1


class TestReview:
    """HR approval and rejection."""

    def test_approve_activates_employee(self, controller, gateway, clock) -> None:
        invitation = invite_and_register(controller)
        clock.advance(days=1)

        approved = asyncio.run(controller.approve(invitation.id, "hr-admin"))

        assert approved.status == InvitationStatus.APPROVED
        assert approved.approved_by == "hr-admin"
        assert approved.approved_at == clock.now
        row = gateway.employees[invitation.employee_id]
        assert row["status"] == EmployeeStatus.ACTIVE
        assert row["onboarding_status"] == OnboardingStatus.COMPLETED
        assert row["approved_by"] == "hr-admin"

    def test_cannot_approve_pending(self, controller) -> None:
        created = invite(controller).invitation
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            asyncio.run(controller.approve(created.id, "hr-admin"))
        assert exc_info.value.code == "INVALID_STATE"

    def test_reject_requires_reason(self, controller, invitations) -> None:
        created = invite(controller).invitation

        for reason in ("", "   "):
            with pytest.raises(ValidationError) as exc_info:
                asyncio.run(controller.reject(created.id, reason, "hr-admin"))
            assert "reason" in exc_info.value.field_errors

        assert invitations.invitations[created.id].status == InvitationStatus.PENDING

    def test_reject_pending(self, controller, gateway) -> None:
        created = invite(controller).invitation

        rejected = asyncio.run(controller.reject(created.id, " Position filled ", "hr-admin"))

        assert rejected.status == InvitationStatus.REJECTED
        assert rejected.rejection_reason == "Position filled"
        assert rejected.rejected_by == "hr-admin"
        assert gateway.calls == []

    def test_reject_registered_deactivates_employee(self, controller, gateway) -> None:
        invitation = invite_and_register(controller)

        asyncio.run(controller.reject(invitation.id, "Failed background check", "hr-admin"))

        assert gateway.employees[invitation.employee_id]["status"] == EmployeeStatus.INACTIVE

    def test_decisions_are_final(self, controller) -> None:
        invitation = invite_and_register(controller)
        asyncio.run(controller.approve(invitation.id, "hr-admin"))

        with pytest.raises(InvalidStateTransitionError):
            asyncio.run(controller.reject(invitation.id, "Changed mind", "hr-admin"))
        with pytest.raises(InvalidStateTransitionError):
            asyncio.run(controller.approve(invitation.id, "hr-admin"))
