"""E-signature workflow for employee forms.

Routes a template to an employee (and, for agreements, to HR as a second
signer), tracks the resulting submission by polling the provider and
archives the signed PDFs.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from hrms_api.exceptions import (
    EmployeeNotFoundError,
    HRMSError,
    InternalError,
    InvalidRequestError,
    InvalidStateTransitionError,
    ServiceUnavailableError,
    SubmissionNotFoundError,
    TemplateNotFoundError,
)
from hrms_api.models.domain.employee import Employee
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
from hrms_api.protocols import (
    DocumentProvider,
    EntityGateway,
    FormStore,
    InvitationStore,
    ObjectStore,
    SecretCodec,
)
from hrms_api.utils.dates import format_us_date
from hrms_api.utils.secure_logging import log_error, log_warning, mask_email

logger = logging.getLogger(__name__)

DEFAULT_EMPLOYEE_ROLE = "Employee"
DEFAULT_HR_ROLE = "Company"
HR_ROLE_KEYWORDS = ("company", "hr", "employer")

ONBOARDING_MESSAGE = {
    "subject": "Onboarding Form Completion Required",
    "body": (
        "Please complete this form as part of your onboarding process. "
        "This is required to complete your employee onboarding."
    ),
}
STANDARD_MESSAGE = {
    "subject": "Form Completion Required",
    "body": "Please complete and sign this form at your earliest convenience.",
}


@dataclass(frozen=True)
class HrSigner:
    """Counter-signer identity, taken from configuration."""

    email: str
    name: str


@dataclass(frozen=True)
class CompanyProfile:
    """Company details pre-filled into forms."""

    name: str = ""
    address: str = ""
    ohid: str = ""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _role_name(role: Any) -> str | None:
    if isinstance(role, str):
        return role or None
    if isinstance(role, dict):
        return role.get("name") or role.get("role") or None
    return None


def resolve_signer_roles(signer_roles: list[Any] | None) -> tuple[str, str]:
    """Pick the employee and HR role names from a template's declared roles.

    The employee role is the first one mentioning "employee", else the first
    declared role. The HR role is a remaining role mentioning company, HR or
    employer, else the next remaining role.

    Returns:
        ``(employee_role, hr_role)``
    """
    names = [name for name in (_role_name(role) for role in signer_roles or []) if name]
    if not names:
        return DEFAULT_EMPLOYEE_ROLE, DEFAULT_HR_ROLE

    employee_role = next((name for name in names if "employee" in name.lower()), names[0])
    others = [name for name in names if name != employee_role]
    hr_role = next(
        (name for name in others if any(key in name.lower() for key in HR_ROLE_KEYWORDS)),
        others[0] if others else DEFAULT_HR_ROLE,
    )
    return employee_role, hr_role


def _join(*parts: str | None) -> str:
    return ", ".join(part for part in parts if part)


def build_prefill_values(
    employee: Employee,
    declared_fields: set[str],
    ssn: str | None,
    company: CompanyProfile,
    today: date,
) -> dict[str, str]:
    """Pre-fill values for the fields a template declares.

    Only literal field names present in ``declared_fields`` are filled, and
    empty values are left out.

    Args:
        employee: Employee the form is for
        declared_fields: Field names declared by the template
        ssn: Decrypted SSN, if known
        company: Company details
        today: Signing date

    Returns:
        Field name -> value
    """
    candidates: dict[str, str | None] = {
        "EmpName": f"{employee.first_name} {employee.last_name}".strip(),
        "EmpMedicaid ID": employee.medicaid_number,
        "EmpNPI": employee.npi_number,
        "EmpAddress": _join(employee.home_address1, employee.home_address2),
        "EmpCityStateZip": _join(employee.home_city, employee.home_state, employee.home_zip),
        "CompanyNameAddr": _join(company.name, company.address),
        "CompName": company.name,
        "CompOHID": company.ohid,
        "EmpSignDate": format_us_date(today),
    }

    digits = re.sub(r"[-\s]", "", ssn or "")
    if len(digits) >= 9:
        candidates["SSN1"] = digits[0:3]
        candidates["SSN2"] = digits[3:5]
        candidates["SSN3"] = digits[5:9]

    return {
        name: value
        for name, value in candidates.items()
        if value and name in declared_fields
    }


class DocumentWorkflowOrchestrator:
    """Creates and tracks e-signature submissions for employees.

    Submission status moves only along pending, sent, opened, completed, or
    jumps to expired. Every transition comes from polling the provider.
    """

    def __init__(
        self,
        provider: DocumentProvider | None,
        forms: FormStore,
        gateway: EntityGateway,
        codec: SecretCodec,
        hr_signer: HrSigner,
        company: CompanyProfile | None = None,
        invitations: InvitationStore | None = None,
        store: ObjectStore | None = None,
        signing_url_base: str = "https://docuseal.com",
        form_expiry_days: int = 30,
        reminder_interval: timedelta = timedelta(hours=1),
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            provider: E-signature provider, or None when it is not configured
            forms: Local template and submission store
            gateway: Employee lookup
            codec: Decrypts the stored SSN for pre-fill
            hr_signer: HR counter-signer identity
            company: Company details for pre-fill
            invitations: Invitation lookup for onboarding form sets
            store: Object store for archived PDFs
            signing_url_base: Base of public signing links
            form_expiry_days: Local expiry of a sent form
            reminder_interval: Delay until the next reminder is due
            clock: Returns the current UTC time
        """
        self.provider = provider
        self.forms = forms
        self.gateway = gateway
        self.codec = codec
        self.hr_signer = hr_signer
        self.company = company or CompanyProfile()
        self.invitations = invitations
        self.store = store
        self.signing_url_base = signing_url_base.rstrip("/")
        self.form_expiry_days = form_expiry_days
        self.reminder_interval = reminder_interval
        self._now = clock or _utcnow

    def _require_provider(self) -> DocumentProvider:
        if self.provider is None:
            raise ServiceUnavailableError("DocuSeal is not configured")
        return self.provider

    def signing_url(self, submitter: Submitter) -> str:
        """Public signing link of a submitter."""
        return f"{self.signing_url_base}/s/{submitter.signing_token}"

    async def test_connection(self) -> bool:
        """Check that the provider is configured and accepts our key."""
        if self.provider is None:
            return False
        return await self.provider.test_connection()

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send_form_to_employee(
        self,
        employee_id: UUID,
        template_id: str,
        created_by: str | None,
        is_onboarding: bool = False,
        invitation_id: UUID | None = None,
    ) -> FormSubmission:
        """Route a template to an employee for signature.

        Args:
            employee_id: Employee to send to
            template_id: Provider template id
            created_by: Who initiated the send
            is_onboarding: Whether the form is an onboarding requirement
            invitation_id: Invitation the form belongs to, if any

        Returns:
            The persisted submission

        Raises:
            ServiceUnavailableError: If no provider is configured
            EmployeeNotFoundError: If the employee does not exist
            TemplateNotFoundError: If the template was never synced
            InvalidRequestError: If the employee has no work e-mail
            UnauthorizedError: If the provider rejects the API key
            DocumentProviderError: If the provider fails the request
            InternalError: On any unclassified failure
        """
        provider = self._require_provider()
        try:
            return await self._send_form(
                provider, employee_id, template_id, created_by, is_onboarding, invitation_id
            )
        except HRMSError:
            raise
        except Exception as e:
            log_error(logger, f"Failed to send template {template_id} to employee {employee_id}", e)
            raise InternalError(
                "Failed to send form", {"template_id": str(template_id)}
            ) from e

    async def _send_form(
        self,
        provider: DocumentProvider,
        employee_id: UUID,
        template_id: str,
        created_by: str | None,
        is_onboarding: bool,
        invitation_id: UUID | None,
    ) -> FormSubmission:
        employee = await self.gateway.get(employee_id)
        if employee is None:
            raise EmployeeNotFoundError(str(employee_id))
        template = await self.forms.get_template(str(template_id))
        if template is None:
            raise TemplateNotFoundError(template_id)

        if not employee.work_email:
            raise InvalidRequestError(
                "Employee has no work email address; add one before sending forms",
                {"employee_id": str(employee_id)},
            )

        requires_hr = template.needs_hr_signature()
        employee_role, hr_role = resolve_signer_roles(template.signer_roles)
        submitters = self._build_submitters(employee, template, employee_role, hr_role, requires_hr)
        message = ONBOARDING_MESSAGE if is_onboarding else STANDARD_MESSAGE

        submission = await provider.create_submission(
            template.template_id, submitters, send_email=True, message=message
        )
        logger.info(
            f"Created submission {submission.id} for template {template.template_id} "
            f"({'employee + HR' if requires_hr else 'employee only'})"
        )

        signing_urls = self._signing_urls(submission, employee.work_email, requires_hr)
        now = self._now()
        record = {
            "submission_id": submission.id,
            "employee_id": employee.id,
            "template_id": template.template_id,
            "invitation_id": invitation_id,
            "is_onboarding_requirement": is_onboarding,
            "recipient_email": employee.work_email,
            "recipient_name": f"{employee.first_name} {employee.last_name}",
            "recipient_phone": employee.cell_phone,
            "status": SubmissionStatus.SENT,
            "sent_at": now,
            "expires_at": now + timedelta(days=self.form_expiry_days),
            "documents_url": signing_urls.get("employee")
            or f"{self.signing_url_base}/submissions/{submission.id}",
            "submission_data": {
                "requiresHrSignature": requires_hr,
                "requiresEmployeeFirst": True,
                "employeeSigned": False,
                "hrSigned": False,
                "signingUrls": signing_urls,
            },
            "created_by": created_by,
        }
        return await self.forms.create_submission(record)

    def _build_submitters(
        self,
        employee: Employee,
        template: FormTemplate,
        employee_role: str,
        hr_role: str,
        requires_hr: bool,
    ) -> list[dict[str, Any]]:
        ssn = self.codec.decrypt(employee.ssn) if employee.ssn else None
        values = build_prefill_values(
            employee, template.field_names(), ssn, self.company, self._now().date()
        )

        employee_submitter: dict[str, Any] = {
            "email": employee.work_email,
            "name": f"{employee.first_name} {employee.last_name}",
            "role": employee_role,
        }
        if employee.cell_phone:
            employee_submitter["phone"] = employee.cell_phone
        if values:
            employee_submitter["values"] = values

        submitters = [employee_submitter]
        if requires_hr:
            submitters.append(
                {"email": self.hr_signer.email, "name": self.hr_signer.name, "role": hr_role}
            )
        return submitters

    def _signer_pair(
        self, submission: Submission, employee_email: str, requires_hr: bool
    ) -> tuple[Submitter | None, Submitter | None]:
        """Find the employee and HR submitters, by e-mail first, then by position."""
        submitters = submission.submitters
        employee = submission.find_submitter(employee_email) or (submitters[0] if submitters else None)
        hr = None
        if requires_hr:
            hr = submission.find_submitter(self.hr_signer.email) or (
                submitters[1] if len(submitters) > 1 else None
            )
        return employee, hr

    def _signing_urls(
        self, submission: Submission, employee_email: str, requires_hr: bool
    ) -> dict[str, str]:
        employee, hr = self._signer_pair(submission, employee_email, requires_hr)
        urls: dict[str, str] = {}
        if employee is not None:
            urls["employee"] = self.signing_url(employee)
        if hr is not None:
            urls["hr"] = self.signing_url(hr)
        return urls

    async def send_onboarding_forms(
        self,
        invitation_id: UUID,
        employee_id: UUID,
        created_by: str | None,
    ) -> BulkSendResult:
        """Send every form an onboarding requires, one at a time.

        The templates come from the invitation's own list when it has one,
        otherwise from all enabled templates flagged as required for
        onboarding. A failed send is recorded and the remaining sends go on.

        Returns:
            Created submissions and one failure entry per failed template
        """
        result = BulkSendResult()
        for template_id in await self._onboarding_template_ids(invitation_id, result):
            try:
                submission = await self.send_form_to_employee(
                    employee_id,
                    template_id,
                    created_by,
                    is_onboarding=True,
                    invitation_id=invitation_id,
                )
            except HRMSError as e:
                log_warning(logger, f"Onboarding form {template_id} was not sent", e)
                result.failures.append(
                    {"template_id": template_id, "reason": e.message, "code": e.code}
                )
            else:
                result.submissions.append(submission)

        logger.info(
            f"Onboarding forms for invitation {invitation_id}: "
            f"{len(result.submissions)} sent, {len(result.failures)} failed"
        )
        return result

    async def _onboarding_template_ids(
        self, invitation_id: UUID, result: BulkSendResult
    ) -> list[str]:
        requested: list[str] = []
        if self.invitations is not None:
            invitation = await self.invitations.get(invitation_id)
            if invitation is not None:
                requested = list(invitation.required_form_templates)

        if not requested:
            templates = await self.forms.list_templates(
                enabled_only=True, required_for_onboarding=True
            )
            return [template.template_id for template in templates]

        template_ids = []
        for template_id in requested:
            template = await self.forms.get_template(str(template_id))
            if template is None:
                error = TemplateNotFoundError(template_id)
                result.failures.append(
                    {"template_id": str(template_id), "reason": error.message, "code": error.code}
                )
            elif template.enabled:
                template_ids.append(template.template_id)
        return template_ids

    async def are_onboarding_forms_completed(self, invitation_id: UUID) -> bool:
        """Whether every required onboarding form of an invitation is signed.

        An invitation without required forms counts as complete.
        """
        submissions = await self.forms.list_submissions(
            invitation_id=invitation_id, onboarding_only=True
        )
        return all(sub.status == SubmissionStatus.COMPLETED for sub in submissions)

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------

    async def update_submission_status(self, submission_id: str) -> FormSubmission | None:
        """Pull the provider's view of a submission and store it.

        The local status never moves backwards. Signer flags only ever turn
        on.

        Returns:
            The updated submission, or None if it is not stored locally
        """
        local = await self.forms.get_submission(submission_id)
        if local is None:
            logger.debug(f"Submission {submission_id} is not tracked locally, skipping poll")
            return None

        provider = self._require_provider()
        remote = await provider.get_submission(submission_id)

        observed = SubmissionStatus.parse(remote.status)
        status = advance_status(local.status, observed)
        employee, hr = self._signer_pair(
            remote, local.recipient_email, local.requires_hr_signature
        )

        data = dict(local.submission_data)
        data["employeeSigned"] = bool(data.get("employeeSigned")) or bool(
            employee and employee.has_signed
        )
        data["hrSigned"] = bool(data.get("hrSigned")) or bool(hr and hr.has_signed)
        if employee is not None and employee.values:
            data["values"] = employee.values

        fields: dict[str, Any] = {
            "status": status,
            "sent_at": (employee.sent_at if employee else None) or local.sent_at,
            "opened_at": (employee.opened_at if employee else None) or local.opened_at,
            "completed_at": remote.completed_at or local.completed_at,
            "documents_url": remote.documents_url or local.documents_url,
            "submission_data": data,
        }
        updated = await self.forms.update_submission(submission_id, fields)

        if status != local.status:
            logger.info(f"Submission {submission_id}: {local.status} -> {status}")
        elif observed is not None and observed != status:
            logger.debug(
                f"Submission {submission_id}: ignored provider status {observed} (kept {status})"
            )
        return updated

    async def send_reminder(
        self, submission_id: str, signer_email: str | None = None
    ) -> ReminderResult:
        """Ask the provider to remind one signer, or all pending signers.

        Failures are reported in the result instead of raised.

        Raises:
            ServiceUnavailableError: If no provider is configured
        """
        provider = self._require_provider()
        try:
            submitter_id = None
            if signer_email:
                remote = await provider.get_submission(submission_id)
                submitter = remote.find_submitter(signer_email)
                if submitter is None:
                    return ReminderResult(
                        success=False,
                        message=f"Signer {signer_email} not found in submission",
                    )
                submitter_id = submitter.submitter_id or submitter.id

            await provider.remind_submission(submission_id, submitter_id)

            local = await self.forms.get_submission(submission_id)
            if local is not None:
                now = self._now()
                await self.forms.update_submission(
                    submission_id,
                    {
                        "reminders_sent": local.reminders_sent + 1,
                        "last_reminder_at": now,
                        "next_reminder_at": now + self.reminder_interval,
                    },
                )
        except HRMSError as e:
            log_warning(logger, f"Failed to send reminder for submission {submission_id}", e)
            return ReminderResult(success=False, message=f"Failed to send reminder: {e.message}")

        if signer_email:
            return ReminderResult(success=True, message=f"Reminder sent to {signer_email}")
        return ReminderResult(success=True, message="Reminders sent to all pending signers")

    async def get_signing_url(self, submission_id: str, signer_email: str) -> str | None:
        """Signing link of one signer, or None if they are not part of the submission."""
        provider = self._require_provider()
        remote = await provider.get_submission(submission_id)
        submitter = remote.find_submitter(signer_email)
        if submitter is None:
            logger.debug(f"No signer {mask_email(signer_email)} in submission {submission_id}")
            return None
        return submitter.embed_src or self.signing_url(submitter)

    # ------------------------------------------------------------------
    # Templates and archive
    # ------------------------------------------------------------------

    async def sync_templates(self) -> TemplateSyncResult:
        """Refresh the local template cache from the provider.

        Raises:
            ServiceUnavailableError: If no provider is configured
        """
        provider = self._require_provider()
        try:
            raw_templates = await provider.list_templates()
        except HRMSError as e:
            log_warning(logger, "Failed to fetch DocuSeal templates", e)
            return TemplateSyncResult(message=f"Failed to sync templates: {e.message}")

        synced = 0
        failed = 0
        for raw in raw_templates:
            template_id = str(raw.get("id", ""))
            try:
                if not template_id:
                    raise InvalidRequestError("Template without id")
                await self.forms.upsert_template(
                    template_id,
                    {
                        "name": raw.get("name") or f"Template {template_id}",
                        "description": raw.get("description"),
                        "fields": raw.get("fields") or [],
                        "signer_roles": raw.get("submitters") or [],
                        "document_count": len(raw.get("documents") or []),
                        "last_synced_at": self._now(),
                    },
                )
                synced += 1
            except Exception as e:
                log_error(logger, f"Failed to sync template {template_id or '<missing id>'}", e)
                failed += 1

        message = f"Successfully synced {synced} templates"
        if failed:
            message += f", {failed} failed"
        return TemplateSyncResult(synced=synced, failed=failed, message=message)

    async def archive_signed_documents(self, submission_id: str) -> list[str]:
        """Copy the signed PDFs of a completed submission into the object store.

        Documents are stored under ``employees/<employee_id>/forms/<submission_id>/``.

        Returns:
            Storage keys written

        Raises:
            ServiceUnavailableError: If no provider or object store is configured
            SubmissionNotFoundError: If the submission is not stored locally
            InvalidStateTransitionError: If the submission is not completed
        """
        provider = self._require_provider()
        if self.store is None:
            raise ServiceUnavailableError("Document storage is not configured")

        local = await self.forms.get_submission(submission_id)
        if local is None:
            raise SubmissionNotFoundError(submission_id)
        if local.status != SubmissionStatus.COMPLETED:
            raise InvalidStateTransitionError("submission", str(local.status), "archive")

        prefix = f"employees/{local.employee_id}/forms/{submission_id}"
        keys: list[str] = []
        for index, document in enumerate(await provider.list_documents(submission_id)):
            url = document.get("url")
            if not url:
                continue
            name = _safe_filename(document.get("name"), index)
            data = await provider.download_document(url)
            key = f"{prefix}/{name}"
            await self.store.put(
                key,
                data,
                content_type="application/pdf",
                metadata={"submission_id": submission_id, "template_id": local.template_id},
            )
            keys.append(key)

        if keys:
            await self.forms.update_submission(submission_id, {"storage_key": prefix})
        logger.info(f"Archived {len(keys)} document(s) of submission {submission_id}")
        return keys


def _safe_filename(name: Any, index: int) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9._-]+", "_", str(name or "")).strip("._")
    if not cleaned:
        cleaned = f"document-{index + 1}"
    if not cleaned.lower().endswith(".pdf"):
        cleaned += ".pdf"
    return cleaned
