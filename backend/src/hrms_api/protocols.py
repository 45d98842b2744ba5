"""Collaborator interfaces consumed by the workflow services.

Services receive implementations through their constructors. The SQL,
DocuSeal, S3 and SMTP adapters implement these structurally, as do the
in-memory fakes used by the test suite.
"""

from datetime import datetime
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from hrms_api.models.domain.employee import Employee
from hrms_api.models.domain.invitation import Invitation, InvitationStatus
from hrms_api.models.domain.submission import FormSubmission, Submission
from hrms_api.models.domain.template import FormTemplate

# Collection name used for the employee row itself
EMPLOYEES = "employees"


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

@runtime_checkable
class EntityGateway(Protocol):
    """Writes employees and their child records.

    Raises ``ValidationError`` (field-level, 4xx) or ``PersistenceError``
    (5xx) on failure.
    """

    async def create(
        self, collection: str, employee_id: UUID | None, record: dict[str, Any]
    ) -> dict[str, Any]: ...

    async def update(self, collection: str, record_id: UUID, fields: dict[str, Any]) -> dict[str, Any]: ...

    async def get(self, employee_id: UUID) -> Employee | None: ...


@runtime_checkable
class FormStore(Protocol):
    """Local templates and form submissions."""

    async def get_template(self, template_id: str) -> FormTemplate | None: ...

    async def list_templates(
        self, enabled_only: bool = False, required_for_onboarding: bool = False
    ) -> list[FormTemplate]: ...

    async def upsert_template(self, template_id: str, fields: dict[str, Any]) -> FormTemplate: ...

    async def create_submission(self, record: dict[str, Any]) -> FormSubmission: ...

    async def get_submission(self, submission_id: str) -> FormSubmission | None: ...

    async def update_submission(self, submission_id: str, fields: dict[str, Any]) -> FormSubmission: ...

    async def list_submissions(
        self,
        invitation_id: UUID | None = None,
        onboarding_only: bool = False,
        open_only: bool = False,
    ) -> list[FormSubmission]: ...


@runtime_checkable
class InvitationStore(Protocol):
    """Onboarding invitations."""

    async def create(self, record: dict[str, Any]) -> Invitation: ...

    async def get(self, invitation_id: UUID) -> Invitation | None: ...

    async def get_by_token(self, token: str) -> Invitation | None: ...

    async def update(self, invitation_id: UUID, fields: dict[str, Any]) -> Invitation: ...

    async def list_by_status(
        self, status: InvitationStatus, invited_before: datetime | None = None
    ) -> list[Invitation]: ...


# ---------------------------------------------------------------------------
# External services
# ---------------------------------------------------------------------------

@runtime_checkable
class DocumentProvider(Protocol):
    """External e-signature service."""

    async def test_connection(self) -> bool: ...

    async def list_templates(self) -> list[dict[str, Any]]: ...

    async def create_submission(
        self,
        template_id: str,
        submitters: list[dict[str, Any]],
        send_email: bool = True,
        message: dict[str, str] | None = None,
    ) -> Submission: ...

    async def get_submission(self, submission_id: str) -> Submission: ...

    async def remind_submission(self, submission_id: str, submitter_id: str | None = None) -> None: ...

    async def list_documents(self, submission_id: str) -> list[dict[str, Any]]: ...

    async def download_document(self, url: str) -> bytes: ...


@runtime_checkable
class ObjectStore(Protocol):
    """Binary object storage."""

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        metadata: dict[str, str] | None = None,
    ) -> dict[str, str]: ...

    async def get(self, key: str) -> bytes: ...

    async def delete(self, key: str) -> None: ...

    async def sign(self, key: str, ttl: int = 3600) -> str: ...

    async def list(self, prefix: str) -> list[dict[str, Any]]: ...


@runtime_checkable
class NotificationSender(Protocol):
    """Outbound e-mail."""

    async def send(
        self,
        to: str,
        subject: str,
        body_text: str,
        body_html: str,
        reply_to: str | None = None,
    ) -> dict[str, str]: ...


@runtime_checkable
class SecretCodec(Protocol):
    """Reversible encryption of sensitive strings. ``decrypt`` never raises."""

    def encrypt(self, plaintext: str) -> str: ...

    def decrypt(self, token: str) -> str: ...
