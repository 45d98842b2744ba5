"""SQL-backed stores for form templates, submissions and invitations."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hrms_api.exceptions import InvitationNotFoundError, SubmissionNotFoundError
from hrms_api.models.domain.invitation import Invitation, InvitationStatus
from hrms_api.models.domain.submission import FormSubmission
from hrms_api.models.domain.template import FormTemplate
from hrms_api.repositories.form_repository import (
    FormSubmissionRepository,
    FormTemplateRepository,
)
from hrms_api.repositories.invitation_repository import InvitationRepository


class SqlFormStore:
    """Templates and submissions, one session per call."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self.session_maker = session_maker

    async def get_template(self, template_id: str) -> FormTemplate | None:
        async with self.session_maker() as session:
            instance = await FormTemplateRepository(session).get_by_template_id(str(template_id))
            return FormTemplate.model_validate(instance) if instance else None

    async def list_templates(
        self, enabled_only: bool = False, required_for_onboarding: bool = False
    ) -> list[FormTemplate]:
        async with self.session_maker() as session:
            rows = await FormTemplateRepository(session).list_filtered(
                enabled_only=enabled_only,
                required_for_onboarding=required_for_onboarding,
            )
            return [FormTemplate.model_validate(row) for row in rows]

    async def upsert_template(self, template_id: str, fields: dict[str, Any]) -> FormTemplate:
        """Insert a template or refresh its synced metadata.

        Operator-managed flags (enabled, onboarding requirement, HR signature
        override, sort order) are only set on insert.
        """
        async with self.session_maker() as session:
            repo = FormTemplateRepository(session)
            instance = await repo.get_by_template_id(template_id)
            if instance is None:
                instance = await repo.create(template_id=template_id, **fields)
            else:
                instance = await repo.apply(instance, **fields)
            template = FormTemplate.model_validate(instance)
            await session.commit()
            return template

    async def create_submission(self, record: dict[str, Any]) -> FormSubmission:
        async with self.session_maker() as session:
            instance = await FormSubmissionRepository(session).create(**record)
            submission = FormSubmission.model_validate(instance)
            await session.commit()
            return submission

    async def get_submission(self, submission_id: str) -> FormSubmission | None:
        async with self.session_maker() as session:
            instance = await FormSubmissionRepository(session).get_by_submission_id(submission_id)
            return FormSubmission.model_validate(instance) if instance else None

    async def update_submission(self, submission_id: str, fields: dict[str, Any]) -> FormSubmission:
        async with self.session_maker() as session:
            repo = FormSubmissionRepository(session)
            instance = await repo.get_by_submission_id(submission_id)
            if instance is None:
                raise SubmissionNotFoundError(submission_id)
            instance = await repo.apply(instance, **fields)
            submission = FormSubmission.model_validate(instance)
            await session.commit()
            return submission

    async def list_submissions(
        self,
        invitation_id: UUID | None = None,
        onboarding_only: bool = False,
        open_only: bool = False,
    ) -> list[FormSubmission]:
        async with self.session_maker() as session:
            rows = await FormSubmissionRepository(session).list_filtered(
                invitation_id=invitation_id,
                onboarding_only=onboarding_only,
                open_only=open_only,
            )
            return [FormSubmission.model_validate(row) for row in rows]


class SqlInvitationStore:
    """Onboarding invitations, one session per call."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self.session_maker = session_maker

    async def create(self, record: dict[str, Any]) -> Invitation:
        async with self.session_maker() as session:
            instance = await InvitationRepository(session).create(**record)
            invitation = Invitation.model_validate(instance)
            await session.commit()
            return invitation

    async def get(self, invitation_id: UUID) -> Invitation | None:
        async with self.session_maker() as session:
            instance = await InvitationRepository(session).get(invitation_id)
            return Invitation.model_validate(instance) if instance else None

    async def get_by_token(self, token: str) -> Invitation | None:
        async with self.session_maker() as session:
            instance = await InvitationRepository(session).get_by_token(token)
            return Invitation.model_validate(instance) if instance else None

    async def update(self, invitation_id: UUID, fields: dict[str, Any]) -> Invitation:
        async with self.session_maker() as session:
            instance = await InvitationRepository(session).update(invitation_id, **fields)
            if instance is None:
                raise InvitationNotFoundError(str(invitation_id))
            invitation = Invitation.model_validate(instance)
            await session.commit()
            return invitation

    async def list_by_status(
        self, status: InvitationStatus, invited_before: datetime | None = None
    ) -> list[Invitation]:
        async with self.session_maker() as session:
            rows = await InvitationRepository(session).list_by_status(str(status), invited_before)
            return [Invitation.model_validate(row) for row in rows]
