"""DocuSeal template and form submission repositories."""

from uuid import UUID

from sqlalchemy import select

from hrms_api.models.orm.form_submission import FormSubmissionORM
from hrms_api.models.orm.form_template import DocusealTemplateORM
from hrms_api.repositories.base import BaseRepository

OPEN_SUBMISSION_STATUSES = ("pending", "sent", "opened")


class FormTemplateRepository(BaseRepository[DocusealTemplateORM]):
    """Repository for cached DocuSeal templates."""

    model = DocusealTemplateORM

    async def get_by_template_id(self, template_id: str) -> DocusealTemplateORM | None:
        """Get a template by its DocuSeal id."""
        return await self.get_by("template_id", template_id)

    async def list_filtered(
        self,
        enabled_only: bool = False,
        required_for_onboarding: bool = False,
    ) -> list[DocusealTemplateORM]:
        """Get templates ordered for display.

        Args:
            enabled_only: Skip disabled templates
            required_for_onboarding: Only templates flagged for onboarding

        Returns:
            List of templates
        """
        query = select(DocusealTemplateORM)
        if enabled_only:
            query = query.where(DocusealTemplateORM.enabled.is_(True))
        if required_for_onboarding:
            query = query.where(DocusealTemplateORM.required_for_onboarding.is_(True))
        query = query.order_by(DocusealTemplateORM.sort_order, DocusealTemplateORM.name)
        result = await self.session.execute(query)
        return list(result.scalars().all())


class FormSubmissionRepository(BaseRepository[FormSubmissionORM]):
    """Repository for form submissions."""

    model = FormSubmissionORM

    async def get_by_submission_id(self, submission_id: str) -> FormSubmissionORM | None:
        """Get a submission by its DocuSeal id."""
        return await self.get_by("submission_id", submission_id)

    async def list_filtered(
        self,
        invitation_id: UUID | None = None,
        onboarding_only: bool = False,
        open_only: bool = False,
    ) -> list[FormSubmissionORM]:
        """Get submissions matching the given filters, oldest first."""
        query = select(FormSubmissionORM)
        if invitation_id is not None:
            query = query.where(FormSubmissionORM.invitation_id == invitation_id)
        if onboarding_only:
            query = query.where(FormSubmissionORM.is_onboarding_requirement.is_(True))
        if open_only:
            query = query.where(FormSubmissionORM.status.in_(OPEN_SUBMISSION_STATUSES))
        result = await self.session.execute(query.order_by(FormSubmissionORM.created_at))
        return list(result.scalars().all())
