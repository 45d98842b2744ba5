"""Centralized factories that wire services from settings.

Services never read settings themselves; these factories build every
collaborator from the environment and hand them in explicitly.
"""

from datetime import timedelta
from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hrms_api.config import get_settings
from hrms_api.constants.paths import UPLOADS_DIR
from hrms_api.providers.docuseal import DocuSealProvider
from hrms_api.repositories.entity_gateway import SqlEntityGateway
from hrms_api.repositories.stores import SqlFormStore, SqlInvitationStore
from hrms_api.security.encryption import EncryptionService
from hrms_api.services.document_workflow import (
    CompanyProfile,
    DocumentWorkflowOrchestrator,
    HrSigner,
)
from hrms_api.services.email_service import SmtpConfig, SmtpEmailSender
from hrms_api.services.employee_submitter import EmployeeAggregateSubmitter
from hrms_api.services.onboarding_service import OnboardingLifecycleController
from hrms_api.services.storage_service import (
    FallbackObjectStore,
    LocalObjectStore,
    S3ObjectStore,
)


def _session_maker() -> async_sessionmaker[AsyncSession]:
    # Imported lazily so the engine is only created when a factory needs it
    from hrms_api.database import async_session_maker

    return async_session_maker


# =============================================================================
# Infrastructure
# =============================================================================


@lru_cache
def get_encryption_service() -> EncryptionService:
    """Get the shared EncryptionService instance."""
    settings = get_settings()
    return EncryptionService(settings.encryption_key, settings.encryption_key_legacy_list)


@lru_cache
def get_document_provider() -> DocuSealProvider | None:
    """Get the DocuSeal client, or None when no API key is configured."""
    settings = get_settings()
    if not settings.docuseal_configured:
        return None
    return DocuSealProvider(
        api_key=settings.docuseal_api_key,
        base_url=settings.docuseal_base_url,
        timeout=settings.docuseal_timeout_seconds,
    )


@lru_cache
def get_object_store() -> FallbackObjectStore:
    """Get the object store, S3 when configured with the local fallback."""
    settings = get_settings()
    s3 = None
    if settings.s3_configured:
        s3 = S3ObjectStore(
            bucket=settings.s3_bucket,
            region=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            access_key_id=settings.aws_access_key_id,
            secret_access_key=settings.aws_secret_access_key,
            connect_timeout=settings.s3_connect_timeout_seconds,
            read_timeout=settings.s3_read_timeout_seconds,
        )
    return FallbackObjectStore(LocalObjectStore(UPLOADS_DIR), s3)


def get_email_sender() -> SmtpEmailSender:
    """Get an SMTP sender; it refuses to send when SMTP is not configured."""
    settings = get_settings()
    if not settings.smtp_configured:
        return SmtpEmailSender(None)
    return SmtpEmailSender(
        SmtpConfig(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            from_email=settings.smtp_from_email,
            from_name=settings.smtp_from_name,
            use_tls=settings.smtp_use_tls,
            timeout=settings.smtp_timeout_seconds,
        )
    )


# =============================================================================
# Stores
# =============================================================================


def get_entity_gateway() -> SqlEntityGateway:
    """Get the SQL employee gateway."""
    return SqlEntityGateway(_session_maker(), get_encryption_service())


def get_form_store() -> SqlFormStore:
    """Get the SQL template and submission store."""
    return SqlFormStore(_session_maker())


def get_invitation_store() -> SqlInvitationStore:
    """Get the SQL invitation store."""
    return SqlInvitationStore(_session_maker())


# =============================================================================
# Services
# =============================================================================


def get_employee_submitter() -> EmployeeAggregateSubmitter:
    """Get EmployeeAggregateSubmitter instance."""
    return EmployeeAggregateSubmitter(get_entity_gateway())


def get_document_workflow() -> DocumentWorkflowOrchestrator:
    """Get DocumentWorkflowOrchestrator instance."""
    settings = get_settings()
    return DocumentWorkflowOrchestrator(
        provider=get_document_provider(),
        forms=get_form_store(),
        gateway=get_entity_gateway(),
        codec=get_encryption_service(),
        hr_signer=HrSigner(email=settings.hr_email, name=settings.hr_name),
        company=CompanyProfile(
            name=settings.company_name,
            address=settings.company_address,
            ohid=settings.company_ohid,
        ),
        invitations=get_invitation_store(),
        store=get_object_store(),
        signing_url_base=settings.docuseal_signing_url_base,
        form_expiry_days=settings.form_expiry_days,
        reminder_interval=timedelta(hours=settings.form_reminder_interval_hours),
    )


def get_onboarding_controller() -> OnboardingLifecycleController:
    """Get OnboardingLifecycleController instance."""
    settings = get_settings()
    sender = get_email_sender()
    return OnboardingLifecycleController(
        invitations=get_invitation_store(),
        submitter=get_employee_submitter(),
        sender=sender if sender.configured else None,
        documents=get_document_workflow(),
        app_base_url=settings.app_base_url,
        validity_days=settings.invitation_validity_days,
        reminder_interval=timedelta(hours=settings.invitation_reminder_interval_hours),
        max_reminders=settings.invitation_max_reminders,
    )
