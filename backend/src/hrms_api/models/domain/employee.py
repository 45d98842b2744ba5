"""Employee domain model."""

from datetime import date, datetime
from enum import StrEnum
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class EmployeeStatus(StrEnum):
    """Employee lifecycle status enum."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    ON_LEAVE = "on_leave"


class OnboardingStatus(StrEnum):
    """Self-service onboarding status enum."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    COMPLETED = "completed"


class Employee(BaseModel):
    """Employee domain model.

    ``ssn``, ``caqh_password`` and ``nppes_password`` hold encrypted tokens,
    never plaintext.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    first_name: str
    middle_name: str | None = None
    last_name: str
    date_of_birth: date | None = None
    personal_email: str | None = None
    work_email: str | None = None
    cell_phone: str | None = None
    work_phone: str | None = None
    home_address1: str | None = None
    home_address2: str | None = None
    home_city: str | None = None
    home_state: str | None = None
    home_zip: str | None = None
    gender: str | None = None
    birth_city: str | None = None
    birth_state: str | None = None
    birth_country: str | None = None
    drivers_license_number: str | None = None
    dl_state_issued: str | None = None
    dl_issue_date: date | None = None
    dl_expiration_date: date | None = None
    ssn: str | None = None
    npi_number: str | None = None
    enumeration_date: date | None = None
    job_title: str | None = None
    work_location: str | None = None
    qualification: str | None = None
    medical_license_number: str | None = None
    substance_use_license_number: str | None = None
    substance_use_qualification: str | None = None
    mental_health_license_number: str | None = None
    mental_health_qualification: str | None = None
    medicaid_number: str | None = None
    medicare_ptan_number: str | None = None
    caqh_provider_id: str | None = None
    caqh_issue_date: date | None = None
    caqh_last_attestation_date: date | None = None
    caqh_enabled: bool = False
    caqh_reattestation_due_date: date | None = None
    caqh_login_id: str | None = None
    caqh_password: str | None = None
    nppes_login_id: str | None = None
    nppes_password: str | None = None
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    onboarding_status: OnboardingStatus | None = None
    invitation_id: UUID | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def full_name(self) -> str:
        """Name as printed on forms, including the middle name when known."""
        parts = [self.first_name, self.middle_name, self.last_name]
        return " ".join(part for part in parts if part)
