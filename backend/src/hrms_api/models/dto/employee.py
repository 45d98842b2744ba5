"""Employee DTOs."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from hrms_api.models.domain.employee import EmployeeStatus, OnboardingStatus

SSN_PATTERN = r"^\d{3}-?\d{2}-?\d{4}$"


class EmployeeUpdate(BaseModel):
    """DTO for updating an employee's own columns.

    Its field set is the authoritative list of employee columns that HR edits
    and onboarding drafts may write. Child collections are edited through their
    own records and are not part of it.
    """

    model_config = ConfigDict(extra="forbid")

    # Identity
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    middle_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    date_of_birth: date | None = None
    gender: str | None = Field(default=None, max_length=50)
    birth_city: str | None = Field(default=None, max_length=100)
    birth_state: str | None = Field(default=None, max_length=50)
    birth_country: str | None = Field(default=None, max_length=100)

    # Contact
    personal_email: EmailStr | None = None
    work_email: EmailStr | None = None
    cell_phone: str | None = Field(default=None, max_length=30)
    work_phone: str | None = Field(default=None, max_length=30)
    home_address1: str | None = Field(default=None, max_length=255)
    home_address2: str | None = Field(default=None, max_length=255)
    home_city: str | None = Field(default=None, max_length=100)
    home_state: str | None = Field(default=None, max_length=50)
    home_zip: str | None = Field(default=None, max_length=20)

    # Identification
    drivers_license_number: str | None = Field(default=None, max_length=50)
    dl_state_issued: str | None = Field(default=None, max_length=50)
    dl_issue_date: date | None = None
    dl_expiration_date: date | None = None
    ssn: str | None = Field(default=None, pattern=SSN_PATTERN, description="Plain SSN, encrypted at rest")

    # Professional
    npi_number: str | None = Field(default=None, pattern=r"^\d{10}$")
    enumeration_date: date | None = None
    job_title: str | None = Field(default=None, max_length=100)
    work_location: str | None = Field(default=None, max_length=100)
    qualification: str | None = Field(default=None, max_length=100)

    # Credentials
    medical_license_number: str | None = Field(default=None, max_length=50)
    substance_use_license_number: str | None = Field(default=None, max_length=50)
    substance_use_qualification: str | None = Field(default=None, max_length=100)
    mental_health_license_number: str | None = Field(default=None, max_length=50)
    mental_health_qualification: str | None = Field(default=None, max_length=100)
    medicaid_number: str | None = Field(default=None, max_length=50)
    medicare_ptan_number: str | None = Field(default=None, max_length=50)

    # CAQH / NPPES
    caqh_provider_id: str | None = Field(default=None, max_length=50)
    caqh_issue_date: date | None = None
    caqh_last_attestation_date: date | None = None
    caqh_enabled: bool | None = None
    caqh_reattestation_due_date: date | None = None
    caqh_login_id: str | None = Field(default=None, max_length=100)
    caqh_password: str | None = Field(default=None, max_length=255, description="Encrypted at rest")
    nppes_login_id: str | None = Field(default=None, max_length=100)
    nppes_password: str | None = Field(default=None, max_length=255, description="Encrypted at rest")

    # Lifecycle
    status: EmployeeStatus | None = None
    onboarding_status: OnboardingStatus | None = None


class EmployeeCreate(EmployeeUpdate):
    """DTO for creating an employee."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    invitation_id: UUID | None = None


class EmployeeLifecycleUpdate(EmployeeUpdate):
    """DTO for system-driven employee updates during onboarding approval."""

    invitation_id: UUID | None = None
    approved_by: str | None = Field(default=None, max_length=255)
    approved_at: datetime | None = None


# Columns encrypted by the persistence gateway before they are written
ENCRYPTED_EMPLOYEE_FIELDS = ("ssn", "caqh_password", "nppes_password")


# Columns only HR review may change
LIFECYCLE_EMPLOYEE_FIELDS = ("status", "onboarding_status")


def updatable_employee_fields() -> frozenset[str]:
    """Employee columns that callers are allowed to write."""
    return frozenset(EmployeeUpdate.model_fields)


def invitee_employee_fields() -> frozenset[str]:
    """Employee columns an invitee may write on their own draft."""
    return updatable_employee_fields() - frozenset(LIFECYCLE_EMPLOYEE_FIELDS)
