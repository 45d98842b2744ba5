"""DTOs for the child record collections owned by an employee."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class EmployeeRecordCreate(BaseModel):
    """Base DTO for a child record. Client-only keys are rejected."""

    model_config = ConfigDict(extra="forbid")


class EducationCreate(EmployeeRecordCreate):
    """DTO for an education entry."""

    education_type: str | None = Field(default=None, max_length=50)
    school_institution: str | None = Field(default=None, max_length=255)
    degree: str | None = Field(default=None, max_length=100)
    specialty_major: str | None = Field(default=None, max_length=100)
    start_date: date | None = None
    end_date: date | None = None


class EmploymentCreate(EmployeeRecordCreate):
    """DTO for a previous employment entry."""

    employer: str | None = Field(default=None, max_length=255)
    position: str | None = Field(default=None, max_length=100)
    start_date: date | None = None
    end_date: date | None = None
    description: str | None = None


class PeerReferenceCreate(EmployeeRecordCreate):
    """DTO for a professional reference."""

    reference_name: str | None = Field(default=None, max_length=255)
    contact_info: str | None = Field(default=None, max_length=255)
    relationship: str | None = Field(default=None, max_length=100)
    comments: str | None = None


class StateLicenseCreate(EmployeeRecordCreate):
    """DTO for a state license."""

    license_number: str = Field(min_length=1, max_length=50)
    state: str = Field(min_length=1, max_length=50)
    issue_date: date | None = None
    expiration_date: date | None = None
    status: str | None = Field(default=None, max_length=50)


class DeaLicenseCreate(EmployeeRecordCreate):
    """DTO for a DEA registration."""

    license_number: str = Field(min_length=1, max_length=50)
    issue_date: date | None = None
    expiration_date: date | None = None
    status: str | None = Field(default=None, max_length=50)


class BoardCertificationCreate(EmployeeRecordCreate):
    """DTO for a board certification."""

    board_name: str | None = Field(default=None, max_length=255)
    certification: str | None = Field(default=None, max_length=255)
    issue_date: date | None = None
    expiration_date: date | None = None
    status: str | None = Field(default=None, max_length=50)


class EmergencyContactCreate(EmployeeRecordCreate):
    """DTO for an emergency contact."""

    name: str = Field(min_length=1, max_length=255)
    relationship: str | None = Field(default=None, max_length=100)
    phone: str = Field(min_length=1, max_length=30)
    email: EmailStr | None = None


class TaxFormCreate(EmployeeRecordCreate):
    """DTO for a tax form (W-4, I-9, ...)."""

    form_type: str = Field(min_length=1, max_length=50)
    file_path: str | None = Field(default=None, max_length=500)
    status: str | None = Field(default="pending", max_length=50)
    submitted_date: date | None = None


class TrainingCreate(EmployeeRecordCreate):
    """DTO for a completed training."""

    training_type: str = Field(min_length=1, max_length=100)
    provider: str | None = Field(default=None, max_length=255)
    completion_date: date | None = None
    expiration_date: date | None = None
    credits: Decimal | None = Field(default=None, ge=0)
    certificate_path: str | None = Field(default=None, max_length=500)


class PayerEnrollmentCreate(EmployeeRecordCreate):
    """DTO for an insurance payer enrollment."""

    payer_name: str = Field(min_length=1, max_length=255)
    enrollment_id: str | None = Field(default=None, max_length=100)
    enrollment_date: date | None = None
    effective_date: date | None = None
    termination_date: date | None = None
    status: str | None = Field(default=None, max_length=50)


class IncidentLogCreate(EmployeeRecordCreate):
    """DTO for an incident log entry."""

    incident_date: date
    description: str = Field(min_length=1)
    resolution: str | None = None
    reported_by: str | None = Field(default=None, max_length=255)


@dataclass(frozen=True)
class RecordCollection:
    """Declaration of one child collection."""

    name: str
    dto: type[EmployeeRecordCreate]
    date_fields: tuple[str, ...]


RECORD_COLLECTIONS: dict[str, RecordCollection] = {
    collection.name: collection
    for collection in (
        RecordCollection("educations", EducationCreate, ("start_date", "end_date")),
        RecordCollection("employments", EmploymentCreate, ("start_date", "end_date")),
        RecordCollection("state_licenses", StateLicenseCreate, ("issue_date", "expiration_date")),
        RecordCollection("dea_licenses", DeaLicenseCreate, ("issue_date", "expiration_date")),
        RecordCollection(
            "board_certifications", BoardCertificationCreate, ("issue_date", "expiration_date")
        ),
        RecordCollection("peer_references", PeerReferenceCreate, ()),
        RecordCollection("emergency_contacts", EmergencyContactCreate, ()),
        RecordCollection("tax_forms", TaxFormCreate, ("submitted_date",)),
        RecordCollection("trainings", TrainingCreate, ("completion_date", "expiration_date")),
        RecordCollection(
            "payer_enrollments",
            PayerEnrollmentCreate,
            ("enrollment_date", "effective_date", "termination_date"),
        ),
        RecordCollection("incident_logs", IncidentLogCreate, ("incident_date",)),
    )
}

# Keys that only exist client-side and are never sent to persistence
CLIENT_ONLY_FIELDS = frozenset({"id", "source", "employee_id"})


def get_collection(name: str) -> RecordCollection:
    """Look up a collection declaration.

    Raises:
        KeyError: If ``name`` is not a known collection
    """
    return RECORD_COLLECTIONS[name]
