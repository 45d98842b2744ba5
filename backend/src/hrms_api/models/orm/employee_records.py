"""ORM models for the child record collections owned by an employee."""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from hrms_api.models.orm.base import Base, TimestampMixin, UUIDMixin


class EmployeeRecordMixin(UUIDMixin, TimestampMixin):
    """Foreign key to the owning employee. Rows go when the employee goes."""

    employee_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


class EducationORM(Base, EmployeeRecordMixin):
    """Education entry."""

    __tablename__ = "educations"

    education_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    school_institution: Mapped[str | None] = mapped_column(String(255), nullable=True)
    degree: Mapped[str | None] = mapped_column(String(100), nullable=True)
    specialty_major: Mapped[str | None] = mapped_column(String(100), nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)


class EmploymentORM(Base, EmployeeRecordMixin):
    """Previous employment entry."""

    __tablename__ = "employments"

    employer: Mapped[str | None] = mapped_column(String(255), nullable=True)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class PeerReferenceORM(Base, EmployeeRecordMixin):
    """Professional reference."""

    __tablename__ = "peer_references"

    reference_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_info: Mapped[str | None] = mapped_column(String(255), nullable=True)
    relationship: Mapped[str | None] = mapped_column(String(100), nullable=True)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)


class StateLicenseORM(Base, EmployeeRecordMixin):
    """State license."""

    __tablename__ = "state_licenses"

    license_number: Mapped[str] = mapped_column(String(50), nullable=False)
    state: Mapped[str] = mapped_column(String(50), nullable=False)
    issue_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    expiration_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str | None] = mapped_column(String(50), nullable=True)


class DeaLicenseORM(Base, EmployeeRecordMixin):
    """DEA registration."""

    __tablename__ = "dea_licenses"

    license_number: Mapped[str] = mapped_column(String(50), nullable=False)
    issue_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    expiration_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str | None] = mapped_column(String(50), nullable=True)


class BoardCertificationORM(Base, EmployeeRecordMixin):
    """Board certification."""

    __tablename__ = "board_certifications"

    board_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    certification: Mapped[str | None] = mapped_column(String(255), nullable=True)
    issue_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    expiration_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str | None] = mapped_column(String(50), nullable=True)


class EmergencyContactORM(Base, EmployeeRecordMixin):
    """Emergency contact."""

    __tablename__ = "emergency_contacts"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    relationship: Mapped[str | None] = mapped_column(String(100), nullable=True)
    phone: Mapped[str] = mapped_column(String(30), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)


class TaxFormORM(Base, EmployeeRecordMixin):
    """Tax form on file."""

    __tablename__ = "tax_forms"

    form_type: Mapped[str] = mapped_column(String(50), nullable=False)
    file_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    status: Mapped[str | None] = mapped_column(String(50), nullable=True, default="pending")
    submitted_date: Mapped[date | None] = mapped_column(Date, nullable=True)


class TrainingORM(Base, EmployeeRecordMixin):
    """Completed training."""

    __tablename__ = "trainings"

    training_type: Mapped[str] = mapped_column(String(100), nullable=False)
    provider: Mapped[str | None] = mapped_column(String(255), nullable=True)
    completion_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    expiration_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    credits: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
    certificate_path: Mapped[str | None] = mapped_column(String(500), nullable=True)


class PayerEnrollmentORM(Base, EmployeeRecordMixin):
    """Insurance payer enrollment."""

    __tablename__ = "payer_enrollments"

    payer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    enrollment_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    enrollment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    effective_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    termination_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str | None] = mapped_column(String(50), nullable=True)


class IncidentLogORM(Base, EmployeeRecordMixin):
    """Incident log entry."""

    __tablename__ = "incident_logs"

    incident_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    resolution: Mapped[str | None] = mapped_column(Text, nullable=True)
    reported_by: Mapped[str | None] = mapped_column(String(255), nullable=True)


# Collection name -> ORM model
RECORD_MODELS: dict[str, type[Base]] = {
    "educations": EducationORM,
    "employments": EmploymentORM,
    "peer_references": PeerReferenceORM,
    "state_licenses": StateLicenseORM,
    "dea_licenses": DeaLicenseORM,
    "board_certifications": BoardCertificationORM,
    "emergency_contacts": EmergencyContactORM,
    "tax_forms": TaxFormORM,
    "trainings": TrainingORM,
    "payer_enrollments": PayerEnrollmentORM,
    "incident_logs": IncidentLogORM,
}
