"""Employee ORM model."""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from hrms_api.models.orm.base import Base, TimestampMixin, UUIDMixin


class EmployeeORM(Base, UUIDMixin, TimestampMixin):
    """Employee database model.

    ``ssn``, ``caqh_password`` and ``nppes_password`` store encryption tokens.
    """

    __tablename__ = "employees"

    # Identity
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    middle_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(50), nullable=True)
    birth_city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    birth_state: Mapped[str | None] = mapped_column(String(50), nullable=True)
    birth_country: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Contact
    personal_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    work_email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    cell_phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    work_phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    home_address1: Mapped[str | None] = mapped_column(String(255), nullable=True)
    home_address2: Mapped[str | None] = mapped_column(String(255), nullable=True)
    home_city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    home_state: Mapped[str | None] = mapped_column(String(50), nullable=True)
    home_zip: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Identification
    drivers_license_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    dl_state_issued: Mapped[str | None] = mapped_column(String(50), nullable=True)
    dl_issue_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    dl_expiration_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    ssn: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Professional
    npi_number: Mapped[str | None] = mapped_column(String(10), nullable=True)
    enumeration_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    job_title: Mapped[str | None] = mapped_column(String(100), nullable=True)
    work_location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    qualification: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Credentials
    medical_license_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    substance_use_license_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    substance_use_qualification: Mapped[str | None] = mapped_column(String(100), nullable=True)
    mental_health_license_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    mental_health_qualification: Mapped[str | None] = mapped_column(String(100), nullable=True)
    medicaid_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    medicare_ptan_number: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # CAQH / NPPES
    caqh_provider_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    caqh_issue_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    caqh_last_attestation_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    caqh_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    caqh_reattestation_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    caqh_login_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    caqh_password: Mapped[str | None] = mapped_column(Text, nullable=True)
    nppes_login_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    nppes_password: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Lifecycle
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    onboarding_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    invitation_id: Mapped[UUID | None] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("employee_invitations.id", ondelete="SET NULL", use_alter=True),
        nullable=True,
    )
    approved_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_employees_work_email", "work_email"),
        Index("idx_employees_status", "status"),
        Index("idx_employees_onboarding_status", "onboarding_status"),
        Index("idx_employees_invitation_id", "invitation_id", unique=True),
    )
