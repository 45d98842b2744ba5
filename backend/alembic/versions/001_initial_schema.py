"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def _employee_fk() -> sa.Column:
    return sa.Column("employee_id", postgresql.UUID(as_uuid=True), nullable=False)


def _record_tables() -> dict[str, list[sa.Column]]:
    """Child record tables: name -> columns besides id, employee_id and timestamps."""
    return {
        "educations": [
            sa.Column("education_type", sa.String(50), nullable=True),
            sa.Column("school_institution", sa.String(255), nullable=True),
            sa.Column("degree", sa.String(100), nullable=True),
            sa.Column("specialty_major", sa.String(100), nullable=True),
            sa.Column("start_date", sa.Date(), nullable=True),
            sa.Column("end_date", sa.Date(), nullable=True),
        ],
        "employments": [
            sa.Column("employer", sa.String(255), nullable=True),
            sa.Column("position", sa.String(100), nullable=True),
            sa.Column("start_date", sa.Date(), nullable=True),
            sa.Column("end_date", sa.Date(), nullable=True),
            sa.Column("description", sa.Text(), nullable=True),
        ],
        "peer_references": [
            sa.Column("reference_name", sa.String(255), nullable=True),
            sa.Column("contact_info", sa.String(255), nullable=True),
            sa.Column("relationship", sa.String(100), nullable=True),
            sa.Column("comments", sa.Text(), nullable=True),
        ],
        "state_licenses": [
            sa.Column("license_number", sa.String(50), nullable=False),
            sa.Column("state", sa.String(50), nullable=False),
            sa.Column("issue_date", sa.Date(), nullable=True),
            sa.Column("expiration_date", sa.Date(), nullable=True),
            sa.Column("status", sa.String(50), nullable=True),
        ],
        "dea_licenses": [
            sa.Column("license_number", sa.String(50), nullable=False),
            sa.Column("issue_date", sa.Date(), nullable=True),
            sa.Column("expiration_date", sa.Date(), nullable=True),
            sa.Column("status", sa.String(50), nullable=True),
        ],
        "board_certifications": [
            sa.Column("board_name", sa.String(255), nullable=True),
            sa.Column("certification", sa.String(255), nullable=True),
            sa.Column("issue_date", sa.Date(), nullable=True),
            sa.Column("expiration_date", sa.Date(), nullable=True),
            sa.Column("status", sa.String(50), nullable=True),
        ],
        "emergency_contacts": [
            sa.Column("name", sa.String(255), nullable=False),
            sa.Column("relationship", sa.String(100), nullable=True),
            sa.Column("phone", sa.String(30), nullable=False),
            sa.Column("email", sa.String(255), nullable=True),
        ],
        "tax_forms": [
            sa.Column("form_type", sa.String(50), nullable=False),
            sa.Column("file_path", sa.String(500), nullable=True),
            sa.Column("status", sa.String(50), nullable=True),
            sa.Column("submitted_date", sa.Date(), nullable=True),
        ],
        "trainings": [
            sa.Column("training_type", sa.String(100), nullable=False),
            sa.Column("provider", sa.String(255), nullable=True),
            sa.Column("completion_date", sa.Date(), nullable=True),
            sa.Column("expiration_date", sa.Date(), nullable=True),
            sa.Column("credits", sa.Numeric(6, 2), nullable=True),
            sa.Column("certificate_path", sa.String(500), nullable=True),
        ],
        "payer_enrollments": [
            sa.Column("payer_name", sa.String(255), nullable=False),
            sa.Column("enrollment_id", sa.String(100), nullable=True),
            sa.Column("enrollment_date", sa.Date(), nullable=True),
            sa.Column("effective_date", sa.Date(), nullable=True),
            sa.Column("termination_date", sa.Date(), nullable=True),
            sa.Column("status", sa.String(50), nullable=True),
        ],
        "incident_logs": [
            sa.Column("incident_date", sa.Date(), nullable=False),
            sa.Column("description", sa.Text(), nullable=False),
            sa.Column("resolution", sa.Text(), nullable=True),
            sa.Column("reported_by", sa.String(255), nullable=True),
        ],
    }


def upgrade() -> None:
    # Create employees table
    op.create_table(
        "employees",
        _id(),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("middle_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("gender", sa.String(50), nullable=True),
        sa.Column("birth_city", sa.String(100), nullable=True),
        sa.Column("birth_state", sa.String(50), nullable=True),
        sa.Column("birth_country", sa.String(100), nullable=True),
        sa.Column("personal_email", sa.String(255), nullable=True),
        sa.Column("work_email", sa.String(255), nullable=True),
        sa.Column("cell_phone", sa.String(30), nullable=True),
        sa.Column("work_phone", sa.String(30), nullable=True),
        sa.Column("home_address1", sa.String(255), nullable=True),
        sa.Column("home_address2", sa.String(255), nullable=True),
        sa.Column("home_city", sa.String(100), nullable=True),
        sa.Column("home_state", sa.String(50), nullable=True),
        sa.Column("home_zip", sa.String(20), nullable=True),
        sa.Column("drivers_license_number", sa.String(50), nullable=True),
        sa.Column("dl_state_issued", sa.String(50), nullable=True),
        sa.Column("dl_issue_date", sa.Date(), nullable=True),
        sa.Column("dl_expiration_date", sa.Date(), nullable=True),
        sa.Column("ssn", sa.Text(), nullable=True),
        sa.Column("npi_number", sa.String(10), nullable=True),
        sa.Column("enumeration_date", sa.Date(), nullable=True),
        sa.Column("job_title", sa.String(100), nullable=True),
        sa.Column("work_location", sa.String(100), nullable=True),
        sa.Column("qualification", sa.String(100), nullable=True),
        sa.Column("medical_license_number", sa.String(50), nullable=True),
        sa.Column("substance_use_license_number", sa.String(50), nullable=True),
        sa.Column("substance_use_qualification", sa.String(100), nullable=True),
        sa.Column("mental_health_license_number", sa.String(50), nullable=True),
        sa.Column("mental_health_qualification", sa.String(100), nullable=True),
        sa.Column("medicaid_number", sa.String(50), nullable=True),
        sa.Column("medicare_ptan_number", sa.String(50), nullable=True),
        sa.Column("caqh_provider_id", sa.String(50), nullable=True),
        sa.Column("caqh_issue_date", sa.Date(), nullable=True),
        sa.Column("caqh_last_attestation_date", sa.Date(), nullable=True),
        sa.Column("caqh_enabled", sa.Boolean(), default=False, nullable=False),
        sa.Column("caqh_reattestation_due_date", sa.Date(), nullable=True),
        sa.Column("caqh_login_id", sa.String(100), nullable=True),
        sa.Column("caqh_password", sa.Text(), nullable=True),
        sa.Column("nppes_login_id", sa.String(100), nullable=True),
        sa.Column("nppes_password", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("onboarding_status", sa.String(20), nullable=True),
        sa.Column("invitation_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("approved_by", sa.String(255), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("work_email"),
    )
    op.create_index("idx_employees_work_email", "employees", ["work_email"])
    op.create_index("idx_employees_status", "employees", ["status"])
    op.create_index("idx_employees_onboarding_status", "employees", ["onboarding_status"])
    op.create_index("idx_employees_invitation_id", "employees", ["invitation_id"], unique=True)

    # Create employee_invitations table
    op.create_table(
        "employee_invitations",
        _id(),
        sa.Column("token", sa.String(128), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("job_title", sa.String(100), nullable=True),
        sa.Column(
            "required_form_templates",
            postgresql.JSONB(),
            server_default=sa.text("'[]'::jsonb"),
            nullable=False,
        ),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("invited_by", sa.String(255), nullable=True),
        sa.Column("invited_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reminder_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("last_reminder_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("employee_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("registered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_by", sa.String(255), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_by", sa.String(255), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token"),
    )
    op.create_index("idx_invitations_email", "employee_invitations", ["email"])
    op.create_index("idx_invitations_status", "employee_invitations", ["status"])

    # employees.invitation_id closes the cycle with employee_invitations
    op.create_foreign_key(
        "fk_employees_invitation_id",
        "employees",
        "employee_invitations",
        ["invitation_id"],
        ["id"],
        ondelete="SET NULL",
    )

    # Create child record tables
    for table_name, columns in _record_tables().items():
        op.create_table(
            table_name,
            _id(),
            _employee_fk(),
            *columns,
            *_timestamps(),
            sa.ForeignKeyConstraint(["employee_id"], ["employees.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(f"ix_{table_name}_employee_id", table_name, ["employee_id"])

    # Create docuseal_templates table
    op.create_table(
        "docuseal_templates",
        _id(),
        sa.Column("template_id", sa.String(100), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("fields", postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column(
            "signer_roles", postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False
        ),
        sa.Column("document_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("enabled", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("required_for_onboarding", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("requires_hr_signature", sa.Boolean(), nullable=True),
        sa.Column("sort_order", sa.Integer(), server_default="0", nullable=False),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("template_id"),
    )

    # Create form_submissions table
    op.create_table(
        "form_submissions",
        _id(),
        sa.Column("submission_id", sa.String(100), nullable=False),
        _employee_fk(),
        sa.Column("template_id", sa.String(100), nullable=False),
        sa.Column("invitation_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("is_onboarding_requirement", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("recipient_email", sa.String(255), nullable=False),
        sa.Column("recipient_name", sa.String(255), nullable=True),
        sa.Column("recipient_phone", sa.String(30), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("opened_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("documents_url", sa.String(1000), nullable=True),
        sa.Column("storage_key", sa.String(500), nullable=True),
        sa.Column(
            "submission_data", postgresql.JSONB(), server_default=sa.text("'{}'::jsonb"), nullable=False
        ),
        sa.Column("reminders_sent", sa.Integer(), server_default="0", nullable=False),
        sa.Column("last_reminder_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("next_reminder_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["invitation_id"], ["employee_invitations.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("submission_id"),
    )
    op.create_index("idx_form_submissions_employee_id", "form_submissions", ["employee_id"])
    op.create_index("idx_form_submissions_invitation_id", "form_submissions", ["invitation_id"])
    op.create_index("idx_form_submissions_status", "form_submissions", ["status"])


def downgrade() -> None:
    op.drop_table("form_submissions")
    op.drop_table("docuseal_templates")
    for table_name in reversed(list(_record_tables())):
        op.drop_table(table_name)
    op.drop_constraint("fk_employees_invitation_id", "employees", type_="foreignkey")
    op.drop_table("employee_invitations")
    op.drop_table("employees")
