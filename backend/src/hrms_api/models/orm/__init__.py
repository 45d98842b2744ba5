"""SQLAlchemy ORM models package."""

from hrms_api.models.orm.base import Base
from hrms_api.models.orm.employee import EmployeeORM
from hrms_api.models.orm.employee_records import RECORD_MODELS
from hrms_api.models.orm.form_submission import FormSubmissionORM
from hrms_api.models.orm.form_template import DocusealTemplateORM
from hrms_api.models.orm.invitation import EmployeeInvitationORM

__all__ = [
    "Base",
    "DocusealTemplateORM",
    "EmployeeInvitationORM",
    "EmployeeORM",
    "FormSubmissionORM",
    "RECORD_MODELS",
]
