"""Repositories package."""

from hrms_api.repositories.base import BaseRepository
from hrms_api.repositories.employee_repository import (
    EmployeeRecordRepository,
    EmployeeRepository,
)
from hrms_api.repositories.entity_gateway import SqlEntityGateway
from hrms_api.repositories.form_repository import (
    FormSubmissionRepository,
    FormTemplateRepository,
)
from hrms_api.repositories.invitation_repository import InvitationRepository
from hrms_api.repositories.stores import SqlFormStore, SqlInvitationStore

__all__ = [
    "BaseRepository",
    "EmployeeRecordRepository",
    "EmployeeRepository",
    "FormSubmissionRepository",
    "FormTemplateRepository",
    "InvitationRepository",
    "SqlEntityGateway",
    "SqlFormStore",
    "SqlInvitationStore",
]
