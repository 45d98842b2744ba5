"""Data Transfer Objects package."""

from hrms_api.models.dto.employee import (
    EmployeeCreate,
    EmployeeLifecycleUpdate,
    EmployeeUpdate,
    updatable_employee_fields,
)
from hrms_api.models.dto.invitation import InvitationCreate
from hrms_api.models.dto.employee_records import (
    CLIENT_ONLY_FIELDS,
    RECORD_COLLECTIONS,
    RecordCollection,
    get_collection,
)

__all__ = [
    "CLIENT_ONLY_FIELDS",
    "EmployeeCreate",
    "EmployeeLifecycleUpdate",
    "EmployeeUpdate",
    "InvitationCreate",
    "RECORD_COLLECTIONS",
    "RecordCollection",
    "get_collection",
    "updatable_employee_fields",
]
