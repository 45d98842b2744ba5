"""Domain-specific exceptions for the HR records API.

Every error carries a human-readable message and a machine-checkable code so
callers can branch on the failure kind without string matching.
"""

from typing import Any


class HRMSError(Exception):
    """Base exception for all HR records errors."""

    code: str = "INTERNAL_ERROR"
    status_code: int = 500

    def __init__(self, message: str = "An error occurred", details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Render the error for API consumers."""
        payload: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


# =============================================================================
# Resource Not Found Errors (404)
# =============================================================================


class NotFoundError(HRMSError):
    """Base class for resource not found errors."""

    code = "NOT_FOUND"
    status_code = 404


class EmployeeNotFoundError(NotFoundError):
    """Raised when an employee cannot be found."""

    def __init__(self, employee_id: str | None = None) -> None:
        message = "Employee not found"
        details = {"employee_id": str(employee_id)} if employee_id else {}
        super().__init__(message, details)


class TemplateNotFoundError(NotFoundError):
    """Raised when a form template cannot be found."""

    code = "TEMPLATE_NOT_FOUND"

    def __init__(self, template_id: str | int | None = None) -> None:
        message = "Form template not found"
        details = {"template_id": str(template_id)} if template_id is not None else {}
        super().__init__(message, details)


class SubmissionNotFoundError(NotFoundError):
    """Raised when a form submission cannot be found."""

    def __init__(self, submission_id: str | None = None) -> None:
        message = "Form submission not found"
        details = {"submission_id": str(submission_id)} if submission_id else {}
        super().__init__(message, details)


class InvitationNotFoundError(NotFoundError):
    """Raised when an onboarding invitation cannot be found."""

    def __init__(self, invitation_id: str | None = None) -> None:
        message = "Invitation not found"
        details = {"invitation_id": str(invitation_id)} if invitation_id else {}
        super().__init__(message, details)


# =============================================================================
# Validation Errors (400)
# =============================================================================


class ValidationError(HRMSError):
    """Raised when input fails schema validation.

    ``field_errors`` maps each offending field to a message.
    """

    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: dict[str, str] | None = None,
    ) -> None:
        self.field_errors = field_errors or {}
        details = {"fields": self.field_errors} if self.field_errors else {}
        super().__init__(message, details)

    @classmethod
    def from_pydantic(cls, error: Any, message: str = "Validation failed") -> "ValidationError":
        """Build from a ``pydantic.ValidationError``, one entry per failing field."""
        field_errors: dict[str, str] = {}
        for item in error.errors():
            field = ".".join(str(part) for part in item.get("loc", ())) or "__root__"
            field_errors.setdefault(field, item.get("msg", "Invalid value"))
        return cls(message, field_errors)


class InvalidRequestError(HRMSError):
    """Raised when a request cannot be fulfilled as stated."""

    code = "INVALID_REQUEST"
    status_code = 400


class InvalidStateTransitionError(InvalidRequestError):
    """Raised when an entity is not in a state that permits the operation."""

    code = "INVALID_STATE"
    status_code = 409

    def __init__(self, entity: str, current: str, operation: str) -> None:
        message = f"Cannot {operation} {entity} in status '{current}'"
        super().__init__(message, {"entity": entity, "status": current, "operation": operation})


class InvitationExpiredError(InvalidStateTransitionError):
    """Raised when an expired invitation is used."""

    code = "INVITATION_EXPIRED"
    status_code = 410

    def __init__(self, invitation_id: str | None = None) -> None:
        super().__init__("invitation", "expired", "use")
        if invitation_id:
            self.details["invitation_id"] = str(invitation_id)


# =============================================================================
# Conflict Errors (409)
# =============================================================================


class ConflictError(HRMSError):
    """Raised when a write conflicts with existing data."""

    code = "CONFLICT"
    status_code = 409


# =============================================================================
# Partial Failure (207)
# =============================================================================


class PartialFailureError(HRMSError):
    """Raised when an employee was created but some child records were not.

    Nothing is rolled back. ``employee`` is the persisted parent, ``succeeded``
    lists the child records that were written and ``failures`` has one entry
    per item that was not, identified by collection name and 0-based index.
    """

    code = "PARTIAL_FAILURE"
    status_code = 207

    def __init__(
        self,
        employee: Any,
        succeeded: list[dict[str, Any]],
        failures: list[dict[str, Any]],
    ) -> None:
        self.employee = employee
        self.succeeded = succeeded
        self.failures = failures
        collections = sorted({failure["collection"] for failure in failures})
        message = (
            f"Employee saved, but {len(failures)} related record(s) failed "
            f"in: {', '.join(collections)}"
        )
        super().__init__(message, {"failures": failures})


# =============================================================================
# Authorization / Upstream Errors
# =============================================================================


class UnauthorizedError(HRMSError):
    """Raised when an upstream provider rejects our credentials."""

    code = "UNAUTHORIZED"
    status_code = 401


class ServiceUnavailableError(HRMSError):
    """Raised when a required integration is not configured or reachable."""

    code = "SERVICE_UNAVAILABLE"
    status_code = 503


class DocumentProviderError(HRMSError):
    """Raised when the e-signature provider fails a request."""

    code = "DOCUSEAL_ERROR"
    status_code = 503

    def __init__(
        self,
        message: str = "Document provider request failed",
        details: dict[str, Any] | None = None,
        upstream_status: int | None = None,
    ) -> None:
        self.upstream_status = upstream_status
        super().__init__(message, details)


class NotificationDeliveryError(HRMSError):
    """Raised when an e-mail cannot be delivered."""

    code = "EMAIL_DELIVERY_FAILED"
    status_code = 502


class StorageError(HRMSError):
    """Raised when the object store cannot complete an operation."""

    code = "STORAGE_ERROR"
    status_code = 502


class PersistenceError(HRMSError):
    """Raised when the database cannot complete a write."""

    code = "PERSISTENCE_ERROR"
    status_code = 500


class InternalError(HRMSError):
    """Raised for unexpected failures."""

    code = "INTERNAL_ERROR"
    status_code = 500
