"""Creation and update of an employee together with its child records."""

import asyncio
import logging
from typing import Any
from uuid import UUID

from hrms_api.exceptions import EmployeeNotFoundError, HRMSError, PartialFailureError, ValidationError
from hrms_api.models.domain.employee import Employee, OnboardingStatus
from hrms_api.models.dto.employee import updatable_employee_fields
from hrms_api.models.dto.employee_records import CLIENT_ONLY_FIELDS, RECORD_COLLECTIONS
from hrms_api.protocols import EMPLOYEES, EntityGateway
from hrms_api.utils.dates import normalize_date_fields

logger = logging.getLogger(__name__)


def prepare_child_record(collection: str, item: dict[str, Any]) -> dict[str, Any]:
    """Strip client-only keys and normalize declared date fields.

    Raises:
        ValidationError: If the collection is unknown or a date is malformed
    """
    declaration = RECORD_COLLECTIONS.get(collection)
    if declaration is None:
        raise ValidationError(
            f"Unknown record collection '{collection}'",
            {"collection": "Unknown collection"},
        )
    record = {key: value for key, value in item.items() if key not in CLIENT_ONLY_FIELDS}
    try:
        return normalize_date_fields(record, declaration.date_fields)
    except ValueError as e:
        raise ValidationError(f"Invalid date in {collection} record", {"date": str(e)}) from e


def _failure_entry(collection: str, index: int, error: BaseException) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "collection": collection,
        "index": index,
        "reason": error.message if isinstance(error, HRMSError) else "Unexpected error",
        "code": error.code if isinstance(error, HRMSError) else "INTERNAL_ERROR",
    }
    if isinstance(error, ValidationError) and error.field_errors:
        entry["fields"] = error.field_errors
    return entry


def _compact(fields: dict[str, Any]) -> dict[str, Any]:
    """Drop None and empty-string values from a partial draft."""
    return {key: value for key, value in fields.items() if value is not None and value != ""}


class EmployeeAggregateSubmitter:
    """Writes an employee and its child collections as one user operation.

    The parent is always written first. Children are then written
    concurrently, one gateway call per item, and every call is allowed to
    finish. Failed children are reported, successful ones are kept.
    """

    def __init__(self, gateway: EntityGateway) -> None:
        self.gateway = gateway
        self._updatable = updatable_employee_fields()

    async def create_with_children(
        self,
        employee_fields: dict[str, Any],
        child_collections: dict[str, list[dict[str, Any]]] | None = None,
    ) -> Employee:
        """Create an employee and all non-empty child collections.

        Args:
            employee_fields: Employee column values
            child_collections: Collection name -> list of items

        Returns:
            The created employee

        Raises:
            ValidationError: If the employee itself is rejected (no child is attempted)
            PartialFailureError: If the employee was created but some children were not
        """
        row = await self.gateway.create(EMPLOYEES, None, employee_fields)
        employee = Employee.model_validate(row)
        logger.info(f"Created employee {employee.id}")

        if child_collections:
            await self.create_children(employee.id, child_collections, employee=employee)
        return employee

    async def create_children(
        self,
        employee_id: UUID,
        child_collections: dict[str, list[dict[str, Any]]],
        employee: Employee | None = None,
    ) -> list[dict[str, Any]]:
        """Create child records for an existing employee.

        Returns:
            The created child records

        Raises:
            PartialFailureError: If any item failed
        """
        jobs: list[tuple[str, int]] = []
        calls = []
        for collection, items in child_collections.items():
            for index, item in enumerate(items or []):
                jobs.append((collection, index))
                calls.append(self._create_child(collection, employee_id, item))

        if not calls:
            return []

        results = await asyncio.gather(*calls, return_exceptions=True)

        succeeded: list[dict[str, Any]] = []
        failures: list[dict[str, Any]] = []
        for (collection, index), result in zip(jobs, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                if not isinstance(result, HRMSError):
                    logger.exception(
                        f"Unexpected error saving {collection}[{index}]", exc_info=result
                    )
                failures.append(_failure_entry(collection, index, result))
            else:
                succeeded.append({"collection": collection, "index": index, "record": result})

        if failures:
            logger.warning(
                f"Employee {employee_id}: {len(failures)} of {len(jobs)} related records failed"
            )
            raise PartialFailureError(employee or employee_id, succeeded, failures)

        return [entry["record"] for entry in succeeded]

    async def _create_child(
        self, collection: str, employee_id: UUID, item: dict[str, Any]
    ) -> dict[str, Any]:
        record = prepare_child_record(collection, item)
        return await self.gateway.create(collection, employee_id, record)

    async def update_scalar_fields(
        self,
        employee_id: UUID,
        fields: dict[str, Any],
        writable: frozenset[str] | None = None,
    ) -> Employee:
        """Update an employee's own columns.

        Keys outside ``writable`` (by default every updatable employee column)
        are dropped and never written.

        Raises:
            EmployeeNotFoundError: If the employee does not exist
            ValidationError: If a value is rejected
        """
        if writable is None:
            writable = self._updatable
        allowed = {key: value for key, value in fields.items() if key in writable}
        dropped = sorted(set(fields) - set(allowed))
        if dropped:
            logger.debug(f"Ignoring non-updatable employee fields: {', '.join(dropped)}")
        if not allowed:
            employee = await self.gateway.get(employee_id)
            if employee is None:
                raise EmployeeNotFoundError(str(employee_id))
            return employee
        row = await self.gateway.update(EMPLOYEES, employee_id, allowed)
        return Employee.model_validate(row)

    def draft_session(
        self,
        employee_id: UUID | None = None,
        writable: frozenset[str] | None = None,
        initial: dict[str, Any] | None = None,
    ) -> "DraftSession":
        """Start a draft-save session, optionally resuming an existing draft.

        Args:
            employee_id: Existing draft to resume
            writable: Employee columns the draft owner may set
            initial: Values written by the first create only
        """
        return DraftSession(self, employee_id, writable, initial)


class DraftSession:
    """Incremental onboarding saves that create once and update afterwards.

    The employee id is assigned by the first successful save and never
    changes. Saves are serialized, so two overlapping first saves produce a
    single employee. With ``writable`` set, other keys are dropped from every
    save, including the first.
    """

    def __init__(
        self,
        submitter: EmployeeAggregateSubmitter,
        employee_id: UUID | None = None,
        writable: frozenset[str] | None = None,
        initial: dict[str, Any] | None = None,
    ) -> None:
        self._submitter = submitter
        self._employee_id = employee_id
        self._writable = writable
        self._initial = initial or {}
        self._lock = asyncio.Lock()

    @property
    def employee_id(self) -> UUID | None:
        return self._employee_id

    async def save(self, employee_fields: dict[str, Any]) -> dict[str, UUID]:
        """Save the draft.

        Returns:
            ``{"employee_id": ...}``
        """
        fields = _compact(employee_fields)
        if self._writable is not None:
            dropped = sorted(set(fields) - self._writable)
            if dropped:
                logger.debug(f"Ignoring non-writable draft fields: {', '.join(dropped)}")
            fields = {key: value for key, value in fields.items() if key in self._writable}
        async with self._lock:
            if self._employee_id is None:
                fields = {**fields, **self._initial}
                fields.setdefault("onboarding_status", OnboardingStatus.DRAFT)
                row = await self._submitter.gateway.create(EMPLOYEES, None, fields)
                self._employee_id = Employee.model_validate(row).id
                logger.info(f"Created draft employee {self._employee_id}")
            else:
                await self._submitter.update_scalar_fields(
                    self._employee_id, fields, self._writable
                )
        return {"employee_id": self._employee_id}
