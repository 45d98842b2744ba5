"""SQL-backed persistence gateway for employees and their child records."""

import logging
from typing import Any
from uuid import UUID

import pydantic
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hrms_api.exceptions import (
    ConflictError,
    EmployeeNotFoundError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from hrms_api.models.domain.employee import Employee
from hrms_api.models.dto.employee import (
    ENCRYPTED_EMPLOYEE_FIELDS,
    EmployeeCreate,
    EmployeeLifecycleUpdate,
)
from hrms_api.models.dto.employee_records import RECORD_COLLECTIONS
from hrms_api.protocols import EMPLOYEES, SecretCodec
from hrms_api.repositories.employee_repository import (
    EmployeeRecordRepository,
    EmployeeRepository,
)
from hrms_api.utils.secure_logging import log_error

logger = logging.getLogger(__name__)


def _row_to_dict(instance: Any) -> dict[str, Any]:
    """Convert an ORM instance to a plain dict of its columns."""
    return {attr.key: getattr(instance, attr.key) for attr in inspect(instance).mapper.column_attrs}


class SqlEntityGateway:
    """Validates and writes employees and child records.

    Every call runs in its own session and transaction, so concurrent calls
    from a fan-out commit or fail independently.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        codec: SecretCodec,
    ) -> None:
        self.session_maker = session_maker
        self.codec = codec

    async def create(
        self, collection: str, employee_id: UUID | None, record: dict[str, Any]
    ) -> dict[str, Any]:
        """Validate and insert one record.

        Args:
            collection: ``employees`` or a child collection name
            employee_id: Owning employee, required for child collections
            record: Field values

        Returns:
            Inserted row as a dict, including its id

        Raises:
            ValidationError: If the record fails schema validation
            ConflictError: If a unique constraint is violated
            PersistenceError: If the database write fails
        """
        if collection == EMPLOYEES:
            data = self._prepare_employee(EmployeeCreate, record, partial=False)
        else:
            if employee_id is None:
                raise ValidationError(
                    f"Cannot create {collection} record without an employee",
                    {"employee_id": "Field required"},
                )
            data = self._validate_record(collection, record)
            data["employee_id"] = employee_id

        async with self.session_maker() as session:
            repo = self._repository(session, collection)
            try:
                instance = await repo.create(**data)
                row = _row_to_dict(instance)
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise ConflictError(
                    f"{collection} record conflicts with existing data",
                    {"collection": collection},
                ) from e
            except SQLAlchemyError as e:
                await session.rollback()
                log_error(logger, f"Failed to insert {collection} record", e)
                raise PersistenceError(f"Failed to save {collection} record") from e
        return row

    async def update(self, collection: str, record_id: UUID, fields: dict[str, Any]) -> dict[str, Any]:
        """Validate and apply a partial update.

        Raises:
            NotFoundError: If the record does not exist
            ValidationError: If a field fails schema validation
            ConflictError: If a unique constraint is violated
            PersistenceError: If the database write fails
        """
        async with self.session_maker() as session:
            repo = self._repository(session, collection)
            if collection == EMPLOYEES:
                data = self._prepare_employee(EmployeeLifecycleUpdate, fields, partial=True)
            else:
                existing = await repo.get(record_id)
                if existing is None:
                    raise NotFoundError(f"{collection} record not found", {"id": str(record_id)})
                merged = {**_row_to_dict(existing), **fields}
                validated = self._validate_record(collection, merged)
                data = {key: validated[key] for key in fields if key in validated}

            try:
                instance = await repo.update(record_id, **data)
                if instance is None:
                    if collection == EMPLOYEES:
                        raise EmployeeNotFoundError(str(record_id))
                    raise NotFoundError(f"{collection} record not found", {"id": str(record_id)})
                row = _row_to_dict(instance)
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise ConflictError(
                    f"{collection} record conflicts with existing data",
                    {"collection": collection},
                ) from e
            except SQLAlchemyError as e:
                await session.rollback()
                log_error(logger, f"Failed to update {collection} record", e)
                raise PersistenceError(f"Failed to update {collection} record") from e
        return row

    async def get(self, employee_id: UUID) -> Employee | None:
        """Load an employee by id."""
        async with self.session_maker() as session:
            instance = await EmployeeRepository(session).get(employee_id)
            if instance is None:
                return None
            return Employee.model_validate(instance)

    def _repository(self, session: AsyncSession, collection: str) -> Any:
        if collection == EMPLOYEES:
            return EmployeeRepository(session)
        return EmployeeRecordRepository(session, collection)

    def _prepare_employee(
        self, dto: type[pydantic.BaseModel], record: dict[str, Any], partial: bool
    ) -> dict[str, Any]:
        try:
            model = dto.model_validate(record)
        except pydantic.ValidationError as e:
            raise ValidationError.from_pydantic(e, "Employee validation failed") from e

        if partial:
            data = model.model_dump(exclude_unset=True)
        else:
            data = {key: value for key, value in model.model_dump().items() if value is not None}

        if data.get("work_email"):
            data["work_email"] = data["work_email"].lower()
        for field in ENCRYPTED_EMPLOYEE_FIELDS:
            if data.get(field):
                data[field] = self.codec.encrypt(data[field])
        return data

    def _validate_record(self, collection: str, record: dict[str, Any]) -> dict[str, Any]:
        declaration = RECORD_COLLECTIONS.get(collection)
        if declaration is None:
            raise ValidationError(
                f"Unknown record collection '{collection}'",
                {"collection": "Unknown collection"},
            )
        # Columns owned by the database are not part of the DTO
        payload = {
            key: value
            for key, value in record.items()
            if key not in ("id", "employee_id", "created_at", "updated_at")
        }
        try:
            model = declaration.dto.model_validate(payload)
        except pydantic.ValidationError as e:
            raise ValidationError.from_pydantic(e, f"{collection} record validation failed") from e
        return model.model_dump()
