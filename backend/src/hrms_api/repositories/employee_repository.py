"""Employee and employee record repositories."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from hrms_api.models.orm.base import Base
from hrms_api.models.orm.employee import EmployeeORM
from hrms_api.models.orm.employee_records import RECORD_MODELS
from hrms_api.repositories.base import BaseRepository


class EmployeeRepository(BaseRepository[EmployeeORM]):
    """Repository for employee operations."""

    model = EmployeeORM


class EmployeeRecordRepository(BaseRepository[Any]):
    """Repository for one child record collection.

    The ORM model is chosen by collection name at construction time.
    """

    def __init__(self, session: AsyncSession, collection: str) -> None:
        """Initialize repository for ``collection``.

        Raises:
            KeyError: If the collection is unknown
        """
        super().__init__(session)
        self.collection = collection
        self.model: type[Base] = RECORD_MODELS[collection]
