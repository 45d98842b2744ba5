"""Base repository with common database operations."""

from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrms_api.models.orm.base import Base

T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """Base repository with lookup, insert and column-wise update.

    Repositories never commit; the caller owns the transaction.
    """

    model: type[T]

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session."""
        self.session = session

    async def get(self, id: UUID) -> T | None:
        """Get a record by primary key."""
        return await self.session.get(self.model, id)

    async def get_by(self, column: str, value: Any) -> T | None:
        """Get the single record whose unique ``column`` equals ``value``.

        Args:
            column: Name of a unique column
            value: Value to match

        Returns:
            Record or None if not found
        """
        result = await self.session.execute(
            select(self.model).where(getattr(self.model, column) == value)
        )
        return result.scalar_one_or_none()

    async def create(self, **kwargs: Any) -> T:
        """Insert a record and load its server-side defaults.

        Args:
            **kwargs: Column values

        Returns:
            Created record
        """
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def apply(self, instance: T, **kwargs: Any) -> T:
        """Write column values onto a loaded record.

        Keys that are not mapped columns are ignored.

        Returns:
            The refreshed record
        """
        columns = {attr.key for attr in inspect(self.model).column_attrs}
        for key, value in kwargs.items():
            if key in columns:
                setattr(instance, key, value)

        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def update(self, id: UUID, **kwargs: Any) -> T | None:
        """Update a record by primary key.

        Returns:
            Updated record or None if not found
        """
        instance = await self.get(id)
        if instance is None:
            return None
        return await self.apply(instance, **kwargs)
