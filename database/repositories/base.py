"""
Base repository with common CRUD operations.

Provides a generic base class for all repositories to reduce code duplication,
plus the exactly-one-row check used by every targeted write.
"""
from typing import Any, TypeVar, Generic, Optional, List, Sequence, Type
from abc import ABC

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import RowCountError
from database.base import Base

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(ABC, Generic[ModelType]):
    """
    Abstract base repository with common operations.

    Provides:
    - get_by_id: Get single entity by ID
    - get_all: Get all entities with optional limit
    - fingerprint: Table summary for change detection
    - exists: Check if entity exists by ID
    - expect_single_row: Enforce the exactly-one-row write contract

    Usage:
        class CouponRepository(BaseRepository[Coupon]):
            model_class = Coupon

            async def list_working(self):
                # Custom method
                ...
    """

    model_class: Type[ModelType]

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session

    async def get_by_id(self, entity_id: int) -> Optional[ModelType]:
        """
        Get entity by its primary key ID.

        Args:
            entity_id: Primary key ID

        Returns:
            Entity or None if not found
        """
        result = await self.session.execute(
            select(self.model_class).where(self.model_class.id == entity_id)
        )
        return result.scalar_one_or_none()

    async def get_all(self, limit: Optional[int] = None) -> List[ModelType]:
        """
        Get all entities.

        Args:
            limit: Optional maximum number of results

        Returns:
            List of entities
        """
        query = select(self.model_class)
        if limit:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    def fingerprint_columns(self) -> list[Any]:
        """Aggregates that move when rows are added or removed."""
        return [func.count(self.model_class.id), func.max(self.model_class.id)]

    async def fingerprint(self) -> tuple[Any, ...]:
        """
        Cheap summary of the whole table, compared between polls to detect
        writes made by other processes.
        """
        result = await self.session.execute(select(*self.fingerprint_columns()))
        return tuple(result.one())

    async def exists(self, entity_id: int) -> bool:
        """Check if entity exists by ID."""
        result = await self.session.execute(
            select(func.count(self.model_class.id)).where(
                self.model_class.id == entity_id
            )
        )
        return (result.scalar() or 0) > 0

    def expect_single_row(self, rows: Sequence[Any], action: str) -> Any:
        """
        Return the only row of a ``RETURNING`` write.

        Args:
            rows: Rows returned by the statement
            action: Short verb for the diagnostic ("update", "delete")

        Raises:
            RowCountError: zero or more than one row was affected
        """
        if len(rows) != 1:
            raise RowCountError(self.model_class.__tablename__, action, len(rows))
        return rows[0]
