"""
Base repository class with common database operations.

This module provides the foundation for all repository classes. Every query
goes through `_execute`, which turns SQLAlchemy failures into DataStoreError
so callers see one failure kind for an unreachable store.
"""
from typing import Any, Generic, Sequence, Type, TypeVar

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Executable

from lumidex.core.exceptions import DataStoreError
from lumidex.db.base import Base

logger = structlog.get_logger()

# Type variable for generic repository
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository implementing common database operations.

    Usage:
        class CardRepository(BaseRepository[Card]):
            def __init__(self, db: AsyncSession):
                super().__init__(Card, db)

            async def card_exists(self, card_id: str) -> bool:
                return await self.exists(card_id=card_id)
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize the repository.

        Args:
            model: SQLAlchemy model class this repository manages
            db: Async database session
        """
        self.model = model
        self.db = db

    async def _execute(self, query: Executable) -> Any:
        """Execute a statement, wrapping driver errors in DataStoreError."""
        try:
            return await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error(
                "Data store query failed",
                model=self.model.__name__,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise DataStoreError(f"{self.model.__name__} query failed: {e}") from e

    async def find_by(self, **kwargs: Any) -> Sequence[ModelType]:
        """
        Find records by arbitrary column values, ordered by id.

        Args:
            **kwargs: Column name/value pairs to filter by

        Returns:
            Sequence of model instances
        """
        query = select(self.model)
        for key, value in kwargs.items():
            if hasattr(self.model, key):
                query = query.where(getattr(self.model, key) == value)
        result = await self._execute(query.order_by(self.model.id))
        return result.scalars().all()

    async def count(self, **kwargs: Any) -> int:
        """
        Count records, optionally filtered by column values.

        Args:
            **kwargs: Column name/value pairs to filter by

        Returns:
            Number of matching records
        """
        query = select(func.count()).select_from(self.model)
        for key, value in kwargs.items():
            if hasattr(self.model, key):
                query = query.where(getattr(self.model, key) == value)
        result = await self._execute(query)
        return result.scalar() or 0

    async def exists(self, **kwargs: Any) -> bool:
        """
        Check if any record exists matching the criteria.

        Args:
            **kwargs: Column name/value pairs to filter by

        Returns:
            True if at least one matching record exists
        """
        return await self.count(**kwargs) > 0

    async def bulk_create(self, items: list[dict[str, Any]]) -> list[ModelType]:
        """
        Create multiple records in a batch.

        Args:
            items: List of dictionaries with column values

        Returns:
            List of created model instances
        """
        instances = [self.model(**item) for item in items]
        self.db.add_all(instances)
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            logger.error(
                "Data store write failed",
                model=self.model.__name__,
                count=len(instances),
                error=str(e),
            )
            raise DataStoreError(f"{self.model.__name__} write failed: {e}") from e
        return instances
