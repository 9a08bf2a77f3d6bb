import logging
from abc import ABC
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import AfterCommitAction, Base, after_commit
from core.exceptions import DocumentStoreError

ModelType = TypeVar("ModelType", bound=Base)

logger = logging.getLogger(__name__)


class BaseRepository(ABC, Generic[ModelType]):
    """
    Base repository implementing common CRUD operations.

    Thin pass-through to the document store: no caching here. Every
    SQLAlchemy failure is re-raised as DocumentStoreError so callers see a
    single transient-failure type regardless of the driver.
    """

    def __init__(self, db: AsyncSession, model: type[ModelType]):
        self.db = db
        self.model = model

    def after_commit(self, action: AfterCommitAction) -> None:
        """Run `action` after the surrounding transaction commits"""
        after_commit(self.db, action)

    @asynccontextmanager
    async def _store_call(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(f"{self.model.__name__} {operation} failed: {e}")
            raise DocumentStoreError(operation, str(e)) from e

    async def get_by_id(self, id: str) -> ModelType | None:
        """Get a single record by ID"""
        # Cast to Any for SQLAlchemy dynamic attribute access (id comes from CuidMixin)
        model: Any = self.model
        async with self._store_call("get_by_id"):
            result = await self.db.execute(select(self.model).where(model.id == id))
            return result.scalar_one_or_none()

    async def create(self, obj: ModelType) -> ModelType:
        """Insert a new record"""
        async with self._store_call("create"):
            self.db.add(obj)
            await self.db.flush()
            await self.db.refresh(obj)
            return obj

    async def delete_by_id(self, id: str) -> bool:
        """Delete a record; False if it did not exist"""
        obj = await self.get_by_id(id)
        if obj is None:
            return False
        async with self._store_call("delete"):
            await self.db.delete(obj)
            await self.db.flush()
        return True
