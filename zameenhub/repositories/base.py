"""
Generic async repository shared by the ZameenHub repositories.

Every write commits on success and rolls back on failure, so a repository
call is one unit of work. Dependent rows are removed by ON DELETE CASCADE.
"""

from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func
from typing import TypeVar, Generic, Optional, Dict, Any, Type
import uuid
import logging

from zameenhub.database import Base

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    CRUD by primary key for one model.

    Subclasses add the domain queries (listing search, favorites lookups,
    moderation counts) and reuse ``_write`` for their own statements.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    @property
    def _name(self) -> str:
        return self.model.__name__

    def _load_options(self) -> tuple:
        """Loader options applied to every lookup by id."""
        return ()

    @asynccontextmanager
    async def _write(self, action: str):
        """Commit the statements issued inside the block, or roll back and re-raise."""
        try:
            yield
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to {action} {self._name}: {e}")
            raise

    async def create(self, obj_in: Dict[str, Any]) -> ModelType:
        db_obj = self.model(**obj_in)
        async with self._write("create"):
            self.db.add(db_obj)
        await self.db.refresh(db_obj)
        logger.debug(f"Created {self._name} {db_obj.id}")
        return db_obj

    async def get_by_id(self, id: uuid.UUID) -> Optional[ModelType]:
        """
        Load a row by id.

        ``populate_existing`` refreshes an instance already in the session, so
        callers always see the latest approval status and role.
        """
        query = (
            select(self.model)
            .where(self.model.id == id)
            .options(*self._load_options())
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def update(self, id: uuid.UUID, obj_in: Dict[str, Any]) -> Optional[ModelType]:
        """
        Write ``obj_in`` to the row as given (None clears a column).

        Returns:
            The reloaded row, or None when no row has this id
        """
        if not obj_in:
            return await self.get_by_id(id)

        async with self._write("update"):
            result = await self.db.execute(
                update(self.model).where(self.model.id == id).values(**obj_in)
            )
        if result.rowcount == 0:
            logger.debug(f"{self._name} {id} not found for update")
            return None

        logger.debug(f"Updated {self._name} {id}: {sorted(obj_in)}")
        return await self.get_by_id(id)

    async def delete(self, id: uuid.UUID) -> bool:
        async with self._write("delete"):
            result = await self.db.execute(delete(self.model).where(self.model.id == id))
        deleted = result.rowcount > 0
        if deleted:
            logger.debug(f"Deleted {self._name} {id}")
        return deleted

    async def count(self, **filters: Any) -> int:
        """Count rows matching column equality filters."""
        query = select(func.count(self.model.id))
        for field, value in filters.items():
            query = query.where(getattr(self.model, field) == value)
        result = await self.db.execute(query)
        return result.scalar_one()

    async def exists(self, id: uuid.UUID) -> bool:
        result = await self.db.execute(select(self.model.id).where(self.model.id == id))
        return result.first() is not None
