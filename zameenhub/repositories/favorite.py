"""
Favorite and contact repositories.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func, and_, desc
from typing import List
import uuid
import logging

from zameenhub.repositories.base import BaseRepository
from zameenhub.models.favorite import Favorite, Contact

logger = logging.getLogger(__name__)


class FavoriteRepository(BaseRepository[Favorite]):
    """
    Repository for saved properties. The (user, property) pair is unique in the database.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Favorite, db)

    async def get_property_ids_for_user(self, user_id: uuid.UUID) -> List[uuid.UUID]:
        """Property ids the user has saved, newest first."""
        result = await self.db.execute(
            select(Favorite.property_id)
            .where(Favorite.user_id == user_id)
            .order_by(desc(Favorite.created_at))
        )
        return list(result.scalars().all())

    async def add_many(self, user_id: uuid.UUID, property_ids: List[uuid.UUID]) -> int:
        """
        Insert one favorite per id in a single transaction.

        Returns:
            Number of rows inserted

        Raises:
            IntegrityError: If any pair already exists; nothing is inserted
        """
        if not property_ids:
            return 0
        async with self._write("bulk insert"):
            self.db.add_all([
                Favorite(user_id=user_id, property_id=property_id)
                for property_id in property_ids
            ])
        logger.debug(f"Inserted {len(property_ids)} favorites for user {user_id}")
        return len(property_ids)

    async def exists_for_user(self, user_id: uuid.UUID, property_id: uuid.UUID) -> bool:
        result = await self.db.execute(
            select(func.count(Favorite.id)).where(
                and_(Favorite.user_id == user_id, Favorite.property_id == property_id)
            )
        )
        return result.scalar() > 0

    async def remove(self, user_id: uuid.UUID, property_id: uuid.UUID) -> bool:
        """Delete one favorite. Returns False when it did not exist."""
        async with self._write("remove"):
            result = await self.db.execute(
                delete(Favorite).where(
                    and_(Favorite.user_id == user_id, Favorite.property_id == property_id)
                )
            )
        return result.rowcount > 0


class ContactRepository(BaseRepository[Contact]):
    """Append-only log of phone reveals."""

    def __init__(self, db: AsyncSession):
        super().__init__(Contact, db)

    async def list_for_property(self, property_id: uuid.UUID) -> List[Contact]:
        result = await self.db.execute(
            select(Contact)
            .where(Contact.property_id == property_id)
            .order_by(desc(Contact.created_at))
        )
        return list(result.scalars().all())
