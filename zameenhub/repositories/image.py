"""
Repository for PropertyImage model operations.
"""

import uuid
from typing import List, Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from zameenhub.models.image import PropertyImage
from zameenhub.models.property import Property
from zameenhub.repositories.base import BaseRepository


class ImageRepository(BaseRepository[PropertyImage]):
    """Repository for PropertyImage database operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(PropertyImage, db)

    async def get_by_property_id(self, property_id: uuid.UUID) -> List[PropertyImage]:
        """
        Get all images for a property in display order.
        """
        query = (
            select(PropertyImage)
            .where(PropertyImage.property_id == property_id)
            .order_by(PropertyImage.display_order.asc(), PropertyImage.created_at.asc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_by_owner_id(self, owner_id: uuid.UUID) -> List[PropertyImage]:
        """Every image on every property of one owner (used before account deletion)."""
        query = (
            select(PropertyImage)
            .join(Property, Property.id == PropertyImage.property_id)
            .where(Property.owner_id == owner_id)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_by_property_id(self, property_id: uuid.UUID) -> int:
        query = select(func.count(PropertyImage.id)).where(
            PropertyImage.property_id == property_id
        )
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def get_max_display_order(self, property_id: uuid.UUID) -> Optional[int]:
        """Highest display order in use for a property, or None without images."""
        query = select(func.max(PropertyImage.display_order)).where(
            PropertyImage.property_id == property_id
        )
        result = await self.db.execute(query)
        return result.scalar()
