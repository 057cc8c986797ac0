"""
Property repository for listings, moderation queues and the public filter query.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func, desc, asc
from sqlalchemy.orm import selectinload
from typing import Optional, List, Dict, Any, Tuple
from decimal import Decimal
import enum
import uuid
import logging

from zameenhub.repositories.base import BaseRepository
from zameenhub.models.property import Property, PropertyType, FurnishingStatus
from zameenhub.models.profile import ApprovalStatus, Profile

logger = logging.getLogger(__name__)


class ListingSort(str, enum.Enum):
    """Sort orders offered to property seekers."""
    NEWEST = "created_at"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"


class PropertySearchFilters:
    """Data class for listing filters. ``None`` means the filter is not applied."""

    def __init__(
        self,
        property_type: Optional[PropertyType] = None,
        city: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        min_bedrooms: Optional[int] = None,
        furnishing: Optional[FurnishingStatus] = None,
        sort: ListingSort = ListingSort.NEWEST
    ):
        self.property_type = property_type
        self.city = city
        self.min_price = min_price
        self.max_price = max_price
        self.min_bedrooms = min_bedrooms
        self.furnishing = furnishing
        self.sort = sort


class PropertyRepository(BaseRepository[Property]):
    """
    Repository for property listings with filtering and moderation lookups.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    def _with_details(self, query):
        return query.options(
            selectinload(Property.owner).selectinload(Profile.user),
            selectinload(Property.images)
        ).execution_options(populate_existing=True)

    async def get_property_with_details(self, property_id: uuid.UUID) -> Optional[Property]:
        """
        Get property with owner profile and ordered images.

        Args:
            property_id: UUID of the property

        Returns:
            Property with loaded relationships or None if not found
        """
        try:
            query = self._with_details(select(Property).where(Property.id == property_id))
            result = await self.db.execute(query)
            return result.scalar_one_or_none()
        except Exception as e:
            logger.error(f"Failed to get property with details {property_id}: {e}")
            raise

    async def search_listings(
        self,
        filters: PropertySearchFilters,
        approval_status: Optional[ApprovalStatus] = ApprovalStatus.APPROVED,
        skip: int = 0,
        limit: Optional[int] = None
    ) -> Tuple[List[Property], int]:
        """
        Run the listing filter query.

        The approval condition is placed ahead of every user-supplied filter and
        all conditions are AND-combined. ``limit=None`` returns the full set.

        Returns:
            Tuple of (properties list, total count)
        """
        try:
            conditions = self._build_filter_conditions(filters, approval_status)

            count_query = select(func.count(Property.id))
            query = self._with_details(select(Property))
            if conditions:
                count_query = count_query.where(and_(*conditions))
                query = query.where(and_(*conditions))

            count_result = await self.db.execute(count_query)
            total_count = count_result.scalar()

            query = query.order_by(*self._ordering(filters.sort))

            if skip:
                query = query.offset(skip)
            if limit is not None:
                query = query.limit(limit)

            result = await self.db.execute(query)
            properties = list(result.scalars().all())

            logger.debug(f"Listing query returned {len(properties)} of {total_count} results")
            return properties, total_count
        except Exception as e:
            logger.error(f"Failed to search properties: {e}")
            raise

    @staticmethod
    def _ordering(sort: ListingSort) -> List:
        # Unpriced listings go last in both price orders; newest first breaks ties
        if sort == ListingSort.PRICE_ASC:
            return [asc(Property.price).nulls_last(), desc(Property.created_at), asc(Property.id)]
        if sort == ListingSort.PRICE_DESC:
            return [desc(Property.price).nulls_last(), desc(Property.created_at), asc(Property.id)]
        return [desc(Property.created_at), asc(Property.id)]

    def _build_filter_conditions(
        self,
        filters: PropertySearchFilters,
        approval_status: Optional[ApprovalStatus]
    ) -> List:
        """
        Build SQLAlchemy filter conditions from search filters.
        """
        conditions = []

        if approval_status is not None:
            conditions.append(Property.approval_status == approval_status)

        if filters.property_type is not None:
            conditions.append(Property.property_type == filters.property_type)

        if filters.city is not None:
            conditions.append(Property.city == filters.city)

        if filters.min_price is not None:
            conditions.append(Property.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Property.price <= filters.max_price)

        if filters.min_bedrooms is not None:
            conditions.append(Property.bedrooms >= filters.min_bedrooms)

        if filters.furnishing is not None:
            conditions.append(Property.furnishing == filters.furnishing)

        return conditions

    async def get_properties_by_owner(
        self,
        owner_id: uuid.UUID,
        approval_status: Optional[ApprovalStatus] = None
    ) -> List[Property]:
        """
        Get every property created by an owner, newest first.

        Args:
            owner_id: Profile id of the owner
            approval_status: Restrict to one moderation state, or None for all
        """
        try:
            query = self._with_details(select(Property).where(Property.owner_id == owner_id))
            if approval_status is not None:
                query = query.where(Property.approval_status == approval_status)
            query = query.order_by(desc(Property.created_at))

            result = await self.db.execute(query)
            return list(result.scalars().all())
        except Exception as e:
            logger.error(f"Failed to get properties by owner {owner_id}: {e}")
            raise

    async def get_properties_by_ids(
        self,
        property_ids: List[uuid.UUID],
        approval_status: Optional[ApprovalStatus] = ApprovalStatus.APPROVED
    ) -> List[Property]:
        """Fetch a set of properties, newest first."""
        if not property_ids:
            return []
        query = self._with_details(select(Property).where(Property.id.in_(property_ids)))
        if approval_status is not None:
            query = query.where(Property.approval_status == approval_status)
        query = query.order_by(desc(Property.created_at))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_existing_ids(self, property_ids: List[uuid.UUID]) -> set:
        """Return the subset of ids that reference a stored property."""
        if not property_ids:
            return set()
        result = await self.db.execute(select(Property.id).where(Property.id.in_(property_ids)))
        return set(result.scalars().all())

    async def count_by_approval_status(self) -> Dict[str, Any]:
        """Property totals per moderation state."""
        result = await self.db.execute(
            select(Property.approval_status, func.count(Property.id)).group_by(Property.approval_status)
        )
        counts = {status.value: 0 for status in ApprovalStatus}
        for approval_status, count in result.all():
            counts[approval_status.value] = count
        counts["total"] = sum(counts[status.value] for status in ApprovalStatus)
        return counts
