"""
Favorites services: saved properties for signed-in users and the one-time
merge of a visitor's local favorites into their account.
"""

from dataclasses import dataclass, field
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
import uuid
import logging

from zameenhub.models.profile import Profile
from zameenhub.models.property import Property
from zameenhub.repositories.favorite import FavoriteRepository
from zameenhub.repositories.property import PropertyRepository
from zameenhub.utils.local_favorites import LocalFavoritesStore
from zameenhub.utils.exceptions import (
    APIException,
    BadRequestError,
    PropertyNotFoundError,
)

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    """What the merge did and what the client should keep locally."""

    merged_count: int = 0
    local_favorites_cleared: bool = False
    remaining_local_favorites: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "merged_count": self.merged_count,
            "local_favorites_cleared": self.local_favorites_cleared,
            "remaining_local_favorites": list(self.remaining_local_favorites),
        }


def parse_property_ids(raw_ids: List[str]) -> List[uuid.UUID]:
    """
    Turn stored identifiers into UUIDs, keeping first-seen order.
    Malformed entries are dropped.
    """
    property_ids: List[uuid.UUID] = []
    for raw_id in raw_ids:
        try:
            property_id = uuid.UUID(str(raw_id))
        except ValueError:
            logger.warning(f"Ignoring malformed local favorite id: {raw_id!r}")
            continue
        if property_id not in property_ids:
            property_ids.append(property_id)
    return property_ids


class FavoritesMergeService:
    """
    Merges a local favorites set into the persisted favorites of a user.

    Running it twice is harmless: the first run clears the local set, and the
    difference against existing favorites prevents duplicates regardless.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.favorite_repo = FavoriteRepository(db_session)
        self.property_repo = PropertyRepository(db_session)

    async def merge(self, local_store: LocalFavoritesStore, user_id: uuid.UUID) -> MergeResult:
        """
        Args:
            local_store: The visitor's local favorites
            user_id: Newly authenticated user

        Returns:
            MergeResult. On failure nothing is cleared and the caller carries on.
        """
        local_ids = local_store.get_all()
        if not local_ids:
            return MergeResult()

        try:
            candidate_ids = parse_property_ids(local_ids)

            existing_ids = set(await self.favorite_repo.get_property_ids_for_user(user_id))
            new_ids = [property_id for property_id in candidate_ids if property_id not in existing_ids]

            known_ids = await self.property_repo.get_existing_ids(new_ids)
            to_insert = [property_id for property_id in new_ids if property_id in known_ids]
            if len(to_insert) < len(new_ids):
                logger.warning(
                    f"Skipping {len(new_ids) - len(to_insert)} local favorites "
                    f"that reference missing properties for user {user_id}"
                )

            merged_count = await self.favorite_repo.add_many(user_id, to_insert)
        except Exception as e:
            logger.error(f"Failed to merge local favorites for user {user_id}: {e}")
            return MergeResult(
                merged_count=0,
                local_favorites_cleared=False,
                remaining_local_favorites=local_ids
            )

        local_store.clear()
        logger.info(f"Merged {merged_count} local favorites for user {user_id}")
        return MergeResult(merged_count=merged_count, local_favorites_cleared=True)


class FavoriteService:
    """Saved properties for signed-in users."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.favorite_repo = FavoriteRepository(db_session)
        self.property_repo = PropertyRepository(db_session)

    async def _get_favoritable_property(self, property_id: uuid.UUID, current_user: Profile) -> Property:
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))
        if not property_obj.is_public and not (
            current_user.is_admin or property_obj.owner_id == current_user.id
        ):
            raise PropertyNotFoundError(str(property_id))
        return property_obj

    async def add_favorite(self, property_id: uuid.UUID, current_user: Profile) -> bool:
        """
        Save a property. Saving an already saved property is a no-op.

        Returns:
            True if a new favorite was created
        """
        try:
            await self._get_favoritable_property(property_id, current_user)

            if await self.favorite_repo.exists_for_user(current_user.id, property_id):
                return False

            await self.favorite_repo.create({"user_id": current_user.id, "property_id": property_id})
            logger.info(f"User {current_user.id} saved property {property_id}")
            return True
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to save property {property_id} for {current_user.id}: {e}")
            raise BadRequestError(f"Failed to save property: {str(e)}")

    async def remove_favorite(self, property_id: uuid.UUID, current_user: Profile) -> bool:
        try:
            removed = await self.favorite_repo.remove(current_user.id, property_id)
            if removed:
                logger.info(f"User {current_user.id} removed saved property {property_id}")
            return removed
        except Exception as e:
            logger.error(f"Failed to remove saved property {property_id} for {current_user.id}: {e}")
            raise BadRequestError(f"Failed to remove saved property: {str(e)}")

    async def is_favorite(self, property_id: uuid.UUID, current_user: Profile) -> bool:
        return await self.favorite_repo.exists_for_user(current_user.id, property_id)

    async def list_favorite_ids(self, current_user: Profile) -> List[uuid.UUID]:
        return await self.favorite_repo.get_property_ids_for_user(current_user.id)

    async def list_saved_properties(self, current_user: Profile) -> List[Property]:
        """Approved saved properties, newest listing first."""
        property_ids = await self.favorite_repo.get_property_ids_for_user(current_user.id)
        return await self.property_repo.get_properties_by_ids(property_ids)

    async def lookup_local_favorites(self, raw_ids: List[str]) -> List[Property]:
        """Resolve a signed-out visitor's local favorites to approved properties."""
        return await self.property_repo.get_properties_by_ids(parse_property_ids(raw_ids))

    async def merge_local_favorites(
        self,
        raw_ids: List[str],
        current_user: Profile,
        merge_service: Optional[FavoritesMergeService] = None
    ) -> MergeResult:
        merge_service = merge_service or FavoritesMergeService(self.db)
        return await merge_service.merge(LocalFavoritesStore.from_ids(raw_ids), current_user.id)
