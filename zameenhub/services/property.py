"""
Property service for listing management, public browsing and contact reveals.
"""

from typing import Optional, List, Dict, Any, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import UploadFile
import math
import uuid
import logging

from zameenhub.config import Settings, get_settings
from zameenhub.models.profile import Profile, ApprovalStatus
from zameenhub.models.property import Property
from zameenhub.models.image import PropertyImage
from zameenhub.repositories.property import PropertyRepository, PropertySearchFilters
from zameenhub.repositories.favorite import ContactRepository
from zameenhub.schemas.property import PropertyCreate, PropertyUpdate, ListingFilterParams
from zameenhub.services.image import ImageService
from zameenhub.utils.exceptions import (
    APIException,
    BadRequestError,
    InsufficientPermissionsError,
    PropertyNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class PropertyService:
    """
    Business logic for listings. Creation is limited to approved dealers and
    admins, and every new listing waits for moderation.
    """

    def __init__(self, db_session: AsyncSession, settings: Optional[Settings] = None):
        self.db = db_session
        self.settings = settings or get_settings()
        self.property_repo = PropertyRepository(db_session)
        self.contact_repo = ContactRepository(db_session)
        self.image_service = ImageService(db_session, self.settings)

    @staticmethod
    def can_create_properties(current_user: Profile) -> bool:
        return current_user.is_admin or current_user.is_approved_dealer

    @staticmethod
    def can_manage_property(current_user: Profile, property_obj: Property) -> bool:
        return current_user.is_admin or property_obj.owner_id == current_user.id

    async def create_property(self, property_data: PropertyCreate, current_user: Profile) -> Property:
        """
        Create a listing owned by the caller.

        Raises:
            InsufficientPermissionsError: Caller is not an approved dealer or admin
        """
        try:
            if not self.can_create_properties(current_user):
                raise InsufficientPermissionsError("create properties")

            create_data = property_data.model_dump()
            create_data.update({
                "owner_id": current_user.id,
                "approval_status": ApprovalStatus.PENDING,
                "featured": False,
            })

            property_obj = await self.property_repo.create(create_data)
            logger.info(f"Property created: {property_obj.id} by {current_user.id}")
            return await self.property_repo.get_property_with_details(property_obj.id)

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to create property: {e}")
            raise BadRequestError(f"Failed to create property: {str(e)}")

    async def _get_manageable_property(self, property_id: uuid.UUID, current_user: Profile, action: str) -> Property:
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))
        if not self.can_manage_property(current_user, property_obj):
            raise InsufficientPermissionsError(action)
        return property_obj

    async def get_property(self, property_id: uuid.UUID, current_user: Optional[Profile] = None) -> Property:
        """
        Get a listing. Unapproved listings are only visible to their owner and admins
        and look missing to everyone else.
        """
        property_obj = await self.property_repo.get_property_with_details(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))

        if not property_obj.is_public:
            if current_user is None or not self.can_manage_property(current_user, property_obj):
                raise PropertyNotFoundError(str(property_id))

        return property_obj

    async def update_property(
        self,
        property_id: uuid.UUID,
        property_data: PropertyUpdate,
        current_user: Profile
    ) -> Property:
        """
        Update supplied fields of a listing. Approval state is not touched.
        """
        try:
            await self._get_manageable_property(property_id, current_user, "update this property")

            update_data = property_data.model_dump(exclude_unset=True)
            for required in ("title", "city", "property_type", "status"):
                if required in update_data and update_data[required] is None:
                    raise ValidationError(f"{required} cannot be null")

            if update_data:
                await self.property_repo.update(property_id, update_data)
                logger.info(f"Property updated: {property_id} by {current_user.id}")

            return await self.property_repo.get_property_with_details(property_id)

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update property {property_id}: {e}")
            raise BadRequestError(f"Failed to update property: {str(e)}")

    async def delete_property(self, property_id: uuid.UUID, current_user: Profile) -> bool:
        """
        Delete a listing and its image files. Images, favorites and contacts
        rows cascade in the database.
        """
        try:
            await self._get_manageable_property(property_id, current_user, "delete this property")

            removed_files = await self.image_service.delete_property_images(property_id)
            deleted = await self.property_repo.delete(property_id)
            if not deleted:
                raise PropertyNotFoundError(str(property_id))

            logger.info(f"Property deleted: {property_id} by {current_user.id} ({removed_files} image files removed)")
            return True

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to delete property {property_id}: {e}")
            raise BadRequestError(f"Failed to delete property: {str(e)}")

    async def search_properties(self, params: ListingFilterParams) -> Dict[str, Any]:
        """
        Run the public listing query. Only approved listings are returned.

        Returns:
            Dictionary shaped like PropertyListResponse
        """
        filters = PropertySearchFilters(
            property_type=params.property_type,
            city=params.city,
            min_price=params.min_price,
            max_price=params.max_price,
            min_bedrooms=params.min_bedrooms,
            furnishing=params.furnishing,
            sort=params.sort_by,
        )

        page_size = params.page_size
        if page_size is None and params.page > 1:
            # Asking for a later page implies paging
            page_size = self.settings.default_page_size
        if page_size:
            page_size = min(page_size, self.settings.max_page_size)
        skip = (params.page - 1) * page_size if page_size else 0

        properties, total = await self.property_repo.search_listings(
            filters,
            approval_status=ApprovalStatus.APPROVED,
            skip=skip,
            limit=page_size
        )

        if page_size:
            total_pages = max(1, math.ceil(total / page_size))
            page = params.page
        else:
            total_pages = 1
            page = 1

        return {
            "properties": properties,
            "total": total,
            "page": page,
            "page_size": page_size,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_previous": page > 1,
        }

    async def get_owner_properties(
        self,
        current_user: Profile,
        approval_status: Optional[ApprovalStatus] = None
    ) -> List[Property]:
        """Dealer dashboard: the caller's own listings in any or one moderation state."""
        return await self.property_repo.get_properties_by_owner(current_user.id, approval_status)

    async def upload_images(
        self,
        property_id: uuid.UUID,
        files: List[UploadFile],
        current_user: Profile
    ) -> Tuple[List[PropertyImage], List[dict]]:
        await self._get_manageable_property(property_id, current_user, "upload images for this property")
        return await self.image_service.upload_multiple_images(property_id, files)

    async def reveal_contact(self, property_id: uuid.UUID, current_user: Profile) -> Dict[str, Any]:
        """
        Show the owner's phone number and log the reveal.
        """
        property_obj = await self.get_property(property_id, current_user)

        contact = await self.contact_repo.create({
            "property_id": property_obj.id,
            "user_id": current_user.id,
        })
        logger.info(f"Contact revealed for property {property_id} to {current_user.id}")

        return {
            "property_id": property_obj.id,
            "phone": property_obj.owner.phone if property_obj.owner else None,
            "owner": property_obj.owner,
            "contacted_at": contact.contacted_at,
        }
