"""
Profile self-service and account removal.
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
import uuid
import logging

from zameenhub.config import Settings, get_settings
from zameenhub.models.profile import Profile
from zameenhub.repositories.user import ProfileRepository
from zameenhub.schemas.profile import ProfileUpdate
from zameenhub.services.image import ImageService
from zameenhub.utils.exceptions import (
    APIException,
    BadRequestError,
    InsufficientPermissionsError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


class AccountService:
    """
    Own-profile updates and account deletion. Deleting the identity cascades
    to the profile, its properties, images, favorites and contacts.
    """

    def __init__(self, db_session: AsyncSession, settings: Optional[Settings] = None):
        self.db = db_session
        self.settings = settings or get_settings()
        self.profile_repo = ProfileRepository(db_session)
        self.image_service = ImageService(db_session, self.settings)

    async def update_profile(self, profile_data: ProfileUpdate, current_user: Profile) -> Profile:
        """
        Update the caller's self-service fields. Only supplied fields change.
        """
        try:
            update_data = profile_data.model_dump(exclude_unset=True)
            if "full_name" in update_data and update_data["full_name"] is None:
                del update_data["full_name"]

            updated = await self.profile_repo.update(current_user.id, update_data)
            if not updated:
                raise NotFoundError("Profile", str(current_user.id))

            logger.info(f"Profile updated: {current_user.id}")
            return updated

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update profile {current_user.id}: {e}")
            raise BadRequestError(f"Failed to update profile: {str(e)}")

    async def delete_account(self, profile_id: uuid.UUID, current_user: Profile) -> bool:
        """
        Delete an account. Users may delete their own; admins any.

        Raises:
            InsufficientPermissionsError: Deleting someone else's account as non-admin
            NotFoundError: Unknown account
        """
        if profile_id != current_user.id and not current_user.is_admin:
            raise InsufficientPermissionsError("delete this account")

        try:
            if not await self.profile_repo.exists(profile_id):
                raise NotFoundError("Profile", str(profile_id))

            removed_files = await self.image_service.delete_owner_images(profile_id)
            deleted = await self.profile_repo.delete_identity(profile_id)
            if not deleted:
                raise NotFoundError("Profile", str(profile_id))

            logger.info(
                f"Account {profile_id} deleted by {current_user.id} ({removed_files} image files removed)"
            )
            return True

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to delete account {profile_id}: {e}")
            raise BadRequestError(f"Failed to delete account: {str(e)}")
