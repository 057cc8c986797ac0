"""
Admin moderation: approval state of properties and dealer profiles, role
changes and dashboard counts.

Approval is a plain admin-settable field with three values. Any value may be
set from any other; the last write wins. Every change is published to the
affected owner through the approval notifier.
"""

from typing import Optional, List, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
import uuid
import logging

from zameenhub.models.profile import Profile, UserRole, ApprovalStatus
from zameenhub.models.property import Property
from zameenhub.repositories.property import PropertyRepository, PropertySearchFilters
from zameenhub.repositories.user import ProfileRepository
from zameenhub.services.notifications import (
    ApprovalNotifier,
    ApprovalEvent,
    PROPERTY_SUBJECT,
    DEALER_SUBJECT,
)
from zameenhub.utils.exceptions import (
    APIException,
    BadRequestError,
    InsufficientPermissionsError,
    NotFoundError,
    PropertyNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _require_admin(current_user: Profile, action: str) -> None:
    if not current_user.is_admin:
        raise InsufficientPermissionsError(action)


class ApprovalService:
    """
    Admin-only operations over the approval state machine.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        notifier: Optional[ApprovalNotifier] = None
    ):
        self.db = db_session
        self.notifier = notifier
        self.property_repo = PropertyRepository(db_session)
        self.profile_repo = ProfileRepository(db_session)

    def _publish(self, event: ApprovalEvent) -> None:
        if self.notifier is not None:
            self.notifier.publish(event)

    async def set_property_approval(
        self,
        property_id: uuid.UUID,
        approval_status: ApprovalStatus,
        current_user: Profile
    ) -> Property:
        """
        Set a property's approval status.

        Raises:
            InsufficientPermissionsError: Caller is not an admin
            PropertyNotFoundError: Unknown property
        """
        _require_admin(current_user, "moderate properties")
        try:
            updated = await self.property_repo.update(property_id, {"approval_status": approval_status})
            if not updated:
                raise PropertyNotFoundError(str(property_id))

            logger.info(
                f"Property {property_id} set to {approval_status.value} by admin {current_user.id}"
            )
            self._publish(ApprovalEvent(
                owner_id=updated.owner_id,
                subject_type=PROPERTY_SUBJECT,
                subject_id=updated.id,
                approval_status=approval_status,
                title=updated.title,
            ))
            return await self.property_repo.get_property_with_details(property_id)

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to set approval for property {property_id}: {e}")
            raise BadRequestError(f"Failed to update property approval: {str(e)}")

    async def set_dealer_approval(
        self,
        profile_id: uuid.UUID,
        approval_status: ApprovalStatus,
        current_user: Profile
    ) -> Profile:
        """
        Set a dealer's approval status. Only dealer profiles carry one.

        Raises:
            ValidationError: Profile is not a dealer
            NotFoundError: Unknown profile
        """
        _require_admin(current_user, "moderate dealers")
        try:
            profile = await self.profile_repo.get_by_id(profile_id)
            if not profile:
                raise NotFoundError("Profile", str(profile_id))
            if profile.role != UserRole.DEALER:
                raise ValidationError("Approval status can only be set on dealer profiles")

            updated = await self.profile_repo.update(profile_id, {"approval_status": approval_status})
            logger.info(
                f"Dealer {profile_id} set to {approval_status.value} by admin {current_user.id}"
            )
            self._publish(ApprovalEvent(
                owner_id=updated.id,
                subject_type=DEALER_SUBJECT,
                subject_id=updated.id,
                approval_status=approval_status,
                title=updated.agency_name or updated.full_name,
            ))
            return updated

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to set approval for dealer {profile_id}: {e}")
            raise BadRequestError(f"Failed to update dealer approval: {str(e)}")

    async def change_role(self, profile_id: uuid.UUID, role: UserRole, current_user: Profile) -> Profile:
        """
        Change a profile's role.

        Promoting to dealer marks the profile approved when it had no approval
        status yet; moving away from dealer clears the status.
        """
        _require_admin(current_user, "change user roles")
        try:
            profile = await self.profile_repo.get_by_id(profile_id)
            if not profile:
                raise NotFoundError("Profile", str(profile_id))
            if profile.id == current_user.id and role != UserRole.ADMIN:
                raise ValidationError("Admins cannot remove their own admin role")

            update_data: Dict[str, Any] = {"role": role}
            if role == UserRole.DEALER:
                if profile.approval_status is None:
                    update_data["approval_status"] = ApprovalStatus.APPROVED
            else:
                update_data["approval_status"] = None

            previous_status = profile.approval_status
            updated = await self.profile_repo.update(profile_id, update_data)
            logger.info(f"Role of {profile_id} changed to {role.value} by admin {current_user.id}")

            if updated.approval_status != previous_status:
                self._publish(ApprovalEvent(
                    owner_id=updated.id,
                    subject_type=DEALER_SUBJECT,
                    subject_id=updated.id,
                    approval_status=updated.approval_status,
                    title=updated.agency_name or updated.full_name,
                ))
            return updated

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to change role for {profile_id}: {e}")
            raise BadRequestError(f"Failed to change role: {str(e)}")

    async def list_properties(
        self,
        current_user: Profile,
        approval_status: Optional[ApprovalStatus] = ApprovalStatus.PENDING
    ) -> List[Property]:
        """Moderation queue, newest first. ``None`` lists every state."""
        _require_admin(current_user, "view the moderation queue")

        properties, _ = await self.property_repo.search_listings(
            PropertySearchFilters(),
            approval_status=approval_status
        )
        return properties

    async def list_dealers(
        self,
        current_user: Profile,
        approval_status: Optional[ApprovalStatus] = ApprovalStatus.PENDING
    ) -> List[Profile]:
        _require_admin(current_user, "view dealer applications")
        return await self.profile_repo.list_profiles(role=UserRole.DEALER, approval_status=approval_status)

    async def list_profiles(self, current_user: Profile, role: Optional[UserRole] = None) -> List[Profile]:
        _require_admin(current_user, "list profiles")
        return await self.profile_repo.list_profiles(role=role)

    async def get_stats(self, current_user: Profile) -> Dict[str, int]:
        """Counters for the admin dashboard."""
        _require_admin(current_user, "view admin statistics")

        property_counts = await self.property_repo.count_by_approval_status()
        role_counts = await self.profile_repo.count_by_role()

        return {
            "total_properties": property_counts["total"],
            "pending_properties": property_counts[ApprovalStatus.PENDING.value],
            "approved_properties": property_counts[ApprovalStatus.APPROVED.value],
            "rejected_properties": property_counts[ApprovalStatus.REJECTED.value],
            "total_dealers": role_counts[UserRole.DEALER.value],
            "pending_dealers": await self.profile_repo.count_dealers(ApprovalStatus.PENDING),
            "approved_dealers": await self.profile_repo.count_dealers(ApprovalStatus.APPROVED),
            "total_users": role_counts[UserRole.USER.value],
            "total_admins": role_counts[UserRole.ADMIN.value],
        }

